#!/usr/bin/env python3
"""
Simple example of using the CyberCar SDK.
"""
import os
import sys

from cybercar_sdk import CyberCarError, Node, load_config, setup_logging


def main():
    """
    Demonstrate basic usage of the Node.

    This example shows how to:
    1. Load the configuration and initialize the node
    2. Read contract state
    3. Move the contract to the next mint phase
    """
    config_path = os.environ.get("CYBERCAR_CONFIG", "config.json")
    owner = os.environ.get("OWNER_ADDRESS")

    cfg = load_config(config_path)
    node = Node(cfg, setup_logging(cfg.log)).init()
    print(f"Operator address: {node.address}")

    phase = node.phase()
    print(f"Paused: {node.paused()}, phase: {phase}")

    if owner:
        quota = node.mint_quota(owner)
        print(f"{owner} minted {quota.minted} of {quota.cap}")

    if phase < 2:
        try:
            receipt = node.set_phase(phase + 1)
        except CyberCarError as e:
            print(f"setPhase failed: {e}")
            return 1
        print(f"Phase set in block {receipt.block_number}, tx {receipt.tx_hash}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
