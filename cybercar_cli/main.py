"""
cybercar - command line interface to the CyberCar NFT contract.

    cybercar [-c config.json] user airdropQuota -r OWNER
    cybercar [-c config.json] admin addWhitelist -f list.csv -m 3
    cybercar [-c config.json] admin setPhase 1
"""
import argparse
import signal
import sys
import threading
from typing import Callable, List, Optional

from cybercar_sdk import (
    CancelToken,
    CyberCarError,
    Node,
    __version__,
    load_address_list,
    load_config,
    setup_logging,
)
from cybercar_sdk.config import DEFAULT_CONFIG_FILE

MIN_PHASE, MAX_PHASE = 0, 2


def _open_node(args: argparse.Namespace, cancel: CancelToken) -> Node:
    cfg = load_config(args.config)
    logger = setup_logging(cfg.log)
    return Node(cfg, logger).init(cancel)


def _print_receipt(receipt) -> None:
    if receipt is None:
        print("Nothing to do")
    else:
        print(f"Confirmed: {receipt.tx_hash} (block {receipt.block_number}, gas {receipt.gas_used})")


# user commands

def cmd_airdrop_quota(args: argparse.Namespace, cancel: CancelToken) -> int:
    quota = _open_node(args, cancel).airdrop_quota(args.owner, cancel)
    print(f"Minted: {quota.minted}, Cap: {quota.cap}")
    return 0


def cmd_mint_quota(args: argparse.Namespace, cancel: CancelToken) -> int:
    quota = _open_node(args, cancel).mint_quota(args.owner, cancel)
    print(f"Minted: {quota.minted}, Cap: {quota.cap}")
    return 0


def cmd_paused(args: argparse.Namespace, cancel: CancelToken) -> int:
    print(f"Paused: {str(_open_node(args, cancel).paused(cancel)).lower()}")
    return 0


def cmd_phase(args: argparse.Namespace, cancel: CancelToken) -> int:
    print(f"Phase: {_open_node(args, cancel).phase(cancel)}")
    return 0


def cmd_snapshot(args: argparse.Namespace, cancel: CancelToken) -> int:
    node = _open_node(args, cancel)
    for token_id, owner in node.snapshot(args.block, cancel):
        print(f"{token_id},{owner}")
    return 0


# admin commands

def _list_command(method: str) -> Callable[[argparse.Namespace, CancelToken], int]:
    def handler(args: argparse.Namespace, cancel: CancelToken) -> int:
        owners = load_address_list(args.address_list)
        node = _open_node(args, cancel)
        _print_receipt(getattr(node, method)(owners, args.amount, cancel))
        return 0
    return handler


cmd_add_airdrop = _list_command("add_airdrop")
cmd_add_whitelist = _list_command("add_whitelist")
cmd_add_reserve = _list_command("add_reserve")


def cmd_pause(args: argparse.Namespace, cancel: CancelToken) -> int:
    _print_receipt(_open_node(args, cancel).pause(cancel))
    return 0


def cmd_unpause(args: argparse.Namespace, cancel: CancelToken) -> int:
    _print_receipt(_open_node(args, cancel).unpause(cancel))
    return 0


def _phase_arg(value: str) -> int:
    try:
        phase = int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"input phase should be {MIN_PHASE}-{MAX_PHASE}")
    if not MIN_PHASE <= phase <= MAX_PHASE:
        raise argparse.ArgumentTypeError(f"input phase should be {MIN_PHASE}-{MAX_PHASE}")
    return phase


def cmd_set_phase(args: argparse.Namespace, cancel: CancelToken) -> int:
    _print_receipt(_open_node(args, cancel).set_phase(args.phase, cancel))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cybercar", description="CyberCar NFT CLI")
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_FILE,
                        help="load configuration from FILE (default: %(default)s)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    groups = parser.add_subparsers(dest="group", required=True)

    user = groups.add_parser("user", aliases=["u"],
                             help="User interfaces to interact with the NFT contract")
    user_cmds = user.add_subparsers(dest="command", required=True)

    p = user_cmds.add_parser("airdropQuota", help="check airdrop quota of an owner")
    p.add_argument("-r", "--owner", required=True, help="owner address")
    p.set_defaults(handler=cmd_airdrop_quota)

    p = user_cmds.add_parser("paused", help="check if contract paused")
    p.set_defaults(handler=cmd_paused)

    p = user_cmds.add_parser("phase", help="check mint phase")
    p.set_defaults(handler=cmd_phase)

    p = user_cmds.add_parser("mintQuota", help="check mint quota of a whitelist owner")
    p.add_argument("-r", "--owner", required=True, help="owner address")
    p.set_defaults(handler=cmd_mint_quota)

    p = user_cmds.add_parser("snapshot", help="list token owners at a block")
    p.add_argument("block", type=int, help="block number")
    p.set_defaults(handler=cmd_snapshot)

    admin = groups.add_parser("admin", aliases=["a"],
                              help="Admin interfaces to manage the NFT contract")
    admin_cmds = admin.add_subparsers(dest="command", required=True)

    for name, handler, help_text in (
        ("addAirdrop", cmd_add_airdrop, "add airdrop list with quota"),
        ("addWhitelist", cmd_add_whitelist, "add mint whitelist with quota"),
        ("addReserve", cmd_add_reserve, "add reserve list with quota"),
    ):
        p = admin_cmds.add_parser(name, help=help_text)
        p.add_argument("-f", "--addressList", dest="address_list", required=True,
                       help="owner address list FILE, in csv format")
        p.add_argument("-m", "--amount", type=int, required=True, help="amount of NFT")
        p.set_defaults(handler=handler)

    p = admin_cmds.add_parser("pause", help="pause")
    p.set_defaults(handler=cmd_pause)

    p = admin_cmds.add_parser("unpause", help="unpause")
    p.set_defaults(handler=cmd_unpause)

    p = admin_cmds.add_parser("setPhase", help="set phase of operation")
    p.add_argument("phase", type=_phase_arg, help=f"phase ({MIN_PHASE}-{MAX_PHASE})")
    p.set_defaults(handler=cmd_set_phase)

    return parser


def _install_signal_handlers(cancel: CancelToken) -> Callable[[], None]:
    """Fire ``cancel`` on SIGINT/SIGTERM. Returns a function restoring the old handlers."""
    if threading.current_thread() is not threading.main_thread():
        return lambda: None

    def handler(signum, frame):
        cancel.cancel()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}

    def restore():
        for sig, old in previous.items():
            signal.signal(sig, old)
    return restore


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)
    cancel = CancelToken()
    restore = _install_signal_handlers(cancel)
    try:
        return args.handler(args, cancel)
    except (CyberCarError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        restore()


if __name__ == "__main__":
    sys.exit(main())
