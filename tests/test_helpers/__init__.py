"""
Helpers shared by the test-suite.
"""
from .node_creator import (
    TEST_MNEMONIC,
    TEST_ADDRESS_0,
    TEST_ADDRESS_1,
    TEST_CONTRACT,
    TEST_RPC_URL,
    TEST_TX_HASH,
    make_receipt,
    create_test_manager,
    create_test_node,
)

__all__ = [
    "TEST_MNEMONIC",
    "TEST_ADDRESS_0",
    "TEST_ADDRESS_1",
    "TEST_CONTRACT",
    "TEST_RPC_URL",
    "TEST_TX_HASH",
    "make_receipt",
    "create_test_manager",
    "create_test_node",
]
