"""
CyberCar SDK - operator toolkit for the CyberCar NFT contract.
"""
from .account import DerivedAccount, account_from_file, derive_account, load_mnemonic
from .addresses import load_address_list
from .cancel import CancelToken
from .chain import ChainFactsProvider, connect
from .config import LogConfig, NodeConfig, load_config
from .contract import CAR_ABI, CarContract
from .exceptions import (
    ConfigError,
    ConfirmationTimeoutError,
    CyberCarError,
    KeyDerivationError,
    OperationCancelledError,
    RpcError,
    SubmissionError,
    TransactionDroppedError,
    TransactionRevertedError,
)
from .lifecycle import TransactionLifecycleManager
from .log import setup_logging
from .models import Quota, SigningContext, TransactionIntent, TxReceipt, TxState
from .node import Node
from .version import __version__

__all__ = [
    "Node",
    "TransactionLifecycleManager",
    "ChainFactsProvider",
    "CarContract",
    "CAR_ABI",
    "CancelToken",
    "DerivedAccount",
    "derive_account",
    "load_mnemonic",
    "account_from_file",
    "load_address_list",
    "connect",
    "LogConfig",
    "NodeConfig",
    "load_config",
    "setup_logging",
    "Quota",
    "SigningContext",
    "TransactionIntent",
    "TxReceipt",
    "TxState",
    "CyberCarError",
    "ConfigError",
    "KeyDerivationError",
    "RpcError",
    "TransactionDroppedError",
    "SubmissionError",
    "TransactionRevertedError",
    "OperationCancelledError",
    "ConfirmationTimeoutError",
    "__version__",
]
