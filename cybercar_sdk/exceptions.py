"""
Exceptions for the CyberCar SDK.
"""
from typing import Any, Optional


class CyberCarError(Exception):
    """Base exception for all CyberCar SDK errors."""
    pass


class ConfigError(CyberCarError):
    """Raised when a configuration file, path or input list cannot be used."""
    pass


class KeyDerivationError(CyberCarError):
    """Raised when a signing key cannot be derived from the mnemonic."""
    pass


class RpcError(CyberCarError):
    """Raised when a chain interaction fails (connectivity, lookup, call)."""
    pass


class TransactionDroppedError(RpcError):
    """Raised when the node no longer knows a broadcast transaction."""

    def __init__(self, message: str, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(message)


class SubmissionError(CyberCarError):
    """Raised when a transaction is rejected before it enters the chain."""
    pass


class TransactionRevertedError(CyberCarError):
    """
    Raised when the chain executed a transaction but the contract rejected it.

    Attributes:
        tx_hash: Hash of the reverted transaction
        receipt: The receipt reported by the chain, if available
    """

    def __init__(self, tx_hash: str, receipt: Optional[Any] = None):
        self.tx_hash = tx_hash
        self.receipt = receipt
        super().__init__(f"transaction reverted, hash {tx_hash}")


class OperationCancelledError(CyberCarError):
    """Raised when the caller's cancellation token fires mid-operation."""

    def __init__(self, message: str = "operation cancelled", tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ConfirmationTimeoutError(CyberCarError):
    """Raised when a transaction stays pending longer than the allowed wait."""

    def __init__(self, tx_hash: str, waited: float):
        self.tx_hash = tx_hash
        self.waited = waited
        super().__init__(f"transaction {tx_hash} still pending after {waited:.1f}s")
