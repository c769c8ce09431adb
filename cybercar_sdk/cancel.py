"""
Cancellation token shared by every chain-facing operation.
"""
import threading
from typing import Optional

from .exceptions import OperationCancelledError


class CancelToken:
    """
    Thread-safe cancellation signal.

    A single token is created per command invocation and handed to every
    operation that talks to the chain. Signal handlers call :meth:`cancel`;
    waiting code uses :meth:`wait` so that it wakes up as soon as the token
    fires instead of sleeping out the full interval.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Fire the token. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float]) -> bool:
        """
        Block for up to ``timeout`` seconds.

        Returns:
            True if the token fired during (or before) the wait
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self, tx_hash: Optional[str] = None) -> None:
        """
        Raise OperationCancelledError if the token has fired.

        Args:
            tx_hash: Hash of an already broadcast transaction, if any
        """
        if self._event.is_set():
            raise OperationCancelledError(tx_hash=tx_hash)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"


def ensure_token(cancel: Optional[CancelToken]) -> CancelToken:
    """Return ``cancel`` or a fresh token that never fires."""
    return cancel if cancel is not None else CancelToken()
