"""
Transaction lifecycle: turn a contract write into a confirmed on-chain result.

One submission goes through::

    BUILDING -> SIGNED -> BROADCAST -> PENDING -> CONFIRMED
                                               -> REVERTED / DROPPED
                                               -> CANCELLED / ERRORED

Chain facts (chain id, nonce, gas price) are fetched fresh for every
submission. Nothing is deduplicated: each call is an independent,
nonce-numbered transaction. Only one lifecycle runs at a time per manager;
concurrent submissions from the same account would need a lock around nonce
acquisition.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ._rate_limited_log import rate_limited_log
from .account import DerivedAccount
from .cancel import CancelToken, ensure_token
from .chain import ChainFactsProvider, to_hex_hash
from .config import DEFAULT_GAS_LIMIT, DEFAULT_POLL_INTERVAL
from .contract import CarContract
from .exceptions import (
    ConfirmationTimeoutError,
    CyberCarError,
    OperationCancelledError,
    RpcError,
    SubmissionError,
    TransactionDroppedError,
    TransactionRevertedError,
)
from .models import (
    SigningContext,
    SubmittedTransaction,
    TransactionIntent,
    TxReceipt,
    TxState,
)

# Signs and broadcasts one transaction, returning its hash
Invoke = Callable[[SigningContext], Any]


class TransactionLifecycleManager:
    """
    Drives contract writes from signing context to final receipt.

    Attributes:
        state: Last lifecycle state reached (None before the first submission)
        last_transaction: Most recent SubmittedTransaction, if any
    """

    def __init__(
        self,
        chain: ChainFactsProvider,
        contract: CarContract,
        account: DerivedAccount,
        logger: Optional[logging.Logger] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: Optional[float] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        lookup_retries: int = 0,
        retry_backoff: float = 0.5,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the manager

        Args:
            chain: Provider of chain id, nonces, gas prices and lookups
            contract: Contract binding used for writes and the paused() pre-flight
            account: Signing account
            logger: Logger for lifecycle transitions
            poll_interval: Seconds between confirmation polls
            max_wait: Give up waiting for inclusion after this many seconds
                (None waits until cancelled)
            gas_limit: Gas ceiling for every transaction
            lookup_retries: Consecutive lookup failures tolerated while polling
            retry_backoff: Base delay for lookup retries, doubled each attempt
            clock: Monotonic clock, used for max_wait

        Raises:
            ValueError: If poll_interval, max_wait or lookup_retries are out of range
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if max_wait is not None and max_wait <= 0:
            raise ValueError("max_wait must be positive")
        if lookup_retries < 0:
            raise ValueError("lookup_retries must not be negative")

        self.chain = chain
        self.contract = contract
        self.account = account
        self.logger = logger or logging.getLogger(__name__)
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.gas_limit = gas_limit
        self.lookup_retries = lookup_retries
        self.retry_backoff = retry_backoff
        self.clock = clock

        self.state: Optional[TxState] = None
        self.last_transaction: Optional[SubmittedTransaction] = None

    def _transition(self, state: TxState, detail: str = "") -> None:
        self.state = state
        message = f"tx {state.value}" + (f": {detail}" if detail else "")
        if state in (TxState.ERRORED, TxState.DROPPED, TxState.REVERTED):
            self.logger.error(message)
        elif state is TxState.CANCELLED:
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def build_signing_context(self, cancel: Optional[CancelToken] = None) -> SigningContext:
        """
        Fetch fresh chain facts and build the signing context.

        Raises:
            RpcError: If any chain fact cannot be fetched
            OperationCancelledError: If the token fired
        """
        self._transition(TxState.BUILDING)
        try:
            chain_id = self.chain.chain_id(cancel)
            nonce = self.chain.nonce_at(self.account.address, cancel)
            gas_price = self.chain.suggest_gas_price(cancel)
        except OperationCancelledError:
            self._transition(TxState.CANCELLED, "before broadcast")
            raise
        except RpcError as e:
            self._transition(TxState.ERRORED, str(e))
            raise

        ctx = SigningContext(
            signer=self.account.signer,
            chain_id=chain_id,
            nonce=nonce,
            gas_price=gas_price,
            gas_limit=self.gas_limit,
            value=0
        )
        self._transition(
            TxState.SIGNED,
            f"chainId={chain_id} nonce={nonce} gasPrice={gas_price} gas={self.gas_limit}"
        )
        return ctx

    def execute(self, invoke: Invoke, cancel: Optional[CancelToken] = None,
                label: str = "transaction") -> TxReceipt:
        """
        Run one full lifecycle.

        Args:
            invoke: Callable that signs and broadcasts with the given context
                and returns the transaction hash
            cancel: Cancellation token
            label: Name used in log lines

        Returns:
            Receipt of the confirmed transaction

        Raises:
            RpcError: Chain facts, lookup or receipt fetch failed
            TransactionDroppedError: The node no longer knows the transaction
            SubmissionError: The transaction was rejected before entering the chain
            TransactionRevertedError: The contract rejected the call
            OperationCancelledError: The token fired
            ConfirmationTimeoutError: max_wait elapsed while pending
        """
        token = ensure_token(cancel)
        ctx = self.build_signing_context(token)

        try:
            raw_hash = invoke(ctx)
        except OperationCancelledError:
            self._transition(TxState.CANCELLED, "before broadcast")
            raise
        except SubmissionError as e:
            self._transition(TxState.ERRORED, str(e))
            raise
        except Exception as e:
            self._transition(TxState.ERRORED, str(e))
            raise SubmissionError(f"{label} failed: {e}") from e

        tx_hash = to_hex_hash(raw_hash)
        self.last_transaction = SubmittedTransaction(
            tx_hash=tx_hash,
            submitted_at=datetime.now(timezone.utc)
        )
        self._transition(TxState.BROADCAST, f"{label} {tx_hash}")

        self._wait_until_mined(tx_hash, token)

        try:
            receipt = self.chain.transaction_receipt(tx_hash, token)
        except OperationCancelledError:
            self._transition(TxState.CANCELLED, tx_hash)
            raise
        except RpcError as e:
            self._transition(TxState.ERRORED, str(e))
            raise

        if not receipt.succeeded:
            self._transition(TxState.REVERTED, tx_hash)
            raise TransactionRevertedError(tx_hash, receipt)

        self._transition(TxState.CONFIRMED, f"{tx_hash} gas={receipt.gas_used}")
        return receipt

    def _wait_until_mined(self, tx_hash: str, token: CancelToken) -> None:
        self._transition(TxState.PENDING, tx_hash)
        started = self.clock()
        failures = 0

        while True:
            if token.wait(self.poll_interval):
                self._transition(TxState.CANCELLED, tx_hash)
                raise OperationCancelledError(
                    f"cancelled while waiting for {tx_hash}; it may still be mined",
                    tx_hash=tx_hash
                )

            try:
                _, pending = self.chain.transaction_by_hash(tx_hash, token)
            except OperationCancelledError:
                self._transition(TxState.CANCELLED, tx_hash)
                raise
            except RpcError as e:
                failures += 1
                if failures > self.lookup_retries:
                    state = TxState.DROPPED if isinstance(e, TransactionDroppedError) else TxState.ERRORED
                    self._transition(state, str(e))
                    raise
                waited = self.clock() - started
                if self.max_wait is not None and waited >= self.max_wait:
                    self._transition(TxState.ERRORED, f"{tx_hash} not mined within {self.max_wait}s: {e}")
                    raise ConfirmationTimeoutError(tx_hash, waited) from e
                wait_time = self.retry_backoff * (2 ** (failures - 1))
                self.logger.warning(f"Retrying lookup of {tx_hash} after {wait_time}s: {e}")
                if token.wait(wait_time):
                    self._transition(TxState.CANCELLED, tx_hash)
                    raise OperationCancelledError(tx_hash=tx_hash)
                continue

            failures = 0
            if not pending:
                return

            waited = self.clock() - started
            self.logger.debug(f"{tx_hash} pending after {waited:.1f}s")
            rate_limited_log(
                f"Waiting for {tx_hash} to be mined",
                level="info",
                key=f"pending:{tx_hash}",
                logger_instance=self.logger
            )
            if self.max_wait is not None and waited >= self.max_wait:
                self._transition(TxState.ERRORED, f"{tx_hash} not mined within {self.max_wait}s")
                raise ConfirmationTimeoutError(tx_hash, waited)

    def submit(self, intent: TransactionIntent, cancel: Optional[CancelToken] = None) -> TxReceipt:
        """
        Submit a TransactionIntent through the contract binding.

        See :meth:`execute` for the raised errors.
        """
        token = ensure_token(cancel)
        self.logger.info(f"Submitting {intent.describe()} from {self.account.address}")
        return self.execute(
            lambda ctx: self.contract.transact(ctx, intent.method, *intent.args, cancel=token),
            cancel=token,
            label=intent.method
        )

    def ensure_paused(self, target: bool, cancel: Optional[CancelToken] = None) -> Optional[TxReceipt]:
        """
        Bring the contract's paused flag to ``target``.

        Reads the current flag first and returns None without sending a
        transaction when it already matches.

        Returns:
            Receipt of the pause/unpause transaction, or None if nothing was sent

        Raises:
            RpcError: If the paused() pre-flight read fails
            CyberCarError: Any error raised by :meth:`submit`
        """
        token = ensure_token(cancel)
        try:
            paused = bool(self.contract.call("paused", cancel=token))
        except CyberCarError as e:
            self.logger.error(f"check paused error: {e}")
            raise

        if paused == target:
            self.logger.info("already paused" if target else "already non-paused")
            return None
        return self.submit(TransactionIntent("pause" if target else "unpause"), token)
