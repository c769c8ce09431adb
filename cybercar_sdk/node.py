"""
Node - operator facade over the CyberCar contract.
"""
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from web3 import Web3

from .account import DerivedAccount, account_from_file
from .cancel import CancelToken, ensure_token
from .chain import ChainFactsProvider, connect
from .config import NodeConfig
from .contract import CarContract
from .exceptions import CyberCarError, RpcError
from .lifecycle import TransactionLifecycleManager
from .models import Quota, TransactionIntent, TxReceipt

UINT8_MAX = 255
INT8_MIN, INT8_MAX = -128, 127


def _checksum(address: str) -> str:
    if not Web3.is_address(address):
        raise ValueError(f"Invalid address: {address}")
    return Web3.to_checksum_address(address)


class Node:
    """
    Operator entry point for one configured contract and account.

    Call :meth:`init` once before any other method. Read methods are single
    view calls; write methods go through the TransactionLifecycleManager and
    return only once the transaction is final.
    """

    def __init__(self, cfg: NodeConfig, logger: Optional[logging.Logger] = None):
        self.cfg = cfg
        self.logger = logger or logging.getLogger(__name__)

        self.account: Optional[DerivedAccount] = None
        self.w3: Optional[Web3] = None
        self.chain: Optional[ChainFactsProvider] = None
        self.nft: Optional[CarContract] = None
        self.manager: Optional[TransactionLifecycleManager] = None

    def init(self, cancel: Optional[CancelToken] = None) -> "Node":
        """
        Derive the account, connect to the RPC endpoint and bind the contract.

        Returns:
            self, for chaining

        Raises:
            ConfigError: If the mnemonic file cannot be read
            KeyDerivationError: If the mnemonic is invalid
            RpcError: If the endpoint or contract cannot be bound
            OperationCancelledError: If the token fired
        """
        ensure_token(cancel).raise_if_cancelled()
        try:
            self.account = account_from_file(self.cfg.mnemonic, self.cfg.account, self.logger)
        except CyberCarError as e:
            self.logger.error(f"load wallet error: {e}")
            raise

        try:
            self.w3 = connect(self.cfg.rpc, retry_count=self.cfg.retry_count, timeout=self.cfg.timeout)
            self.nft = CarContract(self.w3, self.cfg.contract, self.logger)
        except Exception as e:
            self.logger.error(f"connect rpc error: {e}")
            raise RpcError(f"Cannot bind contract {self.cfg.contract} on {self.cfg.rpc}: {e}") from e

        self.chain = ChainFactsProvider(self.w3, self.logger)
        self.manager = TransactionLifecycleManager(
            self.chain,
            self.nft,
            self.account,
            logger=self.logger,
            poll_interval=self.cfg.poll_interval,
            max_wait=self.cfg.max_wait,
            gas_limit=self.cfg.gas_limit,
            lookup_retries=self.cfg.lookup_retries
        )
        self.logger.info("initialize success")
        return self

    def _require_init(self) -> None:
        if self.nft is None or self.manager is None:
            raise RuntimeError("Node.init() must be called first")

    @property
    def address(self) -> str:
        if self.account is None:
            raise RuntimeError("Node.init() must be called first")
        return self.account.address

    # read queries

    def _quota(self, method: str, owner: str, cancel: Optional[CancelToken]) -> Quota:
        self._require_init()
        minted, cap = self.nft.call(method, _checksum(owner), cancel=cancel)
        return Quota(minted=minted, cap=cap)

    def airdrop_quota(self, owner: str, cancel: Optional[CancelToken] = None) -> Quota:
        """Airdrop quota (claimed, cap) of ``owner``."""
        return self._quota("airdropQuota", owner, cancel)

    def mint_quota(self, owner: str, cancel: Optional[CancelToken] = None) -> Quota:
        """Whitelist mint quota (minted, cap) of ``owner``."""
        return self._quota("mintQuota", owner, cancel)

    def paused(self, cancel: Optional[CancelToken] = None) -> bool:
        self._require_init()
        return bool(self.nft.call("paused", cancel=cancel))

    def phase(self, cancel: Optional[CancelToken] = None) -> int:
        self._require_init()
        return int(self.nft.call("phase", cancel=cancel))

    def snapshot(self, block: int, cancel: Optional[CancelToken] = None) -> Iterator[Tuple[int, str]]:
        """
        Yield (token_id, owner) for every minted token at ``block``.

        Tokens whose owner lookup fails are skipped with a warning.

        Raises:
            RpcError: If totalSupply cannot be read
            OperationCancelledError: If the token fired
        """
        self._require_init()
        token = ensure_token(cancel)
        total = int(self.nft.call("totalSupply", cancel=token, block_identifier=block))
        self.logger.info(f"TotalSupply at block {block}: {total}")
        for token_id in range(1, total + 1):
            token.raise_if_cancelled()
            try:
                owner = self.nft.call("ownerOf", token_id, cancel=token, block_identifier=block)
            except RpcError as e:
                self.logger.warning(f"ownerOf({token_id}) skipped: {e}")
                continue
            yield token_id, owner

    # admin writes

    def _add_list(self, method: str, owners: Sequence[str], amount: int,
                  cancel: Optional[CancelToken]) -> TxReceipt:
        self._require_init()
        if not 0 <= amount <= UINT8_MAX:
            raise ValueError(f"amount must be between 0 and {UINT8_MAX}, got {amount}")
        addrs: List[str] = [_checksum(owner) for owner in owners]
        if not addrs:
            raise ValueError("address list is empty")
        for owner in addrs:
            self.logger.info(f"{method} for {owner}")
        return self.manager.submit(TransactionIntent(method, (addrs, amount)), cancel)

    def add_airdrop(self, owners: Sequence[str], amount: int,
                    cancel: Optional[CancelToken] = None) -> TxReceipt:
        """Grant each owner a claimable airdrop quota of ``amount``."""
        return self._add_list("addAirdrop", owners, amount, cancel)

    def add_whitelist(self, owners: Sequence[str], amount: int,
                      cancel: Optional[CancelToken] = None) -> TxReceipt:
        """Allow each owner to mint up to ``amount`` during the whitelist phase."""
        return self._add_list("addWhitelist", owners, amount, cancel)

    def add_reserve(self, owners: Sequence[str], amount: int,
                    cancel: Optional[CancelToken] = None) -> TxReceipt:
        return self._add_list("addReserve", owners, amount, cancel)

    def pause(self, cancel: Optional[CancelToken] = None) -> Optional[TxReceipt]:
        """Pause the contract; no transaction is sent if it is already paused."""
        self._require_init()
        return self.manager.ensure_paused(True, cancel)

    def unpause(self, cancel: Optional[CancelToken] = None) -> Optional[TxReceipt]:
        """Unpause the contract; no transaction is sent if it is not paused."""
        self._require_init()
        return self.manager.ensure_paused(False, cancel)

    def set_phase(self, new_phase: int, cancel: Optional[CancelToken] = None) -> TxReceipt:
        self._require_init()
        if not INT8_MIN <= new_phase <= INT8_MAX:
            raise ValueError(f"phase must fit in int8, got {new_phase}")
        return self.manager.submit(TransactionIntent("setPhase", (new_phase,)), cancel)
