"""
Chain facts provider: chain id, nonces, gas prices and transaction lookups.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.exceptions import TransactionNotFound

from .cancel import CancelToken, ensure_token
from .exceptions import CyberCarError, RpcError, TransactionDroppedError
from .models import TxReceipt


def connect(rpc_url: str, retry_count: int = 3, timeout: int = 30) -> Web3:
    """
    Create a Web3 instance on an HTTP JSON-RPC endpoint.

    The underlying requests session retries connection errors and 5xx
    responses with exponential backoff.

    Args:
        rpc_url: JSON-RPC endpoint URL
        retry_count: Number of retries for HTTP requests
        timeout: Timeout for HTTP requests in seconds

    Returns:
        Web3 instance bound to the endpoint
    """
    session = requests.Session()
    retries = Retry(
        total=retry_count,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["POST"],
        raise_on_status=False,
        connect=retry_count,
        read=retry_count,
        other=retry_count
    )
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))

    provider = Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}, session=session)
    return Web3(provider)


def to_hex_hash(value: Any) -> str:
    """Normalize a transaction/block hash (bytes or str) to a 0x-prefixed string."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    value = str(value)
    return value if value.startswith("0x") else "0x" + value


class ChainFactsProvider:
    """
    Thin wrapper over ``w3.eth`` used by the transaction lifecycle.

    Nothing is cached: every method issues a fresh RPC call. Every method
    checks the cancellation token before issuing the call and maps failures
    to RpcError.
    """

    def __init__(self, w3: Web3, logger: Optional[logging.Logger] = None):
        self.w3 = w3
        self.logger = logger or logging.getLogger(__name__)

    def _rpc(self, what: str, fn, cancel: Optional[CancelToken], tx_hash: Optional[str] = None):
        ensure_token(cancel).raise_if_cancelled(tx_hash)
        try:
            return fn()
        except CyberCarError:
            raise
        except Exception as e:
            self.logger.error(f"{what} error: {e}")
            raise RpcError(f"{what} failed: {e}") from e

    def chain_id(self, cancel: Optional[CancelToken] = None) -> int:
        """Chain identifier of the connected network."""
        return int(self._rpc("Get chainId", lambda: self.w3.eth.chain_id, cancel))

    def nonce_at(self, address: str, cancel: Optional[CancelToken] = None) -> int:
        """Next unused nonce for ``address`` at the latest block."""
        checksum = Web3.to_checksum_address(address)
        return int(self._rpc(
            "Get nonce",
            lambda: self.w3.eth.get_transaction_count(checksum, "latest"),
            cancel
        ))

    def suggest_gas_price(self, cancel: Optional[CancelToken] = None) -> int:
        """Network-suggested gas price in wei."""
        return int(self._rpc("SuggestGasPrice", lambda: self.w3.eth.gas_price, cancel))

    def transaction_by_hash(self, tx_hash: str,
                            cancel: Optional[CancelToken] = None) -> Tuple[Dict[str, Any], bool]:
        """
        Look up a transaction.

        Returns:
            Tuple of (transaction, is_pending). A transaction is pending while
            it has no block number.

        Raises:
            TransactionDroppedError: If the node does not know the transaction
            RpcError: On any other lookup failure
        """
        def lookup():
            try:
                return self.w3.eth.get_transaction(tx_hash)
            except TransactionNotFound as e:
                raise TransactionDroppedError(f"transaction {tx_hash} not found, dropped", tx_hash) from e

        tx = self._rpc("TransactionByHash", lookup, cancel, tx_hash)
        tx = dict(tx)
        return tx, tx.get("blockNumber") is None

    def transaction_receipt(self, tx_hash: str, cancel: Optional[CancelToken] = None) -> TxReceipt:
        """
        Fetch the receipt of a mined transaction.

        Raises:
            RpcError: If the receipt is unavailable or the lookup fails
        """
        receipt = self._rpc(
            "TransactionReceipt",
            lambda: self.w3.eth.get_transaction_receipt(tx_hash),
            cancel,
            tx_hash
        )
        return self._convert_receipt(receipt)

    def _convert_receipt(self, web3_receipt: Any) -> TxReceipt:
        """
        Convert a Web3 receipt to our TxReceipt model

        Args:
            web3_receipt: The Web3 transaction receipt

        Returns:
            Our TxReceipt model
        """
        receipt = dict(web3_receipt)
        try:
            return TxReceipt(
                transactionHash=to_hex_hash(receipt["transactionHash"]),
                blockNumber=int(receipt["blockNumber"]),
                blockHash=to_hex_hash(receipt["blockHash"]),
                status=int(receipt["status"]),
                gasUsed=int(receipt["gasUsed"]),
                **{
                    "from": receipt.get("from"),
                    "to": receipt.get("to"),
                }
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"Malformed receipt: {e}") from e
