"""
Binding for the CyberCar NFT contract.
"""
import logging
from typing import Any, Optional

from web3 import Web3

from .cancel import CancelToken, ensure_token
from .chain import to_hex_hash
from .exceptions import CyberCarError, RpcError, SubmissionError
from .models import SigningContext


def _fn(name, inputs=(), outputs=(), mutability="nonpayable"):
    return {
        "inputs": [{"internalType": t, "name": n, "type": t} for n, t in inputs],
        "name": name,
        "outputs": [{"internalType": t, "name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
        "type": "function"
    }


def _event(name, inputs):
    return {
        "anonymous": False,
        "inputs": [
            {"indexed": indexed, "internalType": t, "name": n, "type": t}
            for n, t, indexed in inputs
        ],
        "name": name,
        "type": "event"
    }


# Subset of the CyberCar ABI used by this package
CAR_ABI = [
    # views
    _fn("airdropQuota", [("addr", "address")], [("minted", "uint8"), ("cap", "uint8")], "view"),
    _fn("mintQuota", [("addr", "address")], [("minted", "uint8"), ("cap", "uint8")], "view"),
    _fn("paused", [], [("", "bool")], "view"),
    _fn("phase", [], [("", "int8")], "view"),
    _fn("owner", [], [("", "address")], "view"),
    _fn("totalSupply", [], [("", "uint256")], "view"),
    _fn("ownerOf", [("tokenId", "uint256")], [("", "address")], "view"),
    # admin writes
    _fn("addAirdrop", [("addrs", "address[]"), ("amount", "uint8")]),
    _fn("addWhitelist", [("addrs", "address[]"), ("amount", "uint8")]),
    _fn("addReserve", [("addrs", "address[]"), ("amount", "uint8")]),
    _fn("pause"),
    _fn("unpause"),
    _fn("setPhase", [("newPhase", "int8")]),
    # events
    _event("Paused", [("account", "address", False)]),
    _event("Unpaused", [("account", "address", False)]),
]

WRITE_METHODS = frozenset({"addAirdrop", "addWhitelist", "addReserve", "pause", "unpause", "setPhase"})


class CarContract:
    """
    Read/write interface to a deployed CyberCar contract.

    Reads go through ``eth_call``. Writes are built from a SigningContext,
    signed locally with the context's account and broadcast as raw
    transactions.
    """

    def __init__(self, w3: Web3, address: str, logger: Optional[logging.Logger] = None):
        if not Web3.is_address(address):
            raise ValueError(f"Invalid contract address: {address}")
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.logger = logger or logging.getLogger(__name__)
        self.contract = self.w3.eth.contract(address=self.address, abi=CAR_ABI)

    def call(self, method: str, *args: Any,
             cancel: Optional[CancelToken] = None,
             block_identifier: Any = "latest") -> Any:
        """
        Invoke a view method.

        Args:
            method: Contract method name
            *args: Method arguments
            cancel: Cancellation token
            block_identifier: Block to evaluate the call at

        Returns:
            Decoded return value(s)

        Raises:
            RpcError: If the call fails
        """
        ensure_token(cancel).raise_if_cancelled()
        try:
            fn = getattr(self.contract.functions, method)
            return fn(*args).call(block_identifier=block_identifier)
        except Exception as e:
            self.logger.error(f"call {method} error: {e}")
            raise RpcError(f"call {method} failed: {e}") from e

    def transact(self, ctx: SigningContext, method: str, *args: Any,
                 cancel: Optional[CancelToken] = None) -> str:
        """
        Build, sign and broadcast a write call.

        Args:
            ctx: Signing context (account, chain id, nonce, gas)
            method: Contract method name
            *args: Method arguments
            cancel: Cancellation token

        Returns:
            Transaction hash as a 0x-prefixed hex string

        Raises:
            OperationCancelledError: If the token fired before broadcasting
            SubmissionError: If building, signing or broadcasting fails
        """
        ensure_token(cancel).raise_if_cancelled()
        if method not in WRITE_METHODS:
            raise SubmissionError(f"{method} is not a write method of the contract")

        try:
            fn = getattr(self.contract.functions, method)
            tx = fn(*args).build_transaction(ctx.tx_params())
        except Exception as e:
            self.logger.error(f"{method} build error: {e}")
            raise SubmissionError(f"Failed to build {method} transaction: {e}") from e

        try:
            signed_tx = ctx.signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"{method} signing error: {e}")
            raise SubmissionError(f"Failed to sign {method} transaction: {e}") from e

        # last point at which cancelling leaves nothing on chain
        ensure_token(cancel).raise_if_cancelled()
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except CyberCarError:
            raise
        except Exception as e:
            self.logger.error(f"{method} error: {e}")
            raise SubmissionError(f"Failed to send {method} transaction: {e}") from e

        return to_hex_hash(tx_hash)
