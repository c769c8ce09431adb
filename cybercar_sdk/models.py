"""
Data models for the CyberCar SDK.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Receipt status of a successful transaction
STATUS_SUCCESS = 1


class TxState(str, Enum):
    """States of a transaction lifecycle."""
    BUILDING = "building"
    SIGNED = "signed"
    BROADCAST = "broadcast"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    DROPPED = "dropped"
    CANCELLED = "cancelled"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    TxState.CONFIRMED,
    TxState.REVERTED,
    TxState.DROPPED,
    TxState.CANCELLED,
    TxState.ERRORED,
})


class Quota(BaseModel):
    """Minted / cap pair returned by the quota views"""
    minted: int
    cap: int


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


@dataclass(frozen=True)
class SigningContext:
    """
    Everything needed to sign and broadcast one transaction.

    Attributes:
        signer: eth-account LocalAccount holding the private key
        chain_id: Chain identifier used for replay protection
        nonce: Next unused nonce of the signer
        gas_price: Gas price in wei
        gas_limit: Gas ceiling for the transaction
        value: Wei transferred with the call (always zero here)
    """
    signer: Any = field(repr=False)
    chain_id: int
    nonce: int
    gas_price: int
    gas_limit: int
    value: int = 0

    @property
    def from_address(self) -> str:
        return self.signer.address

    def tx_params(self) -> dict:
        """Transaction parameters for ``build_transaction``."""
        return {
            "from": self.from_address,
            "chainId": self.chain_id,
            "nonce": self.nonce,
            "gas": self.gas_limit,
            "gasPrice": self.gas_price,
            "value": self.value,
        }


@dataclass(frozen=True)
class TransactionIntent:
    """A request to invoke one contract write method with fixed arguments."""
    method: str
    args: Tuple[Any, ...] = ()

    def describe(self) -> str:
        return f"{self.method}({len(self.args)} args)"


@dataclass(frozen=True)
class SubmittedTransaction:
    """A broadcast transaction awaiting its receipt."""
    tx_hash: str
    submitted_at: datetime
