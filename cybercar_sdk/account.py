"""
HD wallet account derivation.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .exceptions import ConfigError, KeyDerivationError

logger = logging.getLogger(__name__)

# BIP-44 path for Ethereum accounts, one index per account
DERIVATION_PATH_TEMPLATE = "m/44'/60'/0'/0/{index}"

Account.enable_unaudited_hdwallet_features()


@dataclass(frozen=True)
class DerivedAccount:
    """
    Signing identity derived from a mnemonic.

    Attributes:
        index: Derivation path index
        address: Checksummed account address
        signer: eth-account LocalAccount holding the private key
    """
    index: int
    address: str
    signer: LocalAccount = field(repr=False, compare=False)

    @property
    def derivation_path(self) -> str:
        return DERIVATION_PATH_TEMPLATE.format(index=self.index)


def load_mnemonic(path: Union[str, Path]) -> str:
    """
    Read a mnemonic phrase from a file.

    Args:
        path: File whose entire trimmed content is the mnemonic

    Returns:
        The trimmed mnemonic phrase

    Raises:
        ConfigError: If the file cannot be read
        KeyDerivationError: If the file is empty
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            mnemonic = f.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read mnemonic file {path}: {e}") from e

    if not mnemonic:
        raise KeyDerivationError(f"Mnemonic file {path} is empty")
    return mnemonic


def derive_account(mnemonic: str, index: int = 0) -> DerivedAccount:
    """
    Derive the signing account at ``m/44'/60'/0'/0/<index>``.

    Args:
        mnemonic: BIP-39 mnemonic phrase
        index: Non-negative account index

    Returns:
        DerivedAccount for the index

    Raises:
        KeyDerivationError: If the index is negative or the mnemonic is invalid
    """
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise KeyDerivationError(f"Derivation index must be a non-negative integer, got {index!r}")

    path = DERIVATION_PATH_TEMPLATE.format(index=index)
    try:
        signer = Account.from_mnemonic(mnemonic.strip(), account_path=path)
    except Exception as e:
        # eth-account raises ValidationError or ValueError depending on the failure
        raise KeyDerivationError(f"Cannot derive account {path}: {e}") from e

    logger.debug(f"Derived account {signer.address} at {path}")
    return DerivedAccount(index=index, address=signer.address, signer=signer)


def account_from_file(path: Union[str, Path], index: int = 0,
                      log: Optional[logging.Logger] = None) -> DerivedAccount:
    """Load the mnemonic at ``path`` and derive the account at ``index``."""
    account = derive_account(load_mnemonic(path), index)
    (log or logger).info(f"Wallet initialized, account {account.address}")
    return account
