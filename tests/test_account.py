"""
Tests for mnemonic loading and account derivation.
"""
import pytest

from cybercar_sdk.account import (
    DERIVATION_PATH_TEMPLATE,
    account_from_file,
    derive_account,
    load_mnemonic,
)
from cybercar_sdk.exceptions import ConfigError, KeyDerivationError
from tests.test_helpers import TEST_ADDRESS_0, TEST_ADDRESS_1, TEST_MNEMONIC


def test_derive_known_addresses():
    assert derive_account(TEST_MNEMONIC, 0).address == TEST_ADDRESS_0
    assert derive_account(TEST_MNEMONIC, 1).address == TEST_ADDRESS_1


def test_derived_account_fields():
    account = derive_account(TEST_MNEMONIC, 1)

    assert account.index == 1
    assert account.derivation_path == "m/44'/60'/0'/0/1"
    assert account.signer.address == account.address


def test_repr_hides_key_material():
    account = derive_account(TEST_MNEMONIC, 0)
    key_hex = account.signer.key.hex()

    assert key_hex not in repr(account)
    assert "signer" not in repr(account)


def test_derive_strips_surrounding_whitespace():
    assert derive_account(f"\n  {TEST_MNEMONIC}  \n", 0).address == TEST_ADDRESS_0


@pytest.mark.parametrize("mnemonic", [
    "not a mnemonic",
    "test test test test test test test test test test test test",  # bad checksum
    "",
])
def test_invalid_mnemonic(mnemonic):
    with pytest.raises(KeyDerivationError):
        derive_account(mnemonic, 0)


@pytest.mark.parametrize("index", [-1, "0", 1.5, True])
def test_invalid_index(index):
    with pytest.raises(KeyDerivationError, match="non-negative"):
        derive_account(TEST_MNEMONIC, index)


def test_load_mnemonic_trims(mnemonic_file):
    assert load_mnemonic(mnemonic_file) == TEST_MNEMONIC


def test_load_mnemonic_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read mnemonic file"):
        load_mnemonic(tmp_path / "missing.txt")


def test_load_mnemonic_empty_file(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("   \n")

    with pytest.raises(KeyDerivationError, match="empty"):
        load_mnemonic(path)


def test_load_mnemonic_not_utf8(tmp_path):
    path = tmp_path / "mnemonic.bin"
    path.write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(ConfigError, match="Cannot read mnemonic file"):
        load_mnemonic(path)


def test_account_from_file(mnemonic_file):
    account = account_from_file(mnemonic_file, 1)

    assert account.address == TEST_ADDRESS_1
    assert DERIVATION_PATH_TEMPLATE.format(index=1) == account.derivation_path
