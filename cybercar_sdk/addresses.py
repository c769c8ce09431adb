"""
Address list loading for the allow-list and airdrop commands.
"""
import csv
from pathlib import Path
from typing import List, Union

from web3 import Web3

from .exceptions import ConfigError


def load_address_list(path: Union[str, Path]) -> List[str]:
    """
    Read a CSV file in which every non-blank cell is a hex address.

    Args:
        path: CSV file path

    Returns:
        Checksummed addresses in file order (row by row, left to right)

    Raises:
        ConfigError: If the file cannot be read or a cell is not an address
    """
    owners: List[str] = []
    try:
        with open(path, "r", newline="", encoding="utf-8") as f:
            for row_no, row in enumerate(csv.reader(f), start=1):
                for col_no, cell in enumerate(row, start=1):
                    token = cell.strip()
                    if not token:
                        continue
                    if not Web3.is_address(token):
                        raise ConfigError(
                            f"{path}: row {row_no}, column {col_no}: not a valid address: {token!r}"
                        )
                    owners.append(Web3.to_checksum_address(token))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read address list {path}: {e}") from e
    except csv.Error as e:
        raise ConfigError(f"Invalid CSV in address list {path}: {e}") from e
    return owners
