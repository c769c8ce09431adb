"""
Configuration loading for the CyberCar SDK.
"""
import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from web3 import Web3

from .exceptions import ConfigError

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_GAS_LIMIT = 6721975
DEFAULT_POLL_INTERVAL = 1.0

LOG_LEVELS = ("debug", "info", "warning", "error")


class LogConfig(BaseModel):
    """Logger settings"""
    level: str = "info"
    outputs: List[str] = Field(default_factory=lambda: ["stdout"])
    errors: List[str] = Field(default_factory=list)

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return value


class NodeConfig(BaseModel):
    """Operator configuration, as stored in the JSON config file"""
    model_config = ConfigDict(populate_by_name=True)

    log: LogConfig = Field(default_factory=LogConfig)
    rpc: str
    contract: str
    mnemonic: str
    account: int = Field(0, ge=0)

    poll_interval: float = Field(DEFAULT_POLL_INTERVAL, alias="pollInterval", gt=0)
    max_wait: Optional[float] = Field(None, alias="maxWait", gt=0)
    gas_limit: int = Field(DEFAULT_GAS_LIMIT, alias="gasLimit", gt=0)
    lookup_retries: int = Field(0, alias="lookupRetries", ge=0)
    retry_count: int = Field(3, alias="retryCount", ge=0)
    timeout: int = Field(30, gt=0)

    @field_validator("contract")
    @classmethod
    def _check_contract(cls, value: str) -> str:
        if not Web3.is_address(value):
            raise ValueError(f"not a valid address: {value}")
        return Web3.to_checksum_address(value)

    @field_validator("rpc", "mnemonic")
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> NodeConfig:
    """
    Load and validate a JSON configuration file.

    Args:
        path: Path to the JSON config file

    Returns:
        Validated NodeConfig

    Raises:
        ConfigError: If the file cannot be read, parsed or validated
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object, got {type(data).__name__}")

    try:
        return NodeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
