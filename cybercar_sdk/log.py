"""
Logger construction for command-line use.
"""
import logging
import sys
from typing import Optional

from .config import LogConfig
from .exceptions import ConfigError

LOGGER_NAME = "cybercar"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _make_handler(target: str) -> logging.Handler:
    if target == "stdout":
        return logging.StreamHandler(sys.stdout)
    if target == "stderr":
        return logging.StreamHandler(sys.stderr)
    try:
        return logging.FileHandler(target, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot open log output {target}: {e}") from e


def setup_logging(cfg: Optional[LogConfig] = None, name: str = LOGGER_NAME) -> logging.Logger:
    """
    Build the named logger from a LogConfig.

    Existing handlers on the logger are closed and replaced, so calling this
    twice does not duplicate output.

    Args:
        cfg: Log settings (defaults to info level on stdout)
        name: Logger name

    Returns:
        The configured logger

    Raises:
        ConfigError: If the level is unknown or an output cannot be opened
    """
    cfg = cfg or LogConfig()
    level = logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {cfg.level}")

    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    for target in cfg.outputs:
        handler = _make_handler(target)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    for target in cfg.errors:
        handler = _make_handler(target)
        handler.setLevel(logging.ERROR)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    logger.info("logger initialized")
    return logger
