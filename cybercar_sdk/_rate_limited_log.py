"""
Thread-safe rate-limited logging utilities.

Used by the confirmation loop so that a transaction sitting in the mempool
produces one progress line every so often instead of one per poll tick.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# Minimum seconds between two identical progress lines
PROGRESS_INTERVAL = 30

_log_cache = TTLCache(maxsize=256, ttl=PROGRESS_INTERVAL)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "info",
    key: Optional[str] = None,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per PROGRESS_INTERVAL for a given key.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        key: Deduplication key (defaults to level and message)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.info)
    cache_key = key or f"{level}:{message}"

    with _log_cache_lock:
        if cache_key in _log_cache:
            return False
        log_method(message)
        _log_cache[cache_key] = True
        return True


def reset_rate_limits() -> None:
    """Forget every suppressed key."""
    with _log_cache_lock:
        _log_cache.clear()
