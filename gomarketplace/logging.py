"""
Logging for the cart package.

The cart is embedded in a host app, so only the "gomarketplace" logger is
configured here; the host's root logger is left alone. When the host has not
configured logging at all, cart logs go to stderr on their own handler.

Usage:
    from gomarketplace.logging import get_logger
    logger = get_logger(__name__)
"""

import logging
import os
import sys
from functools import cache
from typing import Optional

PACKAGE_LOGGER = "gomarketplace"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

# Product ids longer than this are cut in log lines
MAX_LOGGED_ID = 8


def _level_from_env() -> int:
    level_name = os.environ.get("GOMARKETPLACE_LOG_LEVEL") or os.environ.get("LOG_LEVEL", "INFO")
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Set the cart log level and attach a stderr handler if nobody else logs.

    Args:
        level: Level name; defaults to GOMARKETPLACE_LOG_LEVEL, then LOG_LEVEL

    Returns:
        The package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO) if level else _level_from_env())

    if not package_logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler(sys.stderr)
        simple = os.environ.get("LOG_FORMAT", "").lower() == "simple"
        handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if simple else LOG_FORMAT))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    # upstash-redis talks REST over httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return package_logger


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """Logger for a gomarketplace module (typically __name__)."""
    return logging.getLogger(name)


def _escape_control_chars(value: str) -> str:
    # Keeps a crafted id from starting a fake log line (CWE-117)
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value) -> str:
    """Escaped, truncated product id, or "N/A" when empty."""
    if not id_value:
        return "N/A"
    return _escape_control_chars(str(id_value))[:MAX_LOGGED_ID]


def sanitize_key_for_logging(key: Optional[str], max_length: int = 50) -> str:
    """Escaped storage key, shortened with "..." past max_length."""
    if not key:
        return "N/A"
    safe_key = _escape_control_chars(key)
    if len(safe_key) <= max_length:
        return safe_key
    return safe_key[:max_length] + "..."


__all__ = [
    "PACKAGE_LOGGER",
    "configure_logging",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_key_for_logging",
]
