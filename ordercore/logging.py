"""
Logging setup for ordercore.

Usage:
    from ordercore.logging import get_logger
    logger = get_logger(__name__)

Tokens are never logged. Server messages, ids and phone numbers go through
the helpers below before they reach a log line.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Characters that would let a server message forge extra log records
_LOG_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": ""})


def _configure_root_logger() -> None:
    root = logging.getLogger()

    # Host application already configured logging
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # Every backend call goes through httpx; keep its request lines out of INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | int | None) -> str:
    """User, meal and cart item ids: escaped, first 8 characters, "N/A" when missing."""
    if id_value is None or id_value == "":
        return "N/A"
    return str(id_value).translate(_LOG_ESCAPES)[:8]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Server error text, cut to max_length with a trailing "..."."""
    if not value:
        return "N/A"
    safe_value = str(value).translate(_LOG_ESCAPES)
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


def mask_phone_for_logging(phone_number: str | None) -> str:
    """Keep only the last 4 digits of a phone number."""
    if not phone_number:
        return "N/A"
    digits = str(phone_number).translate(_LOG_ESCAPES)
    if len(digits) <= 4:
        return "****"
    return "*" * (len(digits) - 4) + digits[-4:]


__all__ = [
    "get_logger",
    "mask_phone_for_logging",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
