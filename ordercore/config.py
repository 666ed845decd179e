"""
Configuration - environment-driven settings for the ordering core.

All values are read once at import. Scripts may load a `.env` first
(see scripts/check_delivery.py); the library itself never does.
"""

import os
from typing import Optional

# Backend REST surface
API_BASE_URL = os.environ.get("ORDERCORE_API_BASE_URL", "https://proteinhunt.in/api/v1").rstrip("/")


def _parse_timeout(raw: str) -> Optional[float]:
    """Positive number of seconds, or None for no timeout."""
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


# Unset by default: outbound calls wait indefinitely
API_TIMEOUT_SECONDS: Optional[float] = _parse_timeout(os.environ.get("ORDERCORE_API_TIMEOUT_SECONDS", ""))

# Location cache
LOCATION_TTL_MS = int(os.environ.get("ORDERCORE_LOCATION_TTL_MS", str(60 * 60 * 1000)))
ADDRESS_MAX_LENGTH = int(os.environ.get("ORDERCORE_ADDRESS_MAX_LENGTH", "35"))
ADDRESS_TRUNCATE_AT = ADDRESS_MAX_LENGTH - 3

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")
