"""
Location Cache - device coordinates with a bounded staleness window.

A record is fresh iff now - timestamp < TTL (1 hour by default). Stale and
missing records look the same to callers: both are None.

Automatic reads (screen visits) go through the cache and never prompt for
permission; user-initiated refreshes bypass the cache and may prompt once.
"""

import json
import time
from typing import Callable, Optional

from pydantic import ValidationError

from ordercore import config
from ordercore.location.models import (
    Coordinates,
    GeoAddress,
    LocationAccuracy,
    LocationRecord,
    PermissionState,
)
from ordercore.location.provider import LocationProvider
from ordercore.logging import get_logger
from ordercore.storage import KeyValueStorage, StorageKeys

logger = get_logger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def format_address(
    address: GeoAddress,
    max_length: int = config.ADDRESS_MAX_LENGTH,
    truncate_at: int = config.ADDRESS_TRUNCATE_AT,
) -> str:
    """Short display address: "name, street, district, city", cut with an ellipsis."""
    parts = [part for part in (address.name, address.street, address.district, address.city) if part]
    formatted = ", ".join(parts)
    if len(formatted) > max_length:
        return formatted[:truncate_at] + "..."
    return formatted


class LocationCache:
    """Owner of the persisted user_location key."""

    def __init__(
        self,
        storage: KeyValueStorage,
        provider: LocationProvider,
        clock: Clock = now_ms,
        ttl_ms: int = config.LOCATION_TTL_MS,
    ):
        self.storage = storage
        self.provider = provider
        self.clock = clock
        self.ttl_ms = ttl_ms

    # ==================== Permissions ====================

    async def get_permission_status(self) -> PermissionState:
        try:
            return PermissionState.from_platform(await self.provider.get_permission_status())
        except Exception:
            logger.exception("Failed to read location permission")
            return PermissionState.UNDETERMINED

    async def request_permissions(self) -> PermissionState:
        """One system prompt per call; no retry."""
        try:
            return PermissionState.from_platform(await self.provider.request_permission())
        except Exception:
            logger.exception("Location permission request failed")
            return PermissionState.UNDETERMINED

    # ==================== Cache ====================

    async def get_cached_location(self) -> Optional[LocationRecord]:
        try:
            raw = await self.storage.get(StorageKeys.USER_LOCATION)
        except Exception:
            logger.exception("Error reading cached location")
            return None
        if not raw:
            return None

        try:
            record = LocationRecord.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError):
            logger.warning("Cached location is malformed; ignoring it")
            return None

        if record.is_fresh(self.clock(), self.ttl_ms):
            return record
        return None

    async def cache_location(self, record: LocationRecord) -> bool:
        try:
            await self.storage.set(StorageKeys.USER_LOCATION, json.dumps(record.to_wire()))
            return True
        except Exception:
            logger.exception("Error caching location")
            return False

    # ==================== Device reads ====================

    async def _reverse_geocode(self, coords: Coordinates) -> Optional[str]:
        """Best-effort short address; None when geocoding fails or finds nothing."""
        try:
            results = await self.provider.reverse_geocode(coords.latitude, coords.longitude)
        except Exception as e:
            logger.warning(f"Failed to get address: {e}")
            return None
        if not results:
            return None
        return format_address(results[0]) or None

    async def get_current_location(self) -> Optional[LocationRecord]:
        """
        Read the device position now, bypassing the cache.

        Returns None without touching the cache unless permission is granted.
        A geocoding failure still yields a record, just without an address.
        """
        permission = await self.get_permission_status()
        if permission is not PermissionState.GRANTED:
            logger.info(f"Location read skipped: permission {permission.value}")
            return None

        try:
            coords = await self.provider.get_current_position(LocationAccuracy.BALANCED)
        except Exception:
            logger.exception("Error getting current location")
            return None

        record = LocationRecord(
            latitude=coords.latitude,
            longitude=coords.longitude,
            address=await self._reverse_geocode(coords),
            timestamp=self.clock(),
        )
        await self.cache_location(record)
        return record

    async def resolve_location(self, user_initiated: bool = False) -> Optional[LocationRecord]:
        """
        Location for a screen.

        Automatic: fresh cache, else a device read only if permission is
        already granted. User-initiated: prompt if needed, then a device read.
        """
        if not user_initiated:
            cached = await self.get_cached_location()
            if cached is not None:
                return cached
            if await self.get_permission_status() is not PermissionState.GRANTED:
                return None
            return await self.get_current_location()

        permission = await self.get_permission_status()
        if permission is not PermissionState.GRANTED:
            permission = await self.request_permissions()
            if permission is not PermissionState.GRANTED:
                return None
        return await self.get_current_location()
