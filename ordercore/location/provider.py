"""Platform port for permissions, positioning and reverse geocoding.

The host app supplies an object with these four coroutines; the core never
talks to device APIs directly.
"""
from typing import Protocol, Sequence, Union

from ordercore.location.models import Coordinates, GeoAddress, LocationAccuracy, PermissionState

PlatformPermission = Union[PermissionState, str]


class LocationProvider(Protocol):

    async def get_permission_status(self) -> PlatformPermission:
        """Current foreground permission, without prompting."""
        ...

    async def request_permission(self) -> PlatformPermission:
        """Show the system prompt once and return the outcome."""
        ...

    async def get_current_position(self, accuracy: LocationAccuracy) -> Coordinates:
        ...

    async def reverse_geocode(self, latitude: float, longitude: float) -> Sequence[GeoAddress]:
        ...
