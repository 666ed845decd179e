"""Location package: permission-gated position cache and delivery checks."""
from .cache import LocationCache, format_address
from .delivery import DeliveryEligibilityChecker
from .models import Coordinates, GeoAddress, LocationAccuracy, LocationRecord, PermissionState
from .provider import LocationProvider

__all__ = [
    "Coordinates",
    "DeliveryEligibilityChecker",
    "GeoAddress",
    "LocationAccuracy",
    "LocationCache",
    "LocationProvider",
    "LocationRecord",
    "PermissionState",
    "format_address",
]
