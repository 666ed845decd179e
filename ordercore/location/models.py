"""Location models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import Field

from ordercore.api.schemas import ApiModel


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"

    @classmethod
    def from_platform(cls, raw) -> "PermissionState":
        """Normalize a platform status; anything unrecognized is undetermined."""
        if isinstance(raw, cls):
            return raw
        value = getattr(raw, "value", raw)
        if value == cls.GRANTED.value:
            return cls.GRANTED
        if value == cls.DENIED.value:
            return cls.DENIED
        return cls.UNDETERMINED


class LocationAccuracy(str, Enum):
    LOWEST = "lowest"
    LOW = "low"
    BALANCED = "balanced"
    HIGH = "high"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeoAddress:
    """Reverse-geocoding result; every part may be missing."""
    name: Optional[str] = None
    street: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class LocationRecord(ApiModel):
    """Device position persisted under user_location. timestamp is epoch ms."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    address: Optional[str] = None
    timestamp: int

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.timestamp

    def is_fresh(self, now_ms: int, ttl_ms: int) -> bool:
        # Future timestamps are stale
        return 0 <= self.age_ms(now_ms) < ttl_ms
