"""
Application services - built once per process and passed by reference.

The host app constructs one AppServices at start-up and hands its members
to whatever needs them; there are no module-level singletons.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ordercore.api.client import ApiClient, ApiResult
from ordercore.api.schemas import DeliveryAvailability
from ordercore.auth.credentials import CredentialStore
from ordercore.auth.session import SessionManager, SessionStatus
from ordercore.cart.service import CartSynchronizer
from ordercore.location.cache import Clock, LocationCache, now_ms
from ordercore.location.delivery import DeliveryEligibilityChecker
from ordercore.location.models import LocationRecord
from ordercore.location.provider import LocationProvider
from ordercore.logging import get_logger
from ordercore.storage import KeyValueStorage, create_storage

logger = get_logger(__name__)


@dataclass
class DeliveryStatus:
    """Outcome of a location refresh followed by a delivery check."""
    location: Optional[LocationRecord] = None
    availability: Optional[ApiResult[DeliveryAvailability]] = None

    @property
    def can_deliver(self) -> bool:
        return bool(
            self.availability
            and self.availability.success
            and self.availability.data is not None
            and self.availability.data.can_deliver
        )

    @property
    def banner_message(self) -> Optional[str]:
        """Persistent banner text: the server's message verbatim when delivery is unavailable."""
        if self.availability is None:
            return None
        if not self.availability.success:
            return self.availability.user_message
        data = self.availability.data
        if data is not None and not data.can_deliver:
            return data.message
        return None


class AppServices:
    """Container for the core services of one running app."""

    def __init__(
        self,
        storage: KeyValueStorage,
        location_provider: LocationProvider,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Clock = now_ms,
    ):
        self.storage = storage
        self.credentials = CredentialStore(storage)
        self.api = ApiClient(
            token_provider=self.credentials.get_token,
            base_url=base_url,
            transport=transport,
        )
        self.session = SessionManager(self.credentials, self.api)
        self.cart = CartSynchronizer(self.api, self.session)
        self.location = LocationCache(storage, location_provider, clock=clock)
        self.delivery = DeliveryEligibilityChecker(self.api)

    async def startup(self) -> SessionStatus:
        return await self.session.initialize()

    async def shutdown(self) -> None:
        await self.api.aclose()

    async def refresh_delivery_status(self, user_initiated: bool = True) -> DeliveryStatus:
        """
        Resolve a location and re-check delivery for it.

        No location (permission refused, device read failed) means no check.
        """
        record = await self.location.resolve_location(user_initiated=user_initiated)
        if record is None:
            return DeliveryStatus()
        availability = await self.delivery.check_location(record)
        return DeliveryStatus(location=record, availability=availability)


def create_app_services(
    location_provider: LocationProvider,
    storage: Optional[KeyValueStorage] = None,
    device_id: str = "default",
    **kwargs,
) -> AppServices:
    """Build the service graph once at process start."""
    return AppServices(
        storage=storage or create_storage(device_id),
        location_provider=location_provider,
        **kwargs,
    )
