"""Delivery Eligibility Checker - stateless check over coordinates.

Nothing is cached: serviceable zones change server-side, so every location
refresh re-asks the backend. can_deliver=False is a successful result whose
message is shown verbatim.
"""
from ordercore.api.client import ApiClient, ApiResult
from ordercore.api.schemas import DeliveryAvailability
from ordercore.location.models import LocationRecord
from ordercore.logging import get_logger, sanitize_string_for_logging

logger = get_logger(__name__)


class DeliveryEligibilityChecker:

    def __init__(self, api: ApiClient):
        self.api = api

    async def check_delivery_availability(
        self, latitude: float, longitude: float
    ) -> ApiResult[DeliveryAvailability]:
        result = await self.api.check_delivery_availability(latitude, longitude)
        if result.success and result.data is not None:
            logger.info(
                f"Delivery check: can_deliver={result.data.can_deliver}, "
                f"message={sanitize_string_for_logging(result.data.message)}"
            )
        return result

    async def check_location(self, record: LocationRecord) -> ApiResult[DeliveryAvailability]:
        return await self.check_delivery_availability(record.latitude, record.longitude)
