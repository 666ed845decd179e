"""Tests for delivery eligibility and the location-refresh flow"""
import json

import httpx
import pytest

from ordercore.errors import ERROR_GENERIC_RETRY, ErrorKind
from ordercore.location import DeliveryEligibilityChecker


@pytest.mark.asyncio
async def test_out_of_zone_is_a_successful_result(api_client, backend):
    backend.delivery = {"canDeliver": False, "message": "Out of zone"}

    result = await DeliveryEligibilityChecker(api_client).check_delivery_availability(28.61, 77.20)

    assert result.success is True
    assert result.data.can_deliver is False
    assert result.data.message == "Out of zone"
    assert result.data.serviceable_kitchen_id is None


@pytest.mark.asyncio
async def test_every_check_hits_the_backend(api_client, backend):
    checker = DeliveryEligibilityChecker(api_client)

    await checker.check_delivery_availability(12.97, 77.59)
    await checker.check_delivery_availability(12.97, 77.59)

    assert len(backend.calls("POST", "/location/check-delivery")) == 2


@pytest.mark.asyncio
async def test_request_body(api_client, backend):
    await DeliveryEligibilityChecker(api_client).check_delivery_availability(12.5, 77.25)

    assert json.loads(backend.requests[-1].content) == {"latitude": 12.5, "longitude": 77.25}


@pytest.mark.asyncio
async def test_kitchen_details(api_client):
    result = await DeliveryEligibilityChecker(api_client).check_delivery_availability(12.97, 77.59)

    assert result.data.serviceable_kitchen_id == 3
    assert result.data.distance_to_kitchen_km == pytest.approx(2.4)


class TestRefreshDeliveryStatus:

    @pytest.mark.asyncio
    async def test_banner_shows_server_message_verbatim(self, services, backend):
        backend.delivery = {"canDeliver": False, "message": "Out of zone"}

        status = await services.refresh_delivery_status()

        assert status.location is not None
        assert status.can_deliver is False
        assert status.banner_message == "Out of zone"

    @pytest.mark.asyncio
    async def test_deliverable_has_no_banner(self, services):
        status = await services.refresh_delivery_status()

        assert status.can_deliver is True
        assert status.banner_message is None

    @pytest.mark.asyncio
    async def test_check_uses_fresh_coordinates(self, services, backend):
        await services.refresh_delivery_status()

        import json
        body = json.loads(backend.requests[-1].content)
        assert body == {"latitude": 12.9716, "longitude": 77.5946}

    @pytest.mark.asyncio
    async def test_no_location_means_no_check(self, services, backend, location_provider):
        location_provider.get_permission_status.return_value = "denied"
        location_provider.request_permission.return_value = "denied"

        status = await services.refresh_delivery_status()

        assert status.location is None
        assert status.availability is None
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_malformed_response_shows_generic_message(self, services, backend):
        backend.override(
            "POST", "/location/check-delivery", httpx.Response(200, json={"message": "missing flag"}),
        )

        status = await services.refresh_delivery_status()

        assert status.availability.kind is ErrorKind.VALIDATION
        assert status.banner_message == ERROR_GENERIC_RETRY
