"""Pytest configuration and fixtures"""
import json
import os
from typing import Optional
from unittest.mock import AsyncMock

import httpx
import pytest

# Set test environment variables
os.environ.setdefault("ORDERCORE_API_BASE_URL", "https://api.test/api/v1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from ordercore.api.client import ApiClient  # noqa: E402
from ordercore.api.schemas import User  # noqa: E402
from ordercore.app import AppServices  # noqa: E402
from ordercore.location.models import Coordinates, GeoAddress  # noqa: E402
from ordercore.storage import MemoryStorage, StorageKeys  # noqa: E402

BASE_URL = "https://api.test/api/v1"
API_PREFIX = "/api/v1"
NOW_MS = 1_700_000_000_000

MEAL_CATALOG = {
    42: {"name": "Grilled Chicken Bowl", "price": 249.0},
    7: {"name": "Paneer Tikka Wrap", "price": 189.5},
    9: {"name": "Egg White Omelette", "price": 120.0},
}


class FakeBackend:
    """
    In-process stand-in for the REST backend, served through httpx.MockTransport.

    Prices and totals are computed here, the way the real server does it.
    """

    def __init__(self):
        self.valid_tokens = {"T1"}
        self.profile = {
            "id": 1,
            "username": "9999999999",
            "firstName": "Asha",
            "lastName": "Rao",
            "roles": ["ROLE_USER"],
        }
        self.otp = "123456"
        self.items: dict[int, dict] = {}
        self.next_item_id = 100
        self.requests: list[httpx.Request] = []
        self.overrides: list[tuple[str, str, httpx.Response]] = []
        self.delivery = {
            "canDeliver": True,
            "message": "Delivery available",
            "serviceableKitchenId": 3,
            "distanceToKitchenKm": 2.4,
        }
        self.on_request = None  # optional hook(request) for observing client state mid-call

    # ---- test helpers ----

    def override(self, method: str, path: str, response: httpx.Response) -> None:
        """Serve `response` once for the next matching request."""
        self.overrides.append((method, path, response))

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> list[tuple[str, str]]:
        seen = [(r.method, r.url.path[len(API_PREFIX):]) for r in self.requests]
        return [c for c in seen if (method is None or c[0] == method) and (path is None or c[1] == path)]

    def cart_body(self) -> dict:
        items = []
        for item_id, line in sorted(self.items.items()):
            meal = MEAL_CATALOG.get(line["mealId"], {"name": "Custom Bowl", "price": line.get("price", 0.0)})
            price = line.get("price", meal["price"])
            items.append({
                "cartItemId": item_id,
                "mealId": line["mealId"],
                "mealName": meal["name"],
                "mealImageUrl": f"https://img.test/{line['mealId']}.jpg",
                "quantity": line["quantity"],
                "pricePerItem": price,
                "subTotal": price * line["quantity"],
                "custom": line.get("custom", False),
            })
        return {
            "cartId": 500,
            "items": items,
            "grandTotal": sum(i["subTotal"] for i in items),
            "totalItems": sum(i["quantity"] for i in items),
            "uniqueItems": len(items),
        }

    # ---- transport ----

    def _authorized(self, request: httpx.Request) -> bool:
        header = request.headers.get("Authorization", "")
        return header.startswith("Bearer ") and header[len("Bearer "):] in self.valid_tokens

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        method = request.method
        path = request.url.path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else {}

        for index, (o_method, o_path, response) in enumerate(self.overrides):
            if o_method == method and o_path == path:
                del self.overrides[index]
                return response

        if path == "/auth/otp/send" and method == "POST":
            return httpx.Response(200, json={"success": True})

        if path == "/auth/otp/verify" and method == "POST":
            if body.get("otp") != self.otp:
                return httpx.Response(400, json={"message": "Invalid OTP"})
            return httpx.Response(200, json={"jwtResponse": {
                "id": 1, "token": "T1", "type": "Bearer", "firstName": "Asha",
                "lastName": "Rao", "email": "asha@example.com", "roles": ["ROLE_USER"],
            }})

        if path == "/location/check-delivery" and method == "POST":
            return httpx.Response(200, json=self.delivery)

        if not self._authorized(request):
            return httpx.Response(401, json={"message": "Unauthorized"})

        if path == "/auth/validate-token" and method == "GET":
            return httpx.Response(200, json=self.profile)

        if path == "/cart" and method == "GET":
            return httpx.Response(200, json=self.cart_body())

        if path == "/cart/items" and method == "POST":
            for line in self.items.values():
                if line["mealId"] == body["mealId"] and not line.get("custom"):
                    line["quantity"] += body["quantity"]
                    return httpx.Response(200, json={"message": "Item added"})
            self.items[self.next_item_id] = {"mealId": body["mealId"], "quantity": body["quantity"]}
            self.next_item_id += 1
            return httpx.Response(201, json={"message": "Item added"})

        if path == "/cart/items/custom" and method == "POST":
            self.items[self.next_item_id] = {
                "mealId": 1000 + self.next_item_id,
                "quantity": 1,
                "custom": True,
                "price": body.get("totalPrice", 0.0),
            }
            self.next_item_id += 1
            return httpx.Response(201, json={"message": "Custom meal added"})

        if path.startswith("/cart/items/"):
            item_id = int(path.rsplit("/", 1)[1])
            if item_id not in self.items:
                return httpx.Response(404, json={"message": "Cart item not found"})
            if method == "PUT":
                self.items[item_id]["quantity"] = body["quantity"]
                return httpx.Response(200, json={"message": "Updated"})
            if method == "DELETE":
                del self.items[item_id]
                return httpx.Response(204)

        return httpx.Response(404, json={"message": "Not found"})


class FakeClock:
    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def transport(backend):
    return httpx.MockTransport(backend.handler)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def location_provider():
    """Mock platform location API: permission granted, Bengaluru coordinates"""
    provider = AsyncMock()
    provider.get_permission_status = AsyncMock(return_value="granted")
    provider.request_permission = AsyncMock(return_value="granted")
    provider.get_current_position = AsyncMock(return_value=Coordinates(12.9716, 77.5946))
    provider.reverse_geocode = AsyncMock(return_value=[
        GeoAddress(name="12", street="MG Road", district="Ashok Nagar", city="Bengaluru"),
    ])
    return provider


@pytest.fixture
def services(storage, location_provider, transport, clock):
    return AppServices(
        storage=storage,
        location_provider=location_provider,
        base_url=BASE_URL,
        transport=transport,
        clock=clock,
    )


@pytest.fixture
def api_client(transport, storage):
    async def token_provider():
        return await storage.get(StorageKeys.AUTH_TOKEN)

    return ApiClient(token_provider=token_provider, base_url=BASE_URL, transport=transport)


@pytest.fixture
def sample_user():
    return User(id=1, first_name="Asha", last_name="Rao", email="asha@example.com", roles=["ROLE_USER"])
