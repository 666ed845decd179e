"""
Script to check delivery availability for a coordinate against the backend
Usage: python scripts/check_delivery.py <latitude> <longitude>
"""
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

sys.path.insert(0, str(Path(__file__).parent.parent))


async def check_delivery(latitude: float, longitude: float) -> bool:
    """Run one unauthenticated delivery check and print the outcome"""
    from ordercore.api.client import ApiClient
    from ordercore.location.delivery import DeliveryEligibilityChecker

    async def no_token():
        return None

    api = ApiClient(token_provider=no_token, timeout=15.0)
    try:
        print(f"Checking delivery at {latitude}, {longitude} via {api.base_url}")
        result = await DeliveryEligibilityChecker(api).check_delivery_availability(latitude, longitude)
    finally:
        await api.aclose()

    if not result.success:
        print(f"Error ({result.kind.value}): {result.error}")
        return False

    data = result.data
    print(f"Can deliver: {data.can_deliver}")
    print(f"Message: {data.message}")
    if data.serviceable_kitchen_id is not None:
        print(f"Kitchen: {data.serviceable_kitchen_id}")
    if data.distance_to_kitchen_km is not None:
        print(f"Distance: {data.distance_to_kitchen_km:.2f} km")
    return True


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__.strip())
        sys.exit(2)
    ok = asyncio.run(check_delivery(float(sys.argv[1]), float(sys.argv[2])))
    sys.exit(0 if ok else 1)
