"""
Storage Module - persisted key/value state

Holds the values that must survive an app restart:
- auth_token   (string)
- user_data    (JSON User)
- user_location (JSON LocationRecord)

Each key has exactly one writer (its owning manager), so no locking is done.
"""

from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis

from ordercore import config
from ordercore.logging import get_logger

logger = get_logger(__name__)


class StorageKeys:
    """Persisted keys."""

    AUTH_TOKEN = "auth_token"
    USER_DATA = "user_data"
    USER_LOCATION = "user_location"


class KeyValueStorage:
    """Async string key/value store."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """Process-local store. Used in tests and when Redis is not configured."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class RedisStorage(KeyValueStorage):
    """
    Upstash Redis backed store.

    Keys are namespaced per device so one Redis database can hold
    several installs: {prefix}{device_id}:{key}
    """

    PREFIX = "ordercore:"

    def __init__(self, device_id: str, client: Optional[AsyncRedis] = None):
        self.device_id = device_id
        self._redis = client  # Lazy initialization

    @property
    def redis(self) -> AsyncRedis:
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
                raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
            self._redis = AsyncRedis(
                url=config.UPSTASH_REDIS_REST_URL,
                token=config.UPSTASH_REDIS_REST_TOKEN,
            )
        return self._redis

    def _key(self, key: str) -> str:
        return f"{self.PREFIX}{self.device_id}:{key}"

    async def get(self, key: str) -> Optional[str]:
        value = await self.redis.get(self._key(key))
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))


def create_storage(device_id: str = "default") -> KeyValueStorage:
    """Redis when Upstash credentials are configured, memory otherwise."""
    if config.UPSTASH_REDIS_REST_URL and config.UPSTASH_REDIS_REST_TOKEN:
        logger.info("Using Upstash Redis storage")
        return RedisStorage(device_id)
    logger.warning("Upstash Redis not configured; persisted state will not survive restarts")
    return MemoryStorage()
