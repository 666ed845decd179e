"""Credential Store - persists the session token and last-known user profile."""
import json
from typing import Optional

from pydantic import ValidationError

from ordercore.api.schemas import JwtResponse, User
from ordercore.logging import get_logger, sanitize_id_for_logging
from ordercore.storage import KeyValueStorage, StorageKeys

logger = get_logger(__name__)


class CredentialStore:
    """
    Token and profile persistence across restarts.

    Storage exceptions propagate from save/remove; the session manager
    decides which of them may be ignored. Reads of a corrupted profile
    return None and drop the bad value.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    async def save_token(self, token: str) -> None:
        await self.storage.set(StorageKeys.AUTH_TOKEN, token)

    async def get_token(self) -> Optional[str]:
        return await self.storage.get(StorageKeys.AUTH_TOKEN)

    async def remove_token(self) -> None:
        await self.storage.delete(StorageKeys.AUTH_TOKEN)

    async def save_user(self, user: User) -> None:
        await self.storage.set(StorageKeys.USER_DATA, json.dumps(user.to_wire()))

    async def get_user(self) -> Optional[User]:
        raw = await self.storage.get(StorageKeys.USER_DATA)
        if not raw:
            return None
        try:
            return User.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            # Corrupted profile - clear it and fall back to a refresh
            logger.warning(f"Corrupted user_data, discarding: {type(e).__name__}")
            await self.storage.delete(StorageKeys.USER_DATA)
            return None

    async def remove_user(self) -> None:
        await self.storage.delete(StorageKeys.USER_DATA)

    async def save_auth_data(self, jwt: JwtResponse) -> User:
        """Persist token and profile from an OTP verification response."""
        user = jwt.to_user()
        await self.save_token(jwt.token)
        await self.save_user(user)
        logger.info(f"Saved credentials for user {sanitize_id_for_logging(user.id)}")
        return user

    async def clear_auth_data(self) -> None:
        """Remove token and profile; the profile is removed even if the token delete fails."""
        try:
            await self.remove_token()
        finally:
            await self.remove_user()
