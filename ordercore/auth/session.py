"""
Session Manager - owns authentication state.

State machine:
    uninitialized -> validating            (token found at startup)
    uninitialized -> unauthenticated       (no token at startup)
    validating    -> authenticated | unauthenticated
    authenticated -> unauthenticated       (logout, or any 401)

Validation is re-entered only by a new process calling initialize().
Every failure path is fail-closed: it ends in logout().
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from ordercore.api.client import ApiClient, ApiResult
from ordercore.api.schemas import User
from ordercore.auth.credentials import CredentialStore
from ordercore.errors import ERROR_SAVE_CREDENTIALS, ERROR_TOKEN_NOT_RECEIVED, ErrorKind
from ordercore.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class Session:
    """Immutable view of the current session."""
    status: SessionStatus
    token: Optional[str] = None
    user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED


SessionListener = Callable[[Session], Awaitable[None]]


class SessionManager:
    """
    Authentication state reconciled against the token-validation endpoint.

    Registers its own logout() as the API client's 401 handler, so any
    authenticated call that comes back 401 ends the session before the
    caller sees the failure.
    """

    def __init__(self, credentials: CredentialStore, api: ApiClient):
        self.credentials = credentials
        self.api = api
        self.loading = False
        self._session = Session(SessionStatus.UNINITIALIZED)
        self._listeners: list[SessionListener] = []
        api.set_unauthorized_handler(self.logout)

    # ==================== State ====================

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def user(self) -> Optional[User]:
        return self._session.user

    @property
    def token(self) -> Optional[str]:
        return self._session.token

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a transition callback. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _transition(
        self,
        status: SessionStatus,
        token: Optional[str] = None,
        user: Optional[User] = None,
    ) -> None:
        previous = self._session
        self._session = Session(status, token, user)

        if previous.status is status and previous.token == token:
            return

        logger.info(f"Session {previous.status.value} -> {status.value}")
        for listener in list(self._listeners):
            try:
                await listener(self._session)
            except Exception:
                logger.exception("Session listener failed")

    # ==================== Operations ====================

    async def initialize(self) -> SessionStatus:
        """Startup reconciliation. Runs once per process."""
        if self.status is not SessionStatus.UNINITIALIZED:
            return self.status

        self.loading = True
        try:
            token = await self.credentials.get_token()
            if not token:
                await self._transition(SessionStatus.UNAUTHENTICATED)
                return self.status

            await self._transition(SessionStatus.VALIDATING, token)
            result = await self.api.validate_token()
            if not (result.success and result.data):
                logger.info(f"Stored token rejected: {sanitize_string_for_logging(result.error)}")
                await self.logout()
                return self.status

            user = await self.credentials.get_user()
            if user:
                await self._transition(SessionStatus.AUTHENTICATED, token, user)
            else:
                # Token is good but the profile is gone
                await self.refresh_user()
        except Exception:
            logger.exception("Session initialization failed")
            await self.logout()
        finally:
            self.loading = False
        return self.status

    async def login(self, token: str, user: User) -> bool:
        """
        Persist credentials obtained by OTP verification. No network call.

        The API client reads its Bearer token from storage, so a session whose
        token could not be saved is unusable: it ends unauthenticated instead.
        """
        try:
            await self.credentials.save_token(token)
            await self.credentials.save_user(user)
        except Exception:
            logger.exception("Failed to persist credentials; login aborted")
            await self.logout()
            return False
        logger.info(f"Logged in user {sanitize_id_for_logging(user.id)}")
        await self._transition(SessionStatus.AUTHENTICATED, token, user)
        return True

    async def logout(self) -> None:
        """Clear credentials and end the session. Never fails."""
        try:
            await self.credentials.clear_auth_data()
        except Exception:
            logger.exception("Failed to clear stored credentials; logging out anyway")
        await self._transition(SessionStatus.UNAUTHENTICATED)

    async def refresh_user(self) -> bool:
        """Re-validate the token and rehydrate the profile. Any failure logs out."""
        self.loading = True
        try:
            result = await self.api.validate_token()
            if not (result.success and result.data):
                logger.info(f"Token validation failed: {sanitize_string_for_logging(result.error)}")
                await self.logout()
                return False

            token = self.token or await self.credentials.get_token()
            if not token:
                await self.logout()
                return False

            user = result.data.to_user()
            try:
                await self.credentials.save_user(user)
            except Exception:
                logger.exception("Failed to persist refreshed profile")
            await self._transition(SessionStatus.AUTHENTICATED, token, user)
            return True
        except Exception:
            logger.exception("Unexpected error refreshing user")
            await self.logout()
            return False
        finally:
            self.loading = False

    # ==================== OTP flow ====================

    async def send_otp(self, phone_number: str) -> ApiResult:
        return await self.api.send_otp(phone_number)

    async def verify_otp(self, phone_number: str, otp: str) -> ApiResult[User]:
        """Verify the OTP and, on success, log in with the returned token."""
        result = await self.api.verify_otp(phone_number, otp)
        if not result.success:
            return ApiResult.fail(result.error, result.kind, result.status_code)

        jwt = result.data.jwt_response if result.data else None
        if jwt is None:
            return ApiResult.fail(ERROR_TOKEN_NOT_RECEIVED, ErrorKind.VALIDATION, result.status_code)

        user = jwt.to_user()
        if not await self.login(jwt.token, user):
            return ApiResult.fail(ERROR_SAVE_CREDENTIALS, ErrorKind.NO_TOKEN, result.status_code)
        return ApiResult.ok(user, result.status_code)
