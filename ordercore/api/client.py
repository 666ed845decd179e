"""
Backend API Client

Single gateway to the REST backend. Every call returns an ApiResult;
transport failures, non-2xx statuses and malformed bodies are folded into
that shape and never raised to the caller.

Authenticated calls attach `Authorization: Bearer <token>`. A 401 on any of
them runs the unauthorized handler (the session's logout) before the
failure is returned.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ordercore import config
from ordercore.api.schemas import (
    CartSnapshot,
    CustomMealSelection,
    DeliveryAvailability,
    ErrorBody,
    OtpSendResponse,
    OtpVerifyResponse,
    ValidateTokenResponse,
)
from ordercore.errors import (
    ERROR_ADD_TO_CART,
    ERROR_DELIVERY_CHECK,
    ERROR_FETCH_CART,
    ERROR_GENERIC_RETRY,
    ERROR_INVALID_OTP,
    ERROR_MALFORMED_RESPONSE,
    ERROR_NO_TOKEN,
    ERROR_REMOVE_FROM_CART,
    ERROR_SEND_OTP,
    ERROR_SOMETHING_WENT_WRONG,
    ERROR_TOKEN_INVALID,
    ERROR_UPDATE_CART_ITEM,
    GENERIC_KINDS,
    ErrorKind,
    request_failed,
)
from ordercore.logging import get_logger, mask_phone_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

TokenProvider = Callable[[], Awaitable[Optional[str]]]
UnauthorizedHandler = Callable[[], Awaitable[None]]

_USE_CONFIG = object()


@dataclass
class ApiResult(Generic[T]):
    """Uniform result of every backend call."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, status_code: Optional[int] = None) -> "ApiResult[T]":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(
        cls,
        error: str,
        kind: ErrorKind,
        status_code: Optional[int] = None,
    ) -> "ApiResult[T]":
        return cls(success=False, error=error, kind=kind, status_code=status_code)

    @property
    def user_message(self) -> Optional[str]:
        """Text to show the user: generic for faults, server text for everything else."""
        if self.success:
            return None
        if self.kind in GENERIC_KINDS:
            return ERROR_GENERIC_RETRY
        return self.error or ERROR_GENERIC_RETRY


class ApiClient:
    """
    Async REST client for the ordering backend.

    Usage:
        client = ApiClient(token_provider=credentials.get_token)
        client.set_unauthorized_handler(session.logout)
        result = await client.get_cart()
        if result.success:
            snapshot = result.data
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: Optional[str] = None,
        timeout: Any = _USE_CONFIG,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        # None means no timeout at all, not httpx's 5s default
        self.timeout: Optional[float] = config.API_TIMEOUT_SECONDS if timeout is _USE_CONFIG else timeout
        self._token_provider = token_provider
        self._unauthorized_handler: Optional[UnauthorizedHandler] = None
        self._transport = transport

        # HTTP client (lazy init)
        self._http_client: Optional[httpx.AsyncClient] = None

    def set_unauthorized_handler(self, handler: Optional[UnauthorizedHandler]) -> None:
        self._unauthorized_handler = handler

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of the shared httpx client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ==================== Plumbing ====================

    async def _send(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        client = await self._get_http_client()
        return await client.request(method, path, json=json, headers=headers)

    async def _on_unauthorized(self, path: str) -> None:
        logger.warning(f"401 from {path}; invalidating session")
        if self._unauthorized_handler is None:
            return
        try:
            await self._unauthorized_handler()
        except Exception:
            logger.exception("Unauthorized handler failed")

    @staticmethod
    def _error_message(response: httpx.Response, default_error: Optional[str]) -> str:
        """Server-supplied message when present, else a status-based one."""
        try:
            body = ErrorBody.model_validate(response.json())
            if body.message:
                return body.message
            if body.error:
                return body.error
        except (ValueError, ValidationError, TypeError):
            pass
        return default_error or request_failed(response.status_code)

    @staticmethod
    def _parse(response: httpx.Response, schema: type[M], path: str) -> ApiResult[M]:
        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Non-JSON body from {path} (status {response.status_code})")
            return ApiResult.fail(ERROR_MALFORMED_RESPONSE, ErrorKind.VALIDATION, response.status_code)
        try:
            return ApiResult.ok(schema.model_validate(payload), response.status_code)
        except ValidationError as e:
            logger.warning(f"Malformed body from {path}: {e.error_count()} validation error(s)")
            return ApiResult.fail(ERROR_MALFORMED_RESPONSE, ErrorKind.VALIDATION, response.status_code)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        schema: Optional[type[M]] = None,
        default_error: Optional[str] = None,
        token: Optional[str] = None,
        tolerate_not_found: bool = False,
    ) -> ApiResult:
        headers = {"Authorization": f"Bearer {token}"} if token else None

        try:
            response = await self._send(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}: {e}")
            return ApiResult.fail(str(e) or ERROR_SOMETHING_WENT_WRONG, ErrorKind.TRANSPORT)
        except Exception as e:
            logger.exception(f"Unexpected error during {method} {path}")
            return ApiResult.fail(str(e) or ERROR_SOMETHING_WENT_WRONG, ErrorKind.TRANSPORT)

        status = response.status_code

        if token and status == 401:
            await self._on_unauthorized(path)
            return ApiResult.fail(
                self._error_message(response, ERROR_TOKEN_INVALID),
                ErrorKind.UNAUTHORIZED,
                status,
            )

        if tolerate_not_found and status == 404:
            logger.info(f"{method} {path} returned 404; treating as already applied")
            return ApiResult.ok(None, status)

        if not response.is_success:
            message = self._error_message(response, default_error)
            logger.info(f"{method} {path} -> {status}: {sanitize_string_for_logging(message)}")
            return ApiResult.fail(message, ErrorKind.HTTP, status)

        if schema is None:
            return ApiResult.ok(None, status)
        return self._parse(response, schema, path)

    async def _authenticated_request(self, method: str, path: str, **kwargs) -> ApiResult:
        try:
            token = await self._token_provider()
        except Exception:
            logger.exception("Failed to read stored token")
            token = None
        if not token:
            return ApiResult.fail(ERROR_NO_TOKEN, ErrorKind.NO_TOKEN)
        return await self._request(method, path, token=token, **kwargs)

    # ==================== Auth ====================

    async def send_otp(self, phone_number: str) -> ApiResult[OtpSendResponse]:
        """POST /auth/otp/send"""
        logger.info(f"Sending OTP to {mask_phone_for_logging(phone_number)}")
        return await self._request(
            "POST", "/auth/otp/send",
            json={"phoneNumber": phone_number},
            schema=OtpSendResponse,
            default_error=ERROR_SEND_OTP,
        )

    async def verify_otp(self, phone_number: str, otp: str) -> ApiResult[OtpVerifyResponse]:
        """POST /auth/otp/verify"""
        return await self._request(
            "POST", "/auth/otp/verify",
            json={"phoneNumber": phone_number, "otp": otp},
            schema=OtpVerifyResponse,
            default_error=ERROR_INVALID_OTP,
        )

    async def validate_token(self) -> ApiResult[ValidateTokenResponse]:
        """GET /auth/validate-token. Any non-2xx means the session is invalid."""
        return await self._authenticated_request(
            "GET", "/auth/validate-token",
            schema=ValidateTokenResponse,
            default_error=ERROR_TOKEN_INVALID,
        )

    # ==================== Delivery ====================

    async def check_delivery_availability(
        self, latitude: float, longitude: float
    ) -> ApiResult[DeliveryAvailability]:
        """POST /location/check-delivery (unauthenticated)."""
        return await self._request(
            "POST", "/location/check-delivery",
            json={"latitude": latitude, "longitude": longitude},
            schema=DeliveryAvailability,
            default_error=ERROR_DELIVERY_CHECK,
        )

    # ==================== Cart ====================

    async def get_cart(self) -> ApiResult[CartSnapshot]:
        return await self._authenticated_request(
            "GET", "/cart", schema=CartSnapshot, default_error=ERROR_FETCH_CART,
        )

    async def add_to_cart(self, meal_id: int, quantity: int) -> ApiResult[None]:
        return await self._authenticated_request(
            "POST", "/cart/items",
            json={"mealId": meal_id, "quantity": quantity},
            default_error=ERROR_ADD_TO_CART,
        )

    async def add_custom_meal_to_cart(self, selection: CustomMealSelection) -> ApiResult[None]:
        return await self._authenticated_request(
            "POST", "/cart/items/custom",
            json=selection.to_wire(),
            default_error=ERROR_ADD_TO_CART,
        )

    async def update_cart_item(self, cart_item_id: int, quantity: int) -> ApiResult[None]:
        """PUT an absolute quantity, never a delta."""
        return await self._authenticated_request(
            "PUT", f"/cart/items/{cart_item_id}",
            json={"quantity": quantity},
            default_error=ERROR_UPDATE_CART_ITEM,
        )

    async def remove_from_cart(self, cart_item_id: int) -> ApiResult[None]:
        """DELETE a line. A 404 means it is already gone and counts as success."""
        return await self._authenticated_request(
            "DELETE", f"/cart/items/{cart_item_id}",
            default_error=ERROR_REMOVE_FROM_CART,
            tolerate_not_found=True,
        )
