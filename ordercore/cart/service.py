"""Cart synchronizer - write-through cart backed by the remote cart store."""
from typing import Awaitable, Callable, Optional

from ordercore.api.client import ApiClient, ApiResult
from ordercore.api.schemas import CartSnapshot, CustomMealSelection
from ordercore.auth.session import Session, SessionManager
from ordercore.errors import (
    ERROR_ADD_TO_CART,
    ERROR_FETCH_CART,
    ERROR_GENERIC_RETRY,
    ERROR_INVALID_QUANTITY,
    ERROR_NOT_AUTHENTICATED,
    ERROR_REMOVE_FROM_CART,
    ERROR_UPDATE_CART_ITEM,
)
from ordercore.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)


class CartSynchronizer:
    """
    Local view of the server cart.

    Features:
    - `cart` is always either the last successful GET /cart result or None
    - Every mutation is write-through: mutate, then re-fetch, then replace
    - No local arithmetic on prices or quantities
    - Cleared the moment the session ends, fetched the moment it starts

    `loading` is true for the whole mutate-and-refetch cycle; the UI disables
    repeat taps while it is set.

    Usage:
        cart = CartSynchronizer(api, session)
        if await cart.add_to_cart(meal_id=42, quantity=2):
            stepper_value = cart.get_item_quantity(42)
    """

    def __init__(self, api: ApiClient, session: SessionManager):
        self.api = api
        self.session = session
        self.cart: Optional[CartSnapshot] = None
        self.error: Optional[str] = None
        self._pending = 0
        # Bumped on every session transition; results from an older session are dropped
        self._generation = 0
        session.subscribe(self.on_session_change)

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def total_items(self) -> int:
        """Badge count, straight from the server totals."""
        return self.cart.total_items if self.cart else 0

    # ==================== Session hook ====================

    async def on_session_change(self, session: Session) -> None:
        self._generation += 1
        if session.is_authenticated:
            await self.fetch_cart()
        else:
            self.cart = None
            self.error = None

    # ==================== Reads ====================

    async def _refetch(self) -> ApiResult[CartSnapshot]:
        """GET /cart and replace the snapshot wholesale on success."""
        generation = self._generation
        result = await self.api.get_cart()
        if generation != self._generation or not self.session.is_authenticated:
            logger.info("Discarding cart fetched for an ended session")
            return result
        if result.success and result.data is not None:
            self.cart = result.data
        return result

    async def fetch_cart(self) -> bool:
        if not self.session.is_authenticated:
            return False

        self._pending += 1
        self.error = None
        try:
            result = await self._refetch()
            if not result.success:
                self.error = result.user_message or ERROR_FETCH_CART
            return result.success
        except Exception:
            logger.exception("Unexpected error while fetching cart")
            self.error = ERROR_GENERIC_RETRY
            return False
        finally:
            self._pending -= 1

    def get_item_quantity(self, meal_id: int) -> int:
        """Quantity of a meal in the current snapshot, 0 if absent. No network."""
        if self.cart is None:
            return 0
        item = self.cart.find_by_meal(meal_id)
        return item.quantity if item else 0

    def clear_error(self) -> None:
        self.error = None

    # ==================== Mutations ====================

    async def _write_through(
        self,
        operation: str,
        call: Callable[[], Awaitable[ApiResult]],
        default_error: str,
    ) -> bool:
        """Run one mutation, then re-read the server cart regardless of its outcome."""
        if not self.session.is_authenticated:
            self.error = ERROR_NOT_AUTHENTICATED
            return False

        self._pending += 1
        self.error = None
        try:
            result = await call()
            if not result.success:
                logger.warning(f"Cart {operation} failed: {sanitize_string_for_logging(result.error)}")
                self.error = result.user_message or default_error

            # A 401 has already ended the session and cleared the cart
            if self.session.is_authenticated:
                refetched = await self._refetch()
                if result.success and not refetched.success:
                    self.error = refetched.user_message or ERROR_FETCH_CART
            return result.success
        except Exception:
            logger.exception(f"Unexpected error during cart {operation}")
            self.error = ERROR_GENERIC_RETRY
            return False
        finally:
            self._pending -= 1

    async def add_to_cart(self, meal_id: int, quantity: int) -> bool:
        if quantity < 1:
            self.error = ERROR_INVALID_QUANTITY
            return False
        logger.info(f"Adding meal {sanitize_id_for_logging(meal_id)} x{quantity}")
        return await self._write_through(
            "add",
            lambda: self.api.add_to_cart(meal_id, quantity),
            ERROR_ADD_TO_CART,
        )

    async def add_custom_meal_to_cart(self, selection: CustomMealSelection) -> bool:
        return await self._write_through(
            "add custom meal",
            lambda: self.api.add_custom_meal_to_cart(selection),
            ERROR_ADD_TO_CART,
        )

    async def update_quantity(self, cart_item_id: int, quantity: int) -> bool:
        """Set the line to an absolute quantity."""
        if quantity < 1:
            self.error = ERROR_INVALID_QUANTITY
            return False
        return await self._write_through(
            "update",
            lambda: self.api.update_cart_item(cart_item_id, quantity),
            ERROR_UPDATE_CART_ITEM,
        )

    async def remove_from_cart(self, cart_item_id: int) -> bool:
        return await self._write_through(
            "remove",
            lambda: self.api.remove_from_cart(cart_item_id),
            ERROR_REMOVE_FROM_CART,
        )
