"""
Error Kinds and Messages

Failures never cross the public boundary as exceptions. Every operation
returns a result carrying one of these kinds and a message.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Why an operation failed."""
    TRANSPORT = "transport"              # request never produced a response
    UNAUTHORIZED = "unauthorized"        # HTTP 401, session already invalidated
    HTTP = "http"                        # any other non-2xx
    VALIDATION = "validation"            # 2xx with a malformed body
    NO_TOKEN = "no_token"                # authenticated call without a stored token
    NOT_AUTHENTICATED = "not_authenticated"
    PERMISSION = "permission"            # location permission not granted


# Kinds shown to the user as the generic retry message
GENERIC_KINDS = frozenset({
    ErrorKind.TRANSPORT,
    ErrorKind.UNAUTHORIZED,
    ErrorKind.VALIDATION,
    ErrorKind.NO_TOKEN,
})

# Generic
ERROR_GENERIC_RETRY = "Something went wrong. Please try again."
ERROR_SOMETHING_WENT_WRONG = "Something went wrong"
ERROR_MALFORMED_RESPONSE = "Malformed response from server"

# Auth
ERROR_NO_TOKEN = "No token found"
ERROR_TOKEN_INVALID = "Token is invalid or expired"
ERROR_NOT_AUTHENTICATED = "Not authenticated"
ERROR_SEND_OTP = "Failed to send OTP"
ERROR_INVALID_OTP = "Invalid OTP"
ERROR_TOKEN_NOT_RECEIVED = "Authentication token not received"
ERROR_SAVE_CREDENTIALS = "Failed to save login credentials"

# Cart
ERROR_FETCH_CART = "Failed to fetch cart"
ERROR_ADD_TO_CART = "Failed to add item to cart"
ERROR_UPDATE_CART_ITEM = "Failed to update cart item"
ERROR_REMOVE_FROM_CART = "Failed to remove item from cart"
ERROR_INVALID_QUANTITY = "Quantity must be at least 1"

# Location
ERROR_PERMISSION_NOT_GRANTED = "Location permission not granted"
ERROR_DELIVERY_CHECK = "Failed to check delivery availability"


def request_failed(status_code: int) -> str:
    return f"Request failed with status {status_code}"
