"""API Schemas - pydantic DTOs for backend request and response bodies.

Wire format is camelCase JSON; Python attributes are snake_case.
Bodies that fail validation are reported as ErrorKind.VALIDATION by the client.
"""
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for wire models."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # Ignore fields the client does not use
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ============================================
# Auth
# ============================================

class User(ApiModel):
    """Last-known user profile, persisted under user_data."""
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    roles: list[str] = Field(default_factory=list)


class JwtResponse(ApiModel):
    """Token plus profile returned by OTP verification."""
    id: int
    token: str = Field(min_length=1)
    first_name: str
    last_name: str
    email: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    type: Optional[str] = None  # "Bearer"

    def to_user(self) -> User:
        return User(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            roles=list(self.roles),
        )


class OtpSendResponse(ApiModel):
    success: bool = True


class OtpVerifyResponse(ApiModel):
    jwt_response: Optional[JwtResponse] = None


class ValidateTokenResponse(ApiModel):
    """Profile echoed by GET /auth/validate-token. Carries no email."""
    id: int
    username: Optional[str] = None
    first_name: str
    last_name: str
    roles: list[str] = Field(default_factory=list)

    def to_user(self) -> User:
        return User(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=None,
            roles=list(self.roles),
        )


# ============================================
# Delivery
# ============================================

class DeliveryAvailability(ApiModel):
    """Result of a delivery check. can_deliver=False is a normal outcome."""
    can_deliver: bool
    message: str
    serviceable_kitchen_id: Optional[int] = None
    distance_to_kitchen_km: Optional[float] = None


class ErrorBody(ApiModel):
    """Shape of non-2xx bodies; every field optional."""
    message: Optional[str] = None
    error: Optional[str] = None


# ============================================
# Cart
# ============================================

def _float_to_decimal(value):
    # Via str to avoid binary float artifacts (12.1 -> 12.1, not 12.0999...)
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class CartItem(ApiModel):
    """Single cart line as priced by the server."""
    cart_item_id: int
    meal_id: int
    name: str = Field(validation_alias=AliasChoices("mealName", "name", "meal_name"))
    image_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mealImageUrl", "imageUrl", "image_url"),
    )
    quantity: int = Field(ge=1)
    price_per_item: Decimal
    sub_total: Decimal
    is_custom: bool = Field(
        default=False,
        validation_alias=AliasChoices("custom", "isCustom", "is_custom"),
    )

    @field_validator("price_per_item", "sub_total", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _float_to_decimal(v)


class CartSnapshot(ApiModel):
    """
    Whole cart exactly as returned by GET /cart.

    Totals are the server's; nothing here is recomputed locally.
    """
    cart_id: int
    items: list[CartItem] = Field(default_factory=list)
    grand_total: Decimal
    total_items: int = Field(ge=0)
    unique_items: int = Field(ge=0)

    @field_validator("grand_total", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _float_to_decimal(v)

    def find_by_meal(self, meal_id: int) -> Optional[CartItem]:
        return next((item for item in self.items if item.meal_id == meal_id), None)


class CustomMealSelection(ApiModel):
    """Build-a-bowl selection posted to /cart/items/custom."""
    base_component_id: int
    add_on_ids: list[int] = Field(default_factory=list)
    protein_option_id: Optional[int] = None  # single-protein clients
    protein_option_ids: list[int] = Field(default_factory=list)
    total_calories: float = 0
    total_price: Decimal = Decimal("0")

    @field_validator("total_price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _float_to_decimal(v)

    @field_serializer("total_price")
    def serialize_price(self, v: Decimal) -> float:
        return float(v)
