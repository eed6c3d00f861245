"""
Pydantic Schemas

Three groups:
- Platform records: rows returned by the hosted data platform and the
  identity provider. Validated on arrival; anything malformed is rejected
  at the boundary instead of leaking into templates.
- Request schemas for the JSON API and the HTML forms.
- Response schemas for the JSON API.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from storefront.models import CategoryKind, OrderStatus, ServiceMode


def _id_to_str(v: Any) -> Any:
    """Platform ids may be integers or uuids; the storefront keys on strings."""
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


# =============================================================================
# PLATFORM RECORDS
# =============================================================================

class PlatformRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def ids_to_str(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: _id_to_str(value) if key == "id" or key.endswith("_id") else value
            for key, value in data.items()
        }


class UserMetadata(PlatformRecord):
    """Profile fields stored on the auth identity."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @property
    def is_onboarded(self) -> bool:
        return bool(self.full_name and self.phone)


class AuthUser(PlatformRecord):
    id: str
    email: Optional[str] = None
    user_metadata: UserMetadata = Field(default_factory=UserMetadata)

    @field_validator("user_metadata", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or {}


class CategoryRecord(PlatformRecord):
    id: str
    name: str
    kind: CategoryKind = CategoryKind.OTHER
    image_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_url", "imageUrl"),
    )

    @field_validator("kind", mode="before")
    @classmethod
    def unknown_kind_is_other(cls, v: Any) -> Any:
        if v is None:
            return CategoryKind.OTHER
        try:
            return CategoryKind(str(v).lower())
        except ValueError:
            return CategoryKind.OTHER


class MenuVariantRecord(PlatformRecord):
    id: str
    menu_id: str
    name: str
    price: Decimal = Field(..., ge=0)


class MenuItemRecord(PlatformRecord):
    id: str
    name: str
    description: Optional[str] = None
    base_price: Decimal = Field(default=Decimal("0"), ge=0)
    image_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_url", "imageUrl"),
    )
    category_id: Optional[str] = None
    is_available: bool = True
    category: Optional[CategoryRecord] = Field(
        default=None,
        validation_alias=AliasChoices("category", "categories"),
    )
    variants: List[MenuVariantRecord] = Field(default_factory=list)

    @field_validator("base_price", mode="before")
    @classmethod
    def null_price_is_zero(cls, v: Any) -> Any:
        return Decimal("0") if v is None else v

    @field_validator("category", mode="before")
    @classmethod
    def first_embedded_category(cls, v: Any) -> Any:
        # PostgREST embeds a to-one relation as an object, older views as a list
        if isinstance(v, list):
            return v[0] if v else None
        return v

    @property
    def kind(self) -> CategoryKind:
        return self.category.kind if self.category else CategoryKind.OTHER

    def variant(self, variant_id: Optional[str]) -> Optional[MenuVariantRecord]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None


class OrderRecord(PlatformRecord):
    id: str
    user_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime
    customer_name: str = "Guest"
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    type: Optional[ServiceMode] = None
    delivery_charge: Decimal = Decimal("0")

    @field_validator("delivery_charge", mode="before")
    @classmethod
    def null_charge_is_zero(cls, v: Any) -> Any:
        return Decimal("0") if v is None else v


class OrderItemRecord(PlatformRecord):
    id: str
    order_id: Optional[str] = None
    menu_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    menu_name: Optional[str] = None
    variant_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_embedded_names(cls, data: Any) -> Any:
        """Lift ``menu:menu_id(name)`` / ``variant:variant_id(name)`` embeds."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for embed, target in (("menu", "menu_name"), ("variant", "variant_name")):
            value = data.pop(embed, None)
            if isinstance(value, dict) and target not in data:
                data[target] = value.get("name")
        return data

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class OrderItemDraft(BaseModel):
    """One row inserted into ``order_items``."""
    order_id: str
    menu_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)


class OrderDraft(BaseModel):
    """The row inserted into ``orders``."""
    user_id: str
    status: OrderStatus = OrderStatus.PENDING
    customer_name: str = "Guest"
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    type: ServiceMode
    delivery_charge: Decimal = Decimal("0")


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CartLineRef(BaseModel):
    """Identifies a cart line."""
    product_id: str = Field(..., min_length=1, examples=["p1"])
    variant_id: Optional[str] = Field(None, examples=["v-medium"])

    @field_validator("variant_id", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        return v or None


class CartItemAdd(CartLineRef):
    """Add units of a menu item; price and names come from the catalog."""
    quantity: int = Field(default=1, ge=1, le=99)


class CartQuantityUpdate(CartLineRef):
    quantity: int = Field(..., ge=0, le=99)


class SelectionUpdate(BaseModel):
    service_mode: Optional[ServiceMode] = Field(None, examples=["delivery"])
    delivery_zone: Optional[str] = Field(None, max_length=100, examples=["Madhuban"])

    @field_validator("service_mode", "delivery_zone", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        return v or None


class SignInRequest(BaseModel):
    email: str = Field(..., max_length=255, examples=["guest@example.com"])
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not re.match(r'^[\w\.+-]+@[\w\.-]+\.\w+$', v):
            raise ValueError('Invalid email format')
        return v


class SignUpRequest(SignInRequest):
    full_name: Optional[str] = Field(None, max_length=100)


class ProfileUpdate(BaseModel):
    """Partial update of the user's profile metadata."""
    full_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator("full_name", "phone", "address", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        cleaned = re.sub(r'[^\d]', '', v)
        if len(cleaned) < 10:
            raise ValueError('Phone number must have at least 10 digits')
        return v


class OnboardingRequest(ProfileUpdate):
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., max_length=20)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CartLineResponse(BaseModel):
    product_id: str
    variant_id: Optional[str]
    product_name: str
    variant_label: Optional[str]
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class CartResponse(BaseModel):
    lines: List[CartLineResponse]
    item_count: int
    total: Decimal


class SelectionResponse(BaseModel):
    service_mode: Optional[ServiceMode]
    delivery_zone: Optional[str]
    description: Optional[str]
    is_complete: bool
    is_prompt_open: bool
    delivery_zones: List[str]


class CheckoutSummaryResponse(BaseModel):
    subtotal: Decimal
    delivery_charge: Decimal
    grand_total: Decimal
    minimum_order_amount: Decimal
    amount_to_minimum: Decimal
    can_checkout: bool
    blocking_reason: Optional[str] = None
    hint: str


class RecommendationItem(BaseModel):
    menu_id: str
    name: str
    variant_id: Optional[str]
    variant_label: str
    price: Decimal
    image_url: Optional[str] = None


class RecommendationResponse(BaseModel):
    message: str
    items: List[RecommendationItem]


class OrderPlacedResponse(BaseModel):
    success: bool
    message: str
    order_id: str
    grand_total: Decimal


class OrderSummaryResponse(BaseModel):
    id: str
    status: OrderStatus
    status_label: str
    created_at: datetime
    created_at_display: str
    customer_name: str
    customer_address: Optional[str]
    type: Optional[ServiceMode]
    delivery_charge: Decimal


class OrderItemResponse(BaseModel):
    menu_id: str
    variant_id: Optional[str]
    name: str
    variant_name: Optional[str]
    quantity: int
    price: Decimal
    line_total: Decimal


class OrderDetailResponse(OrderSummaryResponse):
    items: List[OrderItemResponse]
    items_total: Decimal


class AuthResponse(BaseModel):
    success: bool
    user: Optional[AuthUser] = None
    needs_onboarding: bool = False
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    data_platform: str
    auth_provider: str
    state_backend: str
    timestamp: datetime
