# bakery/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bakery.domain.enums import (
    CartStatus,
    InventoryReason,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductStatus,
    ShipmentStatus,
    UserRole,
)


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _upper_currency(value: str) -> str:
    return value.strip().upper()


CurrencyCode = Annotated[str, Field(min_length=3, max_length=3), AfterValidator(_upper_currency)]


# =====================================================
# USERS
# =====================================================
class UserCreate(ApiModel):
    """Schema for creating a user."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.CUSTOMER


class UserRead(ApiModel):
    id: int
    email: str
    name: str
    role: UserRole


# =====================================================
# CATALOG / INVENTORY
# =====================================================
class VariantOut(ApiModel):
    id: int
    sku: str
    label: str
    price: Decimal
    currency: str
    is_active: bool
    available_quantity: int = 0


class ProductOut(ApiModel):
    id: int
    name: str
    slug: str
    description: str | None = None
    status: ProductStatus
    hero_image: str | None = None
    variants: List[VariantOut]


class InventoryAdjustIn(ApiModel):
    """Manual stock change made from the back-office."""

    quantity_delta: int = Field(..., description="Signed change, negative removes stock")
    reason: InventoryReason = InventoryReason.ADJUSTMENT
    reference: str | None = Field(None, max_length=200)


class InventoryLevelOut(ApiModel):
    variant_id: int
    quantity: int
    reserved: int
    low_stock_threshold: int
    is_low_stock: bool
    updated_at: datetime | None = None


class InventoryTransactionOut(ApiModel):
    id: int
    variant_id: int
    quantity: int
    reason: InventoryReason
    reference: str | None = None
    created_by_id: int | None = None
    created_at: datetime


# =====================================================
# CART
# =====================================================
class GetCartQuery(ApiModel):
    session_id: str | None = Field(None, max_length=128)
    currency: CurrencyCode = "USD"


class AddCartItemIn(ApiModel):
    """Schema for adding a variant to the cart."""

    variant_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0, description="Units to add (must be > 0)")
    currency: CurrencyCode = "USD"
    session_id: str | None = Field(None, max_length=128)


class UpdateCartItemIn(ApiModel):
    quantity: int = Field(..., ge=0, description="0 removes the line")
    session_id: str | None = Field(None, max_length=128)


class RemoveCartItemIn(ApiModel):
    session_id: str | None = Field(None, max_length=128)


class CartItemOut(ApiModel):
    id: int
    variant_id: int
    sku: str
    product_name: str
    variant_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    available_quantity: int


class CartSummaryOut(ApiModel):
    subtotal: Decimal
    tax: Decimal
    shipping_fee: Decimal
    total: Decimal
    item_count: int


class CartOut(ApiModel):
    """Cart with its summary recomputed from the live lines."""

    id: int
    user_id: int | None = None
    session_id: str | None = None
    status: CartStatus
    currency: str
    items: List[CartItemOut]
    summary: CartSummaryOut


# =====================================================
# ORDERS
# =====================================================
class AddressIn(ApiModel):
    full_name: str = Field(..., min_length=2, max_length=200)
    phone: str | None = Field(None, max_length=50)
    line1: str = Field(..., min_length=2, max_length=200)
    line2: str | None = Field(None, max_length=200)
    city: str = Field(..., min_length=2, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str = Field(..., min_length=2, max_length=100)

    @field_validator("full_name", "line1", "city", "country", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class AddressOut(ApiModel):
    full_name: str
    phone: str | None = None
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str


class OrderCreate(ApiModel):
    """Schema for checking out a cart."""

    cart_id: int = Field(..., gt=0)
    shipping_address: AddressIn
    billing_address: AddressIn | None = None
    notes: str | None = Field(None, max_length=1000)


class OrderStatusUpdate(ApiModel):
    status: OrderStatus
    note: str | None = Field(None, max_length=1000)


class OrderItemOut(ApiModel):
    id: int
    variant_id: int | None = None
    product_name: str
    variant_name: str
    quantity: int
    unit_price: Decimal
    currency: str
    image_url: str | None = None


class OrderStatusEventOut(ApiModel):
    id: int
    status: OrderStatus
    note: str | None = None
    created_by_id: int | None = None
    created_at: datetime


class PaymentOut(ApiModel):
    id: int
    order_id: int
    provider: str
    method: PaymentMethod
    status: PaymentStatus
    amount: Decimal
    currency: str
    transaction_id: str | None = None
    processed_at: datetime | None = None


class ShipmentOut(ApiModel):
    id: int
    status: ShipmentStatus
    carrier: str | None = None
    tracking_number: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None


class OrderOut(ApiModel):
    """Schema for an order (response)."""

    id: int
    order_number: str
    cart_id: int
    user_id: int | None = None
    status: OrderStatus
    payment_status: PaymentStatus
    shipment_status: ShipmentStatus
    subtotal: Decimal
    tax: Decimal
    shipping_fee: Decimal
    discount_total: Decimal
    total: Decimal
    currency: str
    notes: str | None = None
    shipping_address: AddressOut
    billing_address: AddressOut
    placed_at: datetime
    items: List[OrderItemOut]
    payments: List[PaymentOut] = []
    shipments: List[ShipmentOut] = []
    status_events: List[OrderStatusEventOut] = []


class TrackingOut(ApiModel):
    order_id: int
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    shipment_status: ShipmentStatus
    shipments: List[ShipmentOut]
    status_events: List[OrderStatusEventOut]


# =====================================================
# PAYMENTS
# =====================================================
class PaymentCreate(ApiModel):
    order_id: int = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CARD
    amount: Decimal | None = Field(None, gt=0, decimal_places=2)
    force_result: Literal["success", "failure"] | None = None


class PaymentResultOut(ApiModel):
    payment: PaymentOut
    payment_result: Literal["success", "failure"]


# =====================================================
# CATALOG ADMIN
# =====================================================
class VariantCreate(ApiModel):
    sku: str = Field(..., min_length=1, max_length=64)
    label: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0, decimal_places=2)
    currency: CurrencyCode = "USD"
    is_active: bool = True
    initial_stock: int = Field(0, ge=0)
    low_stock_threshold: int = Field(0, ge=0)


class ProductCreate(ApiModel):
    """Schema for creating a product together with its variants."""

    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    status: ProductStatus = ProductStatus.DRAFT
    hero_image: str | None = Field(None, max_length=500)
    variants: List[VariantCreate] = Field(..., min_length=1)


class VariantUpdateIn(ApiModel):
    price: Decimal | None = Field(None, gt=0, decimal_places=2)
    is_active: bool | None = None


class ProductUpdateIn(ApiModel):
    """Partial product edit; omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=200)
    slug: str | None = Field(None, min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    status: ProductStatus | None = None
    hero_image: str | None = Field(None, max_length=500)


class ProductDeleteOut(ApiModel):
    success: bool
    deleted_product_id: int
