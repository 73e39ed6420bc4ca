"""Pydantic request/response schemas for the Storefront API.

These are external contracts, separate from the internal Protean commands.
Order placement responses use the camelCase keys the checkout page reads.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Order placement
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    product_id: str
    quantity: int
    color: str | None = None
    size: str | None = None
    price: float | None = None  # Display only, never used for totals
    image: str | None = None


class PlaceOrderRequest(BaseModel):
    items: list[CartLineSchema]
    full_name: str
    phone: str
    address: str
    city: str | None = None
    shipping_zone: str | None = None
    email: str | None = None
    alt_phone: str | None = None
    delivery_note: str | None = None
    payment_method: str = "cod"
    sender_number: str | None = None
    transaction_id: str | None = None
    coupon_code: str | None = None
    user_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2, "color": "Black", "size": "M"}],
                    "full_name": "Rahim Uddin",
                    "phone": "01712345678",
                    "address": "House 12, Road 5, Dhanmondi",
                    "city": "dhaka",
                    "payment_method": "cod",
                    "coupon_code": "WELCOME10",
                }
            ]
        }
    }


class PlaceOrderResponse(BaseModel):
    orderId: str
    orderNumber: str


class EligibilityResponse(BaseModel):
    allowed: bool
    error: str | None = None
    code: str | None = None
    cooldownRemainingSeconds: int | None = None
    cooldownMinutes: int | None = None


# ---------------------------------------------------------------------------
# Order administration
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    title: str
    color: str | None = None
    size: str | None = None
    quantity: int
    unit_price: float


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_method: str
    payment_status: str
    subtotal: float
    discount_amount: float
    shipping_cost: float
    total: float
    coupon_code: str | None = None
    created_at: datetime | None = None
    items: list[OrderItemResponse]


class TimelineEntryResponse(BaseModel):
    event_type: str
    description: str
    occurred_at: datetime


class OrderTimelineResponse(BaseModel):
    order_id: str
    entries: list[TimelineEntryResponse]


class UpdateOrderStatusRequest(BaseModel):
    status: str


class RejectPaymentRequest(BaseModel):
    reason: str | None = None


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str
    subtotal: float


class ValidateCouponResponse(BaseModel):
    success: bool
    discount: float | None = None
    couponId: str | None = None
    code: str | None = None
    error: str | None = None


class CreateCouponRequest(BaseModel):
    code: str = Field(min_length=2, max_length=50)
    type: str
    value: float
    min_order_amount: float | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True


class CouponIdResponse(BaseModel):
    coupon_id: str


class SetCouponActiveRequest(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# IP bans and settings
# ---------------------------------------------------------------------------
class BanIpRequest(BaseModel):
    ip_address: str
    reason: str | None = None


class UpdateSettingsRequest(BaseModel):
    values: dict[str, str | int | float | bool]
