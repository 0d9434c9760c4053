"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal commands and aggregates.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator

from ordering.coupon.coupon import Coupon, DiscountType, normalize_code
from ordering.order.order import Order, OrderStatus, PaymentMethod
from shared.database import as_utc


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = None
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)


class OrderItemSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, le=1000)
    selected_variants: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    items: list[OrderItemSchema] = Field(min_length=1, max_length=50)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: PaymentMethod
    coupon_code: str | None = Field(default=None, min_length=3, max_length=50)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("coupon_code")
    @classmethod
    def _normalize_coupon_code(cls, value: str | None) -> str | None:
        return normalize_code(value) if value else value

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2, "selected_variants": {"size": "M"}}],
                    "shipping_address": {
                        "first_name": "Ada",
                        "last_name": "Lovelace",
                        "email": "ada@example.com",
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                    },
                    "payment_method": "credit_card",
                    "coupon_code": "SAVE10",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class TransitionStatusRequest(BaseModel):
    status: OrderStatus
    note: str | None = Field(default=None, max_length=500)
    carrier: str | None = None
    tracking_number: str | None = None
    cancellation_reason: str | None = Field(default=None, max_length=500)
    refund_amount: Decimal | None = Field(default=None, ge=0)


class UpdateOrderRequest(BaseModel):
    status: OrderStatus | None = None
    note: str | None = Field(default=None, max_length=500)
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    notes: str | None = Field(default=None, max_length=500)
    cancellation_reason: str | None = Field(default=None, max_length=500)
    refund_amount: Decimal | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    quantity: int
    price: Decimal
    total: Decimal
    selected_variants: dict[str, str]


class StatusHistoryResponse(BaseModel):
    status: str
    timestamp: datetime
    note: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    items: list[OrderItemResponse]
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    discount: Decimal
    total: Decimal
    currency: str
    coupon_code: str | None = None
    shipping_address: dict
    billing_address: dict
    notes: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None
    cancellation_reason: str | None = None
    refund_amount: Decimal | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    refunded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    status_history: list[StatusHistoryResponse]

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            customer_id=order.customer_id,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            items=[
                OrderItemResponse(
                    product_id=item.product_id,
                    name=item.name,
                    quantity=item.quantity,
                    price=item.price,
                    total=item.total,
                    selected_variants=item.selected_variants or {},
                )
                for item in order.lines
            ],
            subtotal=order.subtotal,
            tax=order.tax,
            shipping_cost=order.shipping_cost,
            discount=order.discount,
            total=order.total,
            currency=order.currency,
            coupon_code=order.coupon_code,
            shipping_address=order.shipping_address.to_dict(),
            billing_address=order.billing_address.to_dict(),
            notes=order.notes,
            carrier=order.carrier,
            tracking_number=order.tracking_number,
            estimated_delivery=order.estimated_delivery,
            cancellation_reason=order.cancellation_reason,
            refund_amount=order.refund_amount,
            shipped_at=as_utc(order.shipped_at),
            delivered_at=as_utc(order.delivered_at),
            cancelled_at=as_utc(order.cancelled_at),
            refunded_at=as_utc(order.refunded_at),
            created_at=as_utc(order.created_at),
            updated_at=as_utc(order.updated_at),
            status_history=[
                StatusHistoryResponse(status=entry.status, timestamp=as_utc(entry.timestamp), note=entry.note)
                for entry in order.history
            ],
        )


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationResponse


# ---------------------------------------------------------------------------
# Coupon Schemas
# ---------------------------------------------------------------------------
class CreateCouponRequest(BaseModel):
    code: str = Field(min_length=3, max_length=50)
    name: str | None = None
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(ge=0)
    maximum_discount_amount: Decimal | None = Field(default=None, ge=0)
    minimum_order_value: Decimal | None = Field(default=None, ge=0)
    start_date: datetime
    end_date: datetime
    usage_limit: int | None = Field(default=None, ge=1)
    is_active: bool = True


class ValidateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    order_amount: Decimal = Field(ge=0)


class CouponResponse(BaseModel):
    id: str
    code: str
    name: str | None = None
    discount_type: str
    discount_value: Decimal
    maximum_discount_amount: Decimal | None = None
    minimum_order_value: Decimal | None = None
    start_date: datetime
    end_date: datetime
    usage_limit: int | None = None
    usage_count: int
    is_active: bool

    @classmethod
    def from_coupon(cls, coupon: Coupon) -> "CouponResponse":
        return cls(
            id=str(coupon.id),
            code=coupon.code,
            name=coupon.name,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            maximum_discount_amount=coupon.maximum_discount_amount,
            minimum_order_value=coupon.minimum_order_value,
            start_date=as_utc(coupon.start_date),
            end_date=as_utc(coupon.end_date),
            usage_limit=coupon.usage_limit,
            usage_count=coupon.usage_count or 0,
            is_active=coupon.is_active,
        )


class CouponValidationResponse(BaseModel):
    code: str
    valid: bool
    reason: str | None = None
    discount: Decimal
