"""FastAPI routes for the Ordering domain: orders and coupons."""

import json
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from ordering.api.dependencies import get_actor
from ordering.api.schemas import (
    CancelOrderRequest,
    CouponResponse,
    CouponValidationResponse,
    CreateCouponRequest,
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    PaginationResponse,
    TransitionStatusRequest,
    UpdateOrderRequest,
    ValidateCouponRequest,
)
from ordering.coupon.coupon import Coupon
from ordering.coupon.management import ActivateCoupon, CreateCoupon, DeactivateCoupon, preview_coupon
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import CreateOrder
from ordering.order.queries import get_order, get_order_by_number, list_orders
from ordering.order.repository import OrderSearch
from ordering.order.status import TransitionOrderStatus, UpdateOrder
from shared.actor import Actor

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, actor: Actor = Depends(get_actor)) -> OrderResponse:
    """Place an order for the acting customer."""
    command = CreateOrder(
        customer_id=actor.user_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        payment_method=body.payment_method.value,
        coupon_code=body.coupon_code,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(get_order(order_id, actor))


@order_router.get("", response_model=OrderListResponse)
async def search_orders(
    status: str | None = None,
    payment_status: str | None = None,
    payment_method: str | None = None,
    customer_id: str | None = None,
    order_number: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    min_total: Decimal | None = Query(default=None, ge=0),
    max_total: Decimal | None = Query(default=None, ge=0),
    sort_by: str = Query(default="created_at", pattern="^(created_at|total|order_number|status)$"),
    sort_order: str = Query(default="desc", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
) -> OrderListResponse:
    """List orders. Customers only see their own."""
    criteria = OrderSearch(
        customer_id=customer_id,
        status=status,
        payment_status=payment_status,
        payment_method=payment_method,
        order_number=order_number,
        date_from=date_from,
        date_to=date_to,
        min_total=min_total,
        max_total=max_total,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    result = list_orders(criteria, actor)
    return OrderListResponse(
        orders=[OrderResponse.from_order(order) for order in result.orders],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@order_router.get("/number/{order_number}", response_model=OrderResponse)
async def fetch_order_by_number(order_number: str, actor: Actor = Depends(get_actor)) -> OrderResponse:
    return OrderResponse.from_order(get_order_by_number(order_number, actor))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def fetch_order(order_id: str, actor: Actor = Depends(get_actor)) -> OrderResponse:
    return OrderResponse.from_order(get_order(order_id, actor))


@order_router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(order_id: str, body: UpdateOrderRequest, actor: Actor = Depends(get_actor)) -> OrderResponse:
    """Update tracking details and notes, optionally changing status (admin only)."""
    command = UpdateOrder(
        order_id=order_id,
        status=body.status.value if body.status else None,
        note=body.note,
        carrier=body.carrier,
        tracking_number=body.tracking_number,
        estimated_delivery=body.estimated_delivery,
        notes=body.notes,
        cancellation_reason=body.cancellation_reason,
        refund_amount=body.refund_amount,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(get_order(order_id, actor))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def transition_status(
    order_id: str, body: TransitionStatusRequest, actor: Actor = Depends(get_actor)
) -> OrderResponse:
    """Move an order to a new status (admin only)."""
    command = TransitionOrderStatus(
        order_id=order_id,
        status=body.status.value,
        note=body.note,
        carrier=body.carrier,
        tracking_number=body.tracking_number,
        cancellation_reason=body.cancellation_reason,
        refund_amount=body.refund_amount,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(get_order(order_id, actor))


@order_router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, actor: Actor = Depends(get_actor)) -> OrderResponse:
    """Cancel an order and return its stock."""
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(get_order(order_id, actor))


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


def _coupon_response(coupon_id: str) -> CouponResponse:
    return CouponResponse.from_coupon(current_domain.repository_for(Coupon).get(coupon_id))


@coupon_router.post("", status_code=201, response_model=CouponResponse)
async def add_coupon(body: CreateCouponRequest, actor: Actor = Depends(get_actor)) -> CouponResponse:
    """Create a coupon (admin only)."""
    command = CreateCoupon(
        code=body.code,
        name=body.name,
        description=body.description,
        discount_type=body.discount_type.value,
        discount_value=body.discount_value,
        maximum_discount_amount=body.maximum_discount_amount,
        minimum_order_value=body.minimum_order_value,
        start_date=body.start_date,
        end_date=body.end_date,
        usage_limit=body.usage_limit,
        is_active=body.is_active,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    return _coupon_response(current_domain.process(command, asynchronous=False))


@coupon_router.post("/validate", response_model=CouponValidationResponse)
async def validate_coupon_code(
    body: ValidateCouponRequest, actor: Actor = Depends(get_actor)
) -> CouponValidationResponse:
    """Check whether a code applies to an order amount without redeeming it."""
    preview = preview_coupon(body.code, body.order_amount)
    return CouponValidationResponse(
        code=preview.code,
        valid=preview.valid,
        reason=preview.reason,
        discount=preview.discount,
    )


@coupon_router.put("/{coupon_id}/activate", response_model=CouponResponse)
async def activate_coupon(coupon_id: str, actor: Actor = Depends(get_actor)) -> CouponResponse:
    command = ActivateCoupon(coupon_id=coupon_id, actor_id=actor.user_id, actor_role=actor.role.value)
    return _coupon_response(current_domain.process(command, asynchronous=False))


@coupon_router.put("/{coupon_id}/deactivate", response_model=CouponResponse)
async def deactivate_coupon(coupon_id: str, actor: Actor = Depends(get_actor)) -> CouponResponse:
    command = DeactivateCoupon(coupon_id=coupon_id, actor_id=actor.user_id, actor_role=actor.role.value)
    return _coupon_response(current_domain.process(command, asynchronous=False))
