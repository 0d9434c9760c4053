"""Administrative status changes and order updates: commands and handler."""

import structlog
from protean import handle
from protean.fields import DateTime, Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from catalogue.product.stock import ProductStock
from ordering.domain import ordering
from ordering.order.order import RESTOCKING_STATES, Order, OrderStatus
from ordering.order.reservation import release_inventory
from shared.actor import actor_of, require_admin
from shared.database import as_utc, utcnow
from shared.errors import ValidationError

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    note = Text()
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    cancellation_reason = String(max_length=500)
    refund_amount = Decimal()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    occurred_at = DateTime()


@ordering.command(part_of="Order")
class UpdateOrder:
    order_id = Identifier(required=True)
    status = String(max_length=20)
    note = Text()
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)
    notes = Text()
    cancellation_reason = String(max_length=500)
    refund_amount = Decimal()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    occurred_at = DateTime()


def _parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown order status: {value}", errors={"status": [f"Unknown status {value}"]}) from None


def save_transition(order: Order, previous_status: str, actor_id: str | None = None) -> None:
    """Write a transitioned order, then return its stock if it was reversed.

    Stock moves only after the save succeeded, so a transition that loses an
    optimistic-lock race never releases anything.
    """
    current_domain.repository_for(Order).add(order)

    if order.current_status in RESTOCKING_STATES:
        release_inventory(ProductStock(), order.lines)

    logger.info(
        "order_status_changed",
        order_id=order.id,
        order_number=order.order_number,
        from_status=previous_status,
        to_status=order.status,
        actor_id=actor_id,
    )


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(TransitionOrderStatus)
    def transition_status(self, command):
        actor = actor_of(command)
        require_admin(actor, "change order status")
        target = _parse_status(command.status)
        order = current_domain.repository_for(Order).get(command.order_id)
        previous_status = order.status

        order.transition_to(
            target,
            note=command.note,
            reason=command.cancellation_reason,
            actor_id=actor.user_id,
            carrier=command.carrier,
            tracking_number=command.tracking_number,
            refund_amount=command.refund_amount,
            now=as_utc(command.occurred_at) or utcnow(),
        )
        save_transition(order, previous_status, actor.user_id)
        return str(order.id)

    @handle(UpdateOrder)
    def update_order(self, command):
        """Apply tracking details and notes, and optionally change the status."""
        actor = actor_of(command)
        require_admin(actor, "update orders")
        now = as_utc(command.occurred_at) or utcnow()
        target = _parse_status(command.status) if command.status else None
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous_status = order.status

        if target is not None:
            order.transition_to(
                target,
                note=command.note,
                reason=command.cancellation_reason,
                actor_id=actor.user_id,
                carrier=command.carrier,
                tracking_number=command.tracking_number,
                refund_amount=command.refund_amount,
                now=now,
            )

        order.update_fulfilment_details(
            carrier=command.carrier,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
            notes=command.notes,
            now=now,
        )

        if target is not None:
            save_transition(order, previous_status, actor.user_id)
        else:
            repo.add(order)
            logger.info("order_updated", order_id=order.id, order_number=order.order_number, actor_id=actor.user_id)
        return str(order.id)
