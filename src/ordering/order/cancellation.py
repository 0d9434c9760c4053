"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.status import save_transition
from shared.actor import actor_of
from shared.database import as_utc, utcnow
from shared.errors import Forbidden, NotCancellable

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    occurred_at = DateTime()


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        """Cancel an order and return its stock.

        Customers may only cancel their own orders; administrators may cancel
        any. Orders that have shipped can no longer be cancelled.
        """
        actor = actor_of(command)
        order = current_domain.repository_for(Order).get(command.order_id)

        if not actor.can_access(order.customer_id):
            raise Forbidden("You can only cancel your own orders", order_id=order.id, user_id=actor.user_id)
        if not order.is_cancellable:
            raise NotCancellable(order.order_number, order.status)

        previous_status = order.status
        order.transition_to(
            OrderStatus.CANCELLED,
            reason=command.reason,
            actor_id=actor.user_id,
            now=as_utc(command.occurred_at) or utcnow(),
        )
        save_transition(order, previous_status, actor.user_id)

        logger.info("order_cancelled", order_id=order.id, order_number=order.order_number, reason=command.reason)
        return str(order.id)
