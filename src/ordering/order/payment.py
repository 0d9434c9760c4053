"""Recording payment results reported by the payment collaborator."""

import structlog
from protean import handle
from protean.fields import DateTime, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus, PaymentStatus
from shared.database import as_utc, utcnow
from shared.errors import PaymentStateConflict, ValidationError

logger = structlog.get_logger(__name__)

# Payment may not be captured once the order has been reversed
_NON_CAPTURABLE_STATES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

_REFUND_STATUSES = {PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED}


@ordering.command(part_of="Order")
class RecordPaymentResult:
    order_number = String(required=True, max_length=32)
    payment_status = String(required=True, max_length=20)
    payment_id = String(max_length=255)
    transaction_id = String(max_length=255)
    occurred_at = DateTime()


@ordering.command_handler(part_of=Order)
class RecordPaymentHandler:
    @handle(RecordPaymentResult)
    def record_payment_result(self, command):
        try:
            payment_status = PaymentStatus(command.payment_status)
        except ValueError:
            raise ValidationError(
                f"Unknown payment status: {command.payment_status}",
                errors={"payment_status": [f"Unknown status {command.payment_status}"]},
            ) from None

        repo = current_domain.repository_for(Order)
        order = repo.get_by_number(command.order_number)
        current_payment = PaymentStatus(order.payment_status)

        if payment_status == PaymentStatus.PAID and order.current_status in _NON_CAPTURABLE_STATES:
            raise PaymentStateConflict(
                f"Cannot record a payment on {order.status} order {order.order_number}",
                order_number=order.order_number,
                status=order.status,
            )
        if payment_status in _REFUND_STATUSES and current_payment not in {PaymentStatus.PAID} | _REFUND_STATUSES:
            raise PaymentStateConflict(
                f"Cannot refund order {order.order_number}: payment is {current_payment.value}",
                order_number=order.order_number,
                payment_status=current_payment.value,
            )

        order.record_payment(
            payment_status,
            command.payment_id,
            command.transaction_id,
            as_utc(command.occurred_at) or utcnow(),
        )
        repo.add(order)
        logger.info(
            "payment_recorded",
            order_id=order.id,
            order_number=order.order_number,
            payment_status=payment_status.value,
            previous_payment_status=current_payment.value,
        )
        return str(order.id)
