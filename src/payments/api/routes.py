"""FastAPI routes for the Payments domain: provider callbacks."""

import json

import structlog
from fastapi import APIRouter, Header, HTTPException, Request
from protean.utils.globals import current_domain

from ordering.order.payment import RecordPaymentResult
from payments.api.schemas import ConfigureGatewayRequest, GatewayConfigResponse, WebhookResponse
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from shared.config import current_env
from shared.errors import InvalidWebhookSignature, ValidationError

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/{provider}/webhook", response_model=WebhookResponse)
async def process_webhook(
    provider: str,
    request: Request,
    x_gateway_signature: str = Header(default=""),
) -> WebhookResponse:
    """Record a payment result reported by a provider callback.

    The signature is checked against the body exactly as it was received.
    """
    gateway = get_gateway(provider)
    raw_body = await request.body()
    if not gateway.verify_webhook_signature(raw_body.decode("utf-8"), x_gateway_signature):
        logger.warning("webhook_signature_rejected", provider=provider)
        raise InvalidWebhookSignature("Invalid webhook signature", provider=provider)

    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Webhook body is not valid JSON", provider=provider) from None
    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object", provider=provider)

    event = gateway.parse_webhook(payload)
    command = RecordPaymentResult(
        order_number=event.order_number,
        payment_status=event.payment_status,
        payment_id=event.payment_id,
        transaction_id=event.transaction_id,
    )
    current_domain.process(command, asynchronous=False)
    return WebhookResponse(
        status="processed",
        order_number=event.order_number,
        payment_status=event.payment_status,
    )


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if current_env() == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway("fake")
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
