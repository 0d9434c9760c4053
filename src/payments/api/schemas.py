"""Pydantic request/response schemas for the Payments API."""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    status: str
    order_number: str
    payment_status: str


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
