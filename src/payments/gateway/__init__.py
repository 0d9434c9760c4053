"""Payment gateway registry.

Adapters are selected by provider key:
- "fake": FakeGateway for development and testing (always registered)
- "stripe": StripeGateway, when ``[custom.payments.stripe]`` is configured
- "paypal": PayPalGateway, when ``[custom.payments.paypal]`` is configured
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.paypal_adapter import PayPalGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.stripe_adapter import StripeGateway
from shared.config import payment_settings
from shared.errors import UnknownPaymentProvider

_gateways: dict[str, PaymentGateway] = {}


def _default_gateways() -> dict[str, PaymentGateway]:
    settings = payment_settings()
    gateways: dict[str, PaymentGateway] = {"fake": FakeGateway()}

    if stripe := settings.get("stripe"):
        gateways["stripe"] = StripeGateway(api_key=stripe["api_key"], webhook_secret=stripe["webhook_secret"])
    if paypal := settings.get("paypal"):
        gateways["paypal"] = PayPalGateway(
            client_id=paypal["client_id"],
            client_secret=paypal["client_secret"],
            webhook_id=paypal["webhook_id"],
        )
    return gateways


def get_gateway(provider: str | None = None) -> PaymentGateway:
    """Return the adapter registered for ``provider`` (default from config)."""
    if not _gateways:
        _gateways.update(_default_gateways())

    provider = provider or payment_settings().get("default_provider", "fake")
    try:
        return _gateways[provider]
    except KeyError:
        raise UnknownPaymentProvider(provider) from None


def register_gateway(provider: str, gateway: PaymentGateway) -> None:
    """Register or override the adapter for a provider (useful for tests)."""
    if not _gateways:
        _gateways.update(_default_gateways())
    _gateways[provider] = gateway


def reset_gateways() -> None:
    """Forget all adapters; defaults are rebuilt on next lookup."""
    _gateways.clear()
