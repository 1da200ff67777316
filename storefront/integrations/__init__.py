"""Integrations package - REST backend client and hosted payment widget."""

from storefront.integrations.api_client import ApiClient
from storefront.integrations.payment_gateway import (
    CheckoutOptions,
    GatewayOrder,
    HostedPaymentWidget,
    WidgetOutcome,
)

__all__ = [
    "ApiClient",
    "CheckoutOptions",
    "GatewayOrder",
    "HostedPaymentWidget",
    "WidgetOutcome",
]
