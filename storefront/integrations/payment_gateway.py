"""
Hosted payment widget integration (Razorpay checkout).

The widget itself is third-party UI. This module only describes what is
handed to it (``CheckoutOptions``) and what comes back (``WidgetOutcome``);
signature verification always happens on the backend.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

from storefront.logging_config import logger

CHECKOUT_SCRIPT_URL = "https://checkout.razorpay.com/v1/checkout.js"


class OutcomeKind(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    DISMISSED = "dismissed"


@dataclass(slots=True)
class GatewayOrder:
    """Order created on the gateway by ``POST /payments/create-order``."""

    order_id: str
    amount: int
    currency: str = "INR"
    receipt: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> GatewayOrder:
        return cls(
            order_id=str(data["orderId"]),
            amount=int(data.get("amount") or 0),
            currency=str(data.get("currency") or "INR"),
            receipt=data.get("receipt"),
        )


@dataclass(slots=True)
class CheckoutOptions:
    """Options object passed to the hosted widget."""

    key: str
    amount: int
    currency: str
    name: str
    description: str
    order_id: str
    prefill: dict[str, str] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    theme_color: str = "#E53E3E"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "amount": self.amount,
            "currency": self.currency,
            "name": self.name,
            "description": self.description,
            "order_id": self.order_id,
            "prefill": dict(self.prefill),
            "notes": dict(self.notes),
            "theme": {"color": self.theme_color},
        }


@dataclass(slots=True)
class WidgetOutcome:
    """What the widget reported: signed success, failure, or user dismissal."""

    kind: OutcomeKind
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None
    error_description: str | None = None
    error_reason: str | None = None

    @classmethod
    def success(cls, order_id: str, payment_id: str, signature: str) -> WidgetOutcome:
        return cls(
            OutcomeKind.SUCCESS,
            razorpay_order_id=order_id,
            razorpay_payment_id=payment_id,
            razorpay_signature=signature,
        )

    @classmethod
    def failed(cls, description: str | None = None, reason: str | None = None) -> WidgetOutcome:
        return cls(OutcomeKind.FAILED, error_description=description, error_reason=reason)

    @classmethod
    def dismissed(cls) -> WidgetOutcome:
        return cls(OutcomeKind.DISMISSED)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    def verification_fields(self) -> dict[str, str | None]:
        return {
            "razorpay_order_id": self.razorpay_order_id,
            "razorpay_payment_id": self.razorpay_payment_id,
            "razorpay_signature": self.razorpay_signature,
        }

    def failure_text(self) -> str:
        return self.error_description or self.error_reason or "Unknown error"


class HostedPaymentWidget(Protocol):
    """Opens the third-party widget and resolves once it reports back."""

    async def open(self, options: CheckoutOptions) -> WidgetOutcome: ...


class ConsolePaymentWidget:
    """Terminal stand-in: shows the options and reads the signed result back."""

    def __init__(self, prompt: Callable[[str], str] = input):
        self._prompt = prompt

    async def open(self, options: CheckoutOptions) -> WidgetOutcome:
        print(f"Pay {options.amount / 100:.2f} {options.currency} for {options.description}")
        print(f"Gateway order: {options.order_id} (widget script: {CHECKOUT_SCRIPT_URL})")
        payment_id = (await asyncio.to_thread(self._prompt, "razorpay_payment_id (blank to cancel): ")).strip()
        if not payment_id:
            logger.info("Payment widget dismissed by user")
            return WidgetOutcome.dismissed()
        signature = (await asyncio.to_thread(self._prompt, "razorpay_signature: ")).strip()
        return WidgetOutcome.success(options.order_id, payment_id, signature)
