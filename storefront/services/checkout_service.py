"""
Checkout flow controller.

Three linear steps (contact -> shipping -> payment). The payment step either
creates a cash-on-delivery order directly or goes through the hosted payment
widget and has the backend verify the signed result.

Online retries reuse the gateway order created for the same item payload, so
a dismissed widget or a failed verification does not mint a second gateway
order for one cart.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import Any, Callable

from storefront.core.cart_math import calc_shipping, order_items_payload
from storefront.core.config import PaymentConfig, ShippingPolicy
from storefront.core.constants import (
    LOGIN_PATH,
    MSG_CART_EMPTY,
    MSG_COD_FAILED,
    MSG_CONTACT_REQUIRED,
    MSG_FINISH_STEPS_FIRST,
    MSG_GATEWAY_CONFIG,
    MSG_LOGIN_TO_ORDER,
    MSG_PAYMENT_CANCELLED,
    MSG_PAYMENT_INIT_FAILED,
    MSG_SHIPPING_REQUIRED,
    MSG_VERIFY_FAILED,
    ORDER_TRACKING_PATH,
)
from storefront.core.exceptions import (
    ApiError,
    InvalidResponseError,
    PaymentGatewayError,
    StorefrontException,
    ValidationException,
    error_message,
)
from storefront.core.idempotency import build_request_hash
from storefront.core.sentry_integration import capture_exception
from storefront.core.validation import missing_fields
from storefront.domain.entities.address import SavedAddress
from storefront.domain.entities.user import User
from storefront.domain.order import ShippingAddress, shipping_address_from_user
from storefront.domain.value_objects import PaymentMethod
from storefront.integrations.api_client import ApiClient
from storefront.integrations.payment_gateway import (
    CheckoutOptions,
    GatewayOrder,
    HostedPaymentWidget,
    OutcomeKind,
    WidgetOutcome,
)
from storefront.services.cart_service import CartStore
from storefront.services.session import Session

logger = logging.getLogger("storefront.checkout")

# Backend messages that mean the cart itself cannot be ordered as is.
STOCK_ERROR_MARKERS = ("Insufficient stock", "Product not found")


class CheckoutStep(IntEnum):
    CONTACT = 1
    SHIPPING = 2
    PAYMENT = 3


class CheckoutState(Enum):
    CART_EMPTY = "cart_empty"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    ORDER_PLACED = "order_placed"
    PAYMENT_VERIFIED = "payment_verified"


STEP_REQUIRED_FIELDS: dict[CheckoutStep, tuple[str, ...]] = {
    CheckoutStep.CONTACT: ("email", "phone"),
    CheckoutStep.SHIPPING: ("first_name", "street", "city", "pincode"),
}

STEP_ERRORS: dict[CheckoutStep, str] = {
    CheckoutStep.CONTACT: MSG_CONTACT_REQUIRED,
    CheckoutStep.SHIPPING: MSG_SHIPPING_REQUIRED,
}


@dataclass(slots=True)
class CheckoutForm:
    email: str = ""
    phone: str = ""
    first_name: str = ""
    last_name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    payment_method: PaymentMethod = PaymentMethod.COD

    @classmethod
    def from_user(cls, user: User | None) -> CheckoutForm:
        address = shipping_address_from_user(user)
        return cls(**address.model_dump())

    def shipping_address(self) -> ShippingAddress:
        return ShippingAddress(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
            street=self.street,
            city=self.city,
            state=self.state,
            pincode=self.pincode,
        )


FORM_FIELDS = frozenset(f.name for f in fields(CheckoutForm))


@dataclass(slots=True)
class CheckoutOutcome:
    ok: bool
    error: str | None = None
    order_id: str | None = None
    redirect_to: str | None = None


class CheckoutFlow:
    """One in-memory checkout; build a new one (or ``reset()``) per visit."""

    def __init__(
        self,
        session: Session,
        cart: CartStore,
        api: ApiClient,
        widget: HostedPaymentWidget,
        *,
        payment: PaymentConfig,
        shipping: ShippingPolicy | None = None,
        navigate: Callable[[str], Any] | None = None,
    ):
        self.session = session
        self.cart = cart
        self.api = api
        self.widget = widget
        self.payment = payment
        self.shipping_policy = shipping or cart.shipping_policy
        self.navigate = navigate
        self.reset()

    def reset(self) -> None:
        self.step = CheckoutStep.CONTACT
        self.form = CheckoutForm.from_user(self.session.user)
        self.error: str | None = None
        self.is_submitting = False
        self.order_id: str | None = None
        self._completed: CheckoutState | None = None
        self._gateway_order: GatewayOrder | None = None
        self._gateway_key: str | None = None
        self._pending_outcome: WidgetOutcome | None = None

    # ----- state -----

    @property
    def state(self) -> CheckoutState:
        if self._completed is not None:
            return self._completed
        if self.is_submitting:
            return CheckoutState.SUBMITTING
        if self.cart.is_empty:
            return CheckoutState.CART_EMPTY
        return CheckoutState.IN_PROGRESS

    @property
    def subtotal(self) -> float:
        return self.cart.total

    @property
    def shipping(self) -> float:
        return calc_shipping(
            self.subtotal,
            free_threshold=self.shipping_policy.free_threshold,
            standard_cost=self.shipping_policy.standard_cost,
        )

    @property
    def total(self) -> float:
        return self.subtotal + self.shipping

    # ----- form editing -----

    def update(self, **values: Any) -> None:
        unknown = set(values) - FORM_FIELDS
        if unknown:
            raise ValidationException(f"Unknown checkout fields: {', '.join(sorted(unknown))}", sorted(unknown))
        for name, value in values.items():
            if name == "payment_method":
                try:
                    value = PaymentMethod(value)
                except ValueError as exc:
                    raise ValidationException(f"Unknown payment method: {value}", ["payment_method"]) from exc
            setattr(self.form, name, value)

    def apply_address(self, address: SavedAddress) -> None:
        """Fill the shipping step from a saved address-book entry."""
        first, _, last = address.name.strip().partition(" ")
        self.update(
            first_name=first,
            last_name=last.strip(),
            street=address.street,
            city=address.city,
            state=address.state,
            pincode=address.pincode,
        )
        if address.phone and not self.form.phone.strip():
            self.form.phone = address.phone

    def missing_for_step(self, step: CheckoutStep) -> list[str]:
        return missing_fields(self.form, STEP_REQUIRED_FIELDS.get(step, ()))

    # ----- navigation -----

    def go_to_next_step(self) -> bool:
        if self.state is CheckoutState.CART_EMPTY:
            self.error = MSG_CART_EMPTY
            return False
        if self.step is CheckoutStep.PAYMENT:
            return False
        if self.missing_for_step(self.step):
            self.error = STEP_ERRORS[self.step]
            return False
        self.error = None
        self.step = CheckoutStep(self.step + 1)
        return True

    def go_to_prev_step(self) -> None:
        self.error = None
        if self.step > CheckoutStep.CONTACT:
            self.step = CheckoutStep(self.step - 1)

    # ----- submission -----

    def _fail(self, message: str, *, redirect_to: str | None = None) -> CheckoutOutcome:
        self.error = message
        self.is_submitting = False
        return CheckoutOutcome(False, error=message, redirect_to=redirect_to)

    async def place_order(self) -> CheckoutOutcome:
        if self._completed is not None:
            return CheckoutOutcome(True, order_id=self.order_id)
        if self.state is CheckoutState.CART_EMPTY:
            return self._fail(MSG_CART_EMPTY)
        if self.is_submitting:
            return CheckoutOutcome(False, error="Order submission already in progress.")
        if self.step is not CheckoutStep.PAYMENT:
            return self._fail(MSG_FINISH_STEPS_FIRST)

        if not self.session.is_authenticated or not self.session.token:
            logger.info("Checkout attempted without a session; redirecting to login")
            if self.navigate is not None:
                self.navigate(LOGIN_PATH)
            return self._fail(MSG_LOGIN_TO_ORDER, redirect_to=LOGIN_PATH)

        for step in (CheckoutStep.CONTACT, CheckoutStep.SHIPPING):
            if self.missing_for_step(step):
                return self._fail(STEP_ERRORS[step])

        self.error = None
        self.is_submitting = True
        if self.form.payment_method.is_online:
            return await self._pay_online()
        return await self._place_cod()

    async def _place_cod(self) -> CheckoutOutcome:
        body = {
            "orderItems": order_items_payload(self.cart.items),
            "shippingAddress": self.form.shipping_address().to_payload(),
            "paymentMethod": PaymentMethod.COD.value,
        }
        try:
            payload = await self.api.post("/orders", body)
            order_id = (payload.get("_id") or payload.get("id")) if isinstance(payload, dict) else None
            if not order_id:
                raise InvalidResponseError("Invalid response data", payload=payload)
        except StorefrontException as exc:
            logger.error("Error submitting COD order: %s", exc.message)
            return self._fail(error_message(exc, MSG_COD_FAILED))

        logger.info("COD order %s submitted", order_id)
        return await self._finish(CheckoutState.ORDER_PLACED, str(order_id))

    async def _pay_online(self) -> CheckoutOutcome:
        if not self.payment.enabled:
            logger.error("Payment key id is not configured")
            return self._fail(MSG_GATEWAY_CONFIG)

        items = order_items_payload(self.cart.items)
        request_key = build_request_hash(items)
        if request_key != self._gateway_key:
            self._gateway_order = None
            self._pending_outcome = None
            self._gateway_key = request_key

        outcome = self._pending_outcome
        if outcome is None:
            if self._gateway_order is None:
                try:
                    self._gateway_order = await self._create_gateway_order(items)
                except StorefrontException as exc:
                    return self._fail(self._init_error(exc))
            else:
                logger.info("Reusing gateway order %s", self._gateway_order.order_id)

            outcome = await self._open_widget(self._gateway_order)
            if outcome.kind is OutcomeKind.DISMISSED:
                logger.info("Payment widget dismissed")
                return self._fail(MSG_PAYMENT_CANCELLED)
            if outcome.kind is OutcomeKind.FAILED:
                logger.error("Payment failed: %s", outcome.failure_text())
                return self._fail(
                    f"Payment failed: {outcome.failure_text()}. "
                    "Please try again or choose another method."
                )
            self._pending_outcome = outcome
        else:
            logger.info("Re-verifying payment %s", outcome.razorpay_payment_id)

        return await self._verify(outcome, items)

    async def _create_gateway_order(self, items: list[dict]) -> GatewayOrder:
        payload = await self.api.post("/payments/create-order", {"items": items})
        if not isinstance(payload, dict) or not payload.get("orderId"):
            raise InvalidResponseError("Failed to create Razorpay order ID.", payload=payload)
        try:
            gateway_order = GatewayOrder.from_response(payload)
        except (TypeError, ValueError) as exc:
            raise InvalidResponseError("Failed to create Razorpay order ID.", payload=payload) from exc
        logger.info("Gateway order %s created", gateway_order.order_id)
        return gateway_order

    @staticmethod
    def _init_error(exc: StorefrontException) -> str:
        backend_message = exc.server_message if isinstance(exc, ApiError) else None
        logger.error("Error initiating payment: %s", backend_message or exc.message)
        if backend_message and any(marker in backend_message for marker in STOCK_ERROR_MARKERS):
            return f"Order Error: {backend_message}"
        return error_message(exc, MSG_PAYMENT_INIT_FAILED)

    def _checkout_options(self, gateway_order: GatewayOrder) -> CheckoutOptions:
        form = self.form
        return CheckoutOptions(
            key=self.payment.key_id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            name=self.payment.brand_name,
            description=f"Order Payment #{gateway_order.receipt or ''}",
            order_id=gateway_order.order_id,
            prefill={
                "name": f"{form.first_name} {form.last_name}".strip(),
                "email": form.email,
                "contact": form.phone,
            },
            notes={"address": f"{form.street}, {form.city}"},
            theme_color=self.payment.theme_color,
        )

    async def _open_widget(self, gateway_order: GatewayOrder) -> WidgetOutcome:
        try:
            return await self.widget.open(self._checkout_options(gateway_order))
        except PaymentGatewayError as exc:
            return WidgetOutcome.failed(exc.message, exc.reason)

    async def _verify(self, outcome: WidgetOutcome, items: list[dict]) -> CheckoutOutcome:
        body = {
            **outcome.verification_fields(),
            "orderDetails": {
                "orderItems": items,
                "shippingAddress": self.form.shipping_address().to_payload(),
                "paymentMethod": "online",
            },
        }
        try:
            payload = await self.api.post("/payments/verify", body)
            order_id = payload.get("orderId") if isinstance(payload, dict) else None
            if not order_id:
                raise InvalidResponseError("Invalid response data", payload=payload)
        except StorefrontException as exc:
            logger.error("Payment verification failed: %s", exc.message)
            capture_exception(exc, payment={"payment_id": outcome.razorpay_payment_id})
            if isinstance(exc, ApiError) and exc.status is not None and exc.status < 500:
                # Rejected signature: the widget must be reopened on the same gateway order.
                self._pending_outcome = None
            return self._fail(error_message(exc, MSG_VERIFY_FAILED))

        logger.info("Payment verified, order %s", order_id)
        return await self._finish(CheckoutState.PAYMENT_VERIFIED, str(order_id))

    async def _finish(self, state: CheckoutState, order_id: str) -> CheckoutOutcome:
        cleared = await self.cart.clear_cart()
        if not cleared.ok:
            logger.warning("Cart clear after order %s failed: %s", order_id, cleared.error)
            self.cart.discard_local_items()

        self._completed = state
        self.order_id = order_id
        self.is_submitting = False
        self.error = None
        self._gateway_order = None
        self._gateway_key = None
        self._pending_outcome = None

        path = ORDER_TRACKING_PATH.format(order_id=order_id)
        if self.navigate is not None:
            self.navigate(path)
        return CheckoutOutcome(True, order_id=order_id, redirect_to=path)
