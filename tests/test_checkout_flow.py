"""Checkout flow: step guards, COD orders and the hosted-payment path."""
from __future__ import annotations

import pytest

from fakes import FakeWidget, cart_line, sign_in
from storefront.core.config import PaymentConfig, ShippingPolicy
from storefront.core.exceptions import ApiError, PaymentGatewayError, ValidationException
from storefront.domain.entities.address import SavedAddress
from storefront.domain.value_objects import PaymentMethod
from storefront.integrations.payment_gateway import WidgetOutcome
from storefront.services.cart_service import CartStore, parse_cart
from storefront.services.checkout_service import CheckoutFlow, CheckoutState, CheckoutStep

LINES = [cart_line("p1", 500, 1, mrp=800), cart_line("p2", 250, 2)]
GATEWAY_ORDER = {"orderId": "order_GW1", "amount": 109900, "currency": "INR", "receipt": "rcpt_1"}
SIGNED = WidgetOutcome.success("order_GW1", "pay_1", "sig_1")


class Harness:
    def __init__(self, session, api, widget: FakeWidget, key_id: str = "rzp_test_key"):
        self.session = session
        self.api = api
        self.widget = widget
        self.visited: list[str] = []
        self.cart = CartStore(session, api, shipping=ShippingPolicy())
        self.key_id = key_id

    async def start(self, lines=LINES) -> CheckoutFlow:
        self.api.on("GET", "/cart", lines)
        sign_in(self.session)
        await self.session.drain()
        return self.flow()

    def flow(self) -> CheckoutFlow:
        return CheckoutFlow(
            self.session,
            self.cart,
            self.api,
            self.widget,
            payment=PaymentConfig(key_id=self.key_id),
            navigate=self.visited.append,
        )


@pytest.fixture
def widget() -> FakeWidget:
    return FakeWidget(SIGNED)


@pytest.fixture
def harness(session, api, widget) -> Harness:
    return Harness(session, api, widget)


def _to_payment(flow: CheckoutFlow) -> None:
    assert flow.go_to_next_step()
    assert flow.go_to_next_step()
    assert flow.step is CheckoutStep.PAYMENT


# ----- cart empty -----


@pytest.mark.asyncio
async def test_empty_cart_shows_empty_state(harness, api) -> None:
    flow = await harness.start(lines=[])

    assert flow.state is CheckoutState.CART_EMPTY
    assert not flow.go_to_next_step()
    assert flow.error == "Your cart is empty"

    outcome = await flow.place_order()
    assert outcome.error == "Your cart is empty"
    assert api.called("POST") == []


# ----- form and steps -----


@pytest.mark.asyncio
async def test_form_is_prefilled_from_profile(harness) -> None:
    flow = await harness.start()

    assert flow.state is CheckoutState.IN_PROGRESS
    assert flow.form.email == "asha@example.com"
    assert flow.form.phone == "9876543210"
    assert flow.form.first_name == "Asha"
    assert flow.form.pincode == "626123"
    assert flow.form.payment_method is PaymentMethod.COD


@pytest.mark.asyncio
async def test_contact_step_requires_email_and_phone(harness) -> None:
    flow = await harness.start()
    flow.update(phone="   ")

    assert not flow.go_to_next_step()
    assert flow.step is CheckoutStep.CONTACT
    assert flow.error == "Please enter your email and phone number."
    assert flow.missing_for_step(CheckoutStep.CONTACT) == ["phone"]

    flow.update(phone="9876543210")
    assert flow.go_to_next_step()
    assert flow.step is CheckoutStep.SHIPPING
    assert flow.error is None


@pytest.mark.asyncio
async def test_shipping_step_requires_address_fields(harness) -> None:
    flow = await harness.start()
    flow.update(street="", last_name="", state="")
    assert flow.go_to_next_step()

    assert not flow.go_to_next_step()
    assert flow.error == "Please fill in all required address fields."
    assert flow.step is CheckoutStep.SHIPPING

    # last name and state are not part of the guard
    flow.update(street="12 Car Street")
    assert flow.go_to_next_step()
    assert flow.step is CheckoutStep.PAYMENT


@pytest.mark.asyncio
async def test_advancing_never_touches_entered_fields(harness) -> None:
    flow = await harness.start()
    flow.update(city="Madurai", pincode="625001", payment_method="upi")
    before = (flow.form.city, flow.form.pincode, flow.form.payment_method)

    _to_payment(flow)

    assert (flow.form.city, flow.form.pincode, flow.form.payment_method) == before


@pytest.mark.asyncio
async def test_going_back_is_unconditional_and_clears_error(harness) -> None:
    flow = await harness.start()
    _to_payment(flow)
    flow.update(email="")
    flow.error = "Payment process was cancelled."

    flow.go_to_prev_step()
    assert flow.step is CheckoutStep.SHIPPING
    assert flow.error is None

    flow.go_to_prev_step()
    flow.go_to_prev_step()
    assert flow.step is CheckoutStep.CONTACT


@pytest.mark.asyncio
async def test_unknown_field_is_rejected(harness) -> None:
    flow = await harness.start()
    with pytest.raises(ValidationException):
        flow.update(coupon="DIWALI")


@pytest.mark.asyncio
async def test_unknown_payment_method_is_rejected(harness) -> None:
    flow = await harness.start()

    with pytest.raises(ValidationException) as excinfo:
        flow.update(payment_method="bogus")

    assert excinfo.value.fields == ["payment_method"]
    assert flow.form.payment_method is PaymentMethod.COD


@pytest.mark.asyncio
async def test_apply_saved_address(harness) -> None:
    flow = await harness.start()
    address = SavedAddress(
        id="a1", label="Home", name="Ravi Shankar", street="4 Temple Road",
        city="Madurai", state="Tamil Nadu", pincode="625001", phone="9123456789",
    )

    flow.apply_address(address)

    assert (flow.form.first_name, flow.form.last_name) == ("Ravi", "Shankar")
    assert flow.form.street == "4 Temple Road"
    assert flow.form.phone == "9876543210"


@pytest.mark.asyncio
async def test_order_summary_totals(harness) -> None:
    flow = await harness.start()

    assert flow.subtotal == 1000
    assert flow.shipping == 99
    assert flow.total == 1099


# ----- submission guards -----


@pytest.mark.asyncio
async def test_submit_revalidates_previous_steps(harness, api) -> None:
    flow = await harness.start()
    _to_payment(flow)
    flow.update(email=" ")

    outcome = await flow.place_order()

    assert outcome.error == "Please enter your email and phone number."
    assert api.called("POST") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("advance", [0, 1])
async def test_submit_only_from_payment_step(harness, api, advance) -> None:
    flow = await harness.start()
    for _ in range(advance):
        assert flow.go_to_next_step()

    outcome = await flow.place_order()

    assert outcome.error == "Please complete your contact and shipping details first."
    assert flow.state is CheckoutState.IN_PROGRESS
    assert api.called("POST") == []


@pytest.mark.asyncio
async def test_submit_requires_login(harness, api, session) -> None:
    flow = await harness.start()
    _to_payment(flow)
    session.clear()
    harness.cart.items = parse_cart(LINES)

    outcome = await flow.place_order()

    assert outcome.error == "You must be logged in to place an order."
    assert outcome.redirect_to == "/login"
    assert harness.visited == ["/login"]
    assert api.called("POST") == []


# ----- cash on delivery -----


@pytest.mark.asyncio
async def test_cod_order_clears_cart_and_navigates(harness, api) -> None:
    flow = await harness.start()
    _to_payment(flow)
    api.on("POST", "/orders", {"_id": "o123", "status": "pending"})
    api.on("DELETE", "/cart", [])

    outcome = await flow.place_order()

    assert outcome.ok
    assert outcome.order_id == "o123"
    assert harness.visited == ["/orders/o123"]
    assert flow.state is CheckoutState.ORDER_PLACED
    assert harness.cart.items == []

    body = api.body("POST", "/orders")
    assert body["paymentMethod"] == "cod"
    assert body["orderItems"] == [{"productId": "p1", "quantity": 1}, {"productId": "p2", "quantity": 2}]
    assert body["shippingAddress"]["firstName"] == "Asha"
    assert body["shippingAddress"]["pincode"] == "626123"


@pytest.mark.asyncio
async def test_cod_failure_stays_on_payment_step(harness, api) -> None:
    flow = await harness.start()
    _to_payment(flow)
    api.on("POST", "/orders", ApiError("x", status=400, payload={"message": "Insufficient stock for Sky Shot"}))

    outcome = await flow.place_order()

    assert outcome.error == "Insufficient stock for Sky Shot"
    assert flow.error == "Insufficient stock for Sky Shot"
    assert flow.step is CheckoutStep.PAYMENT
    assert flow.state is CheckoutState.IN_PROGRESS
    assert len(harness.cart.items) == 2
    assert harness.visited == []


@pytest.mark.asyncio
async def test_cod_failure_without_message_uses_fallback(harness, api) -> None:
    flow = await harness.start()
    _to_payment(flow)
    api.on("POST", "/orders", ApiError(""))

    outcome = await flow.place_order()

    assert outcome.error == "Failed to place COD order."


@pytest.mark.asyncio
async def test_cart_is_emptied_locally_when_clear_fails(harness, api) -> None:
    flow = await harness.start()
    _to_payment(flow)
    api.on("POST", "/orders", {"_id": "o5"})
    api.on("DELETE", "/cart", ApiError("Network Error"))

    outcome = await flow.place_order()

    assert outcome.ok
    assert harness.cart.items == []
    assert harness.visited == ["/orders/o5"]


# ----- online payment -----


@pytest.mark.asyncio
async def test_online_payment_verified(harness, api, widget) -> None:
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)
    api.on("POST", "/payments/verify", {"orderId": "o77"})
    api.on("DELETE", "/cart", [])

    outcome = await flow.place_order()

    assert outcome.ok
    assert flow.state is CheckoutState.PAYMENT_VERIFIED
    assert harness.visited == ["/orders/o77"]
    assert harness.cart.items == []

    assert api.body("POST", "/payments/create-order") == {
        "items": [{"productId": "p1", "quantity": 1}, {"productId": "p2", "quantity": 2}]
    }
    options = widget.opened[0]
    assert options.key == "rzp_test_key"
    assert options.order_id == "order_GW1"
    assert options.amount == 109900
    assert options.description == "Order Payment #rcpt_1"
    assert options.name == "Akash Crackers"
    assert options.prefill == {"name": "Asha Kumar", "email": "asha@example.com", "contact": "9876543210"}
    widget_options = options.to_dict()
    assert widget_options["notes"] == {"address": "12 Car Street, Sivakasi"}
    assert widget_options["theme"] == {"color": "#E53E3E"}

    verify = api.body("POST", "/payments/verify")
    assert verify["razorpay_order_id"] == "order_GW1"
    assert verify["razorpay_payment_id"] == "pay_1"
    assert verify["razorpay_signature"] == "sig_1"
    assert verify["orderDetails"]["paymentMethod"] == "online"
    assert verify["orderDetails"]["shippingAddress"]["city"] == "Sivakasi"


@pytest.mark.asyncio
async def test_missing_gateway_key_is_a_configuration_error(session, api, widget) -> None:
    harness = Harness(session, api, widget, key_id="")
    flow = await harness.start()
    flow.update(payment_method="upi")
    _to_payment(flow)

    outcome = await flow.place_order()

    assert outcome.error == "Payment gateway configuration error. Please contact support."
    assert api.called("POST") == []


@pytest.mark.asyncio
async def test_dismissed_widget_then_retry_reuses_gateway_order(harness, api, widget) -> None:
    widget.outcomes = [WidgetOutcome.dismissed(), SIGNED]
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)
    api.on("POST", "/payments/verify", {"orderId": "o8"})
    api.on("DELETE", "/cart", [])

    first = await flow.place_order()
    assert first.error == "Payment process was cancelled."
    assert flow.step is CheckoutStep.PAYMENT
    assert not flow.is_submitting

    second = await flow.place_order()
    assert second.ok
    assert api.called().count("POST /payments/create-order") == 1
    assert len(widget.opened) == 2


@pytest.mark.asyncio
async def test_widget_failure_message(harness, api, widget) -> None:
    widget.outcomes = [WidgetOutcome.failed(description="Card declined")]
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)

    outcome = await flow.place_order()

    assert outcome.error == "Payment failed: Card declined. Please try again or choose another method."
    assert "POST /payments/verify" not in api.called()


@pytest.mark.asyncio
async def test_widget_failure_without_details(harness, api, widget) -> None:
    widget.outcomes = [PaymentGatewayError("")]
    flow = await harness.start()
    flow.update(payment_method="upi")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)

    outcome = await flow.place_order()

    assert outcome.error == "Payment failed: Unknown error. Please try again or choose another method."


@pytest.mark.asyncio
async def test_verification_outage_is_retried_without_reopening_widget(harness, api, widget) -> None:
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)
    api.on("POST", "/payments/verify", ApiError("Request failed with status code 502", status=502), {"orderId": "o9"})
    api.on("DELETE", "/cart", [])

    first = await flow.place_order()
    assert first.error == "Request failed with status code 502"
    assert len(harness.cart.items) == 2

    second = await flow.place_order()
    assert second.ok
    assert len(widget.opened) == 1
    assert api.called().count("POST /payments/create-order") == 1
    assert api.called().count("POST /payments/verify") == 2


@pytest.mark.asyncio
async def test_rejected_signature_reopens_widget_on_same_gateway_order(harness, api, widget) -> None:
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)
    api.on("POST", "/payments/verify", ApiError("x", status=400, payload={"message": "Invalid signature"}))

    first = await flow.place_order()
    assert first.error == "Invalid signature"

    await flow.place_order()
    assert len(widget.opened) == 2
    assert api.called().count("POST /payments/create-order") == 1


@pytest.mark.asyncio
async def test_verification_failure_fallback_text(harness, api) -> None:
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)
    api.on("POST", "/payments/verify", ApiError("", status=400))

    outcome = await flow.place_order()

    assert outcome.error == "Payment verification failed. Please contact support."


@pytest.mark.asyncio
async def test_changed_cart_creates_new_gateway_order(harness, api, widget) -> None:
    widget.outcomes = [WidgetOutcome.dismissed()]
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", GATEWAY_ORDER)

    await flow.place_order()
    harness.cart.items = parse_cart([cart_line("p1", 500, 3)])
    await flow.place_order()

    assert api.called().count("POST /payments/create-order") == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (ApiError("x", status=400, payload={"message": "Insufficient stock for Rocket"}), "Order Error: Insufficient stock for Rocket"),
        (ApiError("x", status=404, payload={"message": "Product not found: p2"}), "Order Error: Product not found: p2"),
        (ApiError("x", status=500, payload={"message": "Gateway down"}), "Gateway down"),
        (ApiError(""), "Could not initiate payment. Please try again."),
    ],
)
async def test_create_order_errors(harness, api, widget, error, expected) -> None:
    flow = await harness.start()
    flow.update(payment_method="card")
    _to_payment(flow)
    api.on("POST", "/payments/create-order", error)

    outcome = await flow.place_order()

    assert outcome.error == expected
    assert widget.opened == []
