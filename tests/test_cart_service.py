"""Cart store: server-replace semantics, auth gating and derived totals."""
from __future__ import annotations

import pytest

from fakes import cart_line, product_payload, sign_in
from storefront.core.config import ShippingPolicy
from storefront.core.exceptions import ApiError, AuthenticationError
from storefront.domain.entities.product import Product
from storefront.services.cart_service import CartStore

TWO_LINES = [cart_line("p1", 500, 1, mrp=800), cart_line("p2", 250, 2)]


@pytest.fixture
def cart(session, api) -> CartStore:
    return CartStore(session, api, shipping=ShippingPolicy(free_threshold=2000, standard_cost=99))


async def _signed_in_cart(cart, api, session, lines=TWO_LINES) -> CartStore:
    api.on("GET", "/cart", lines)
    sign_in(session)
    await session.drain()
    return cart


@pytest.mark.asyncio
async def test_login_triggers_fetch(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)

    assert api.called() == ["GET /cart"]
    assert [item.product.id for item in cart.items] == ["p1", "p2"]
    assert not cart.is_loading


@pytest.mark.asyncio
async def test_fetch_while_anonymous_makes_no_call(cart, api, session) -> None:
    session.restore()

    result = await cart.fetch_cart()

    assert result.ok
    assert cart.items == []
    assert api.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("action", "message"),
    [
        (lambda c: c.add_to_cart(Product(id="p1")), "Please log in to add items."),
        (lambda c: c.remove_from_cart("p1"), "Please log in to modify cart."),
        (lambda c: c.update_quantity("p1", 3), "Please log in to modify cart."),
        (lambda c: c.update_quantity("p1", 0), "Please log in to modify cart."),
        (lambda c: c.clear_cart(), "Please log in to clear cart."),
    ],
)
async def test_mutations_while_anonymous_make_no_call(cart, api, session, action, message) -> None:
    session.restore()

    result = await action(cart)

    assert not result.ok
    assert result.error == message
    assert cart.error == message
    assert api.calls == []


@pytest.mark.asyncio
async def test_add_replaces_items_with_server_array(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session, lines=[])
    api.on("POST", "/cart", [cart_line("p9", 120, 3)])

    result = await cart.add_to_cart(Product(id="p9", price=999), 3)

    assert result.ok
    assert api.body("POST", "/cart") == {"productId": "p9", "quantity": 3}
    # Price comes from the server line, never from the local product.
    assert cart.items[0].product.price == 120
    assert cart.item_count == 3


@pytest.mark.asyncio
async def test_failed_mutation_keeps_previous_items(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("POST", "/cart", ApiError("x", status=400, payload={"message": "Insufficient stock"}))

    result = await cart.add_to_cart(Product(id="p3"))

    assert result.error == "Insufficient stock"
    assert cart.error == "Insufficient stock"
    assert [item.product.id for item in cart.items] == ["p1", "p2"]
    assert not cart.is_loading


@pytest.mark.asyncio
async def test_fallback_message_when_server_is_silent(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("DELETE", "/cart/p1", ApiError(""))

    result = await cart.remove_from_cart("p1")

    assert result.error == "Failed to remove item"


@pytest.mark.asyncio
async def test_non_array_response_is_invalid(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("PUT", "/cart/p1", {"items": []})

    result = await cart.update_quantity("p1", 4)

    assert result.error == "Invalid response data"
    assert len(cart.items) == 2


@pytest.mark.asyncio
async def test_update_quantity_zero_removes_line(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("DELETE", "/cart/p1", [cart_line("p2", 250, 2)])

    result = await cart.update_quantity("p1", 0)

    assert result.ok
    assert api.called()[-1] == "DELETE /cart/p1"
    assert "PUT /cart/p1" not in api.called()
    assert len(cart.items) == 1


@pytest.mark.asyncio
async def test_update_quantity_negative_is_same_as_remove(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("DELETE", "/cart/p2", [cart_line("p1", 500, 1, mrp=800)])

    await cart.update_quantity("p2", -5)

    assert api.called()[-1] == "DELETE /cart/p2"
    assert [item.product.id for item in cart.items] == ["p1"]


@pytest.mark.asyncio
async def test_update_quantity_puts_new_value(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("PUT", "/cart/p2", [cart_line("p1", 500, 1), cart_line("p2", 250, 5)])

    await cart.update_quantity("p2", 5)

    assert api.body("PUT", "/cart/p2") == {"quantity": 5}
    assert cart.get_quantity("p2") == 5
    assert cart.contains("p1")
    assert not cart.contains("p9")


@pytest.mark.asyncio
async def test_clear_cart(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("DELETE", "/cart", [])

    result = await cart.clear_cart()

    assert result.ok
    assert cart.is_empty


@pytest.mark.asyncio
async def test_failed_fetch_empties_items(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("GET", "/cart", ApiError("Network Error"))

    result = await cart.fetch_cart()

    assert result.error == "Network Error"
    assert cart.items == []


@pytest.mark.asyncio
async def test_logout_empties_cart_without_call(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    calls = len(api.calls)

    session.clear()
    await session.drain()

    assert cart.items == []
    assert len(api.calls) == calls


@pytest.mark.asyncio
async def test_401_clears_session_and_cart(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)
    api.on("POST", "/cart", AuthenticationError("Request failed with status code 401", status=401))

    result = await cart.add_to_cart(Product(id="p3"))

    assert not result.ok
    assert not session.is_authenticated
    assert cart.items == []


@pytest.mark.asyncio
async def test_response_for_ended_session_is_dropped(cart, api, session) -> None:
    await _signed_in_cart(cart, api, session)

    def _respond_after_logout(_body):
        session.clear()
        return [cart_line("p1", 500, 7)]

    api.on("POST", "/cart", _respond_after_logout)

    result = await cart.add_to_cart(Product(id="p1"))

    assert not result.ok
    assert cart.items == []


@pytest.mark.parametrize(
    ("lines", "total", "count"),
    [
        ([], 0, 0),
        ([cart_line("a", 100, 1)], 100, 1),
        ([cart_line("a", 100, 2), cart_line("b", 35.5, 4)], 342, 6),
    ],
)
def test_total_and_item_count_are_folds(cart, lines, total, count) -> None:
    from storefront.services.cart_service import parse_cart

    cart.items = parse_cart(lines)

    assert cart.total == total
    assert cart.item_count == count


def test_savings_shipping_and_free_shipping_gap(cart) -> None:
    from storefront.services.cart_service import parse_cart

    cart.items = parse_cart([cart_line("a", 500, 2, mrp=800), cart_line("b", 300, 1)])

    assert cart.total == 1300
    assert cart.savings == 600
    assert cart.shipping == 99
    assert cart.final_total == 1399
    assert cart.amount_to_free_shipping == 700

    cart.items = parse_cart([cart_line("a", 1000, 3)])
    assert cart.shipping == 0
    assert cart.amount_to_free_shipping == 0


def test_empty_cart_has_no_shipping(cart) -> None:
    assert cart.shipping == 0
    assert cart.final_total == 0


def test_product_payload_is_a_valid_product() -> None:
    product = Product.model_validate(product_payload("p1", 10))
    assert product.category_id == "c1"
