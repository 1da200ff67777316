"""Command-line front end: ``python -m storefront <command>``."""
from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from .bootstrap import Storefront, build_storefront, init_observability
from .core.config import load_settings
from .core.exceptions import StorefrontException
from .core.formatting import format_price
from .domain.entities.product import Product
from .domain.value_objects import PaymentMethod
from .services.checkout_service import CheckoutStep


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Storefront client.")
    parser.add_argument("--env-file", help="Read settings from this file instead of ./.env.")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and persist the session.")
    login.add_argument("email")
    login.add_argument("--password", help="Prompted for when omitted.")

    sub.add_parser("logout", help="Forget the persisted session.")
    sub.add_parser("whoami", help="Show the signed-in user.")
    sub.add_parser("categories", help="List catalog categories.")

    cart = sub.add_parser("cart", help="Show or change the cart.")
    cart_sub = cart.add_subparsers(dest="cart_command")
    cart_sub.add_parser("show")
    add = cart_sub.add_parser("add")
    add.add_argument("product_id")
    add.add_argument("--qty", type=int, default=1)
    remove = cart_sub.add_parser("remove")
    remove.add_argument("product_id")
    set_qty = cart_sub.add_parser("set")
    set_qty.add_argument("product_id")
    set_qty.add_argument("quantity", type=int)

    content = sub.add_parser("content", help="Print a content value.")
    content.add_argument("key")

    orders = sub.add_parser("orders", help="List my orders or show one.")
    orders.add_argument("order_id", nargs="?")

    checkout = sub.add_parser("checkout", help="Place an order for the current cart.")
    method = checkout.add_mutually_exclusive_group()
    method.add_argument("--cod", action="store_true", help="Cash on delivery (default).")
    method.add_argument(
        "--method",
        choices=[m.value for m in PaymentMethod],
        help="Payment method; card and upi open the payment widget.",
    )
    for name in ("email", "phone", "first-name", "last-name", "street", "city", "state", "pincode"):
        checkout.add_argument(f"--{name}")
    return parser


def _print_cart(storefront: Storefront) -> None:
    cart = storefront.cart
    if cart.is_empty:
        print("Your cart is empty")
        return
    for item in cart.items:
        print(f"{item.product.id}  {item.product.name}  x{item.quantity}  {format_price(item.line_total)}")
    print(f"Items: {cart.item_count}  Subtotal: {format_price(cart.total)}")
    print(f"Shipping: {format_price(cart.shipping)}  Total: {format_price(cart.final_total)}")
    if cart.savings:
        print(f"You save {format_price(cart.savings)}")


async def _cart(storefront: Storefront, args: argparse.Namespace) -> int:
    cart = storefront.cart
    command = args.cart_command or "show"
    if command == "add":
        result = await cart.add_to_cart(Product(id=args.product_id), args.qty)
    elif command == "remove":
        result = await cart.remove_from_cart(args.product_id)
    elif command == "set":
        result = await cart.update_quantity(args.product_id, args.quantity)
    else:
        result = await cart.fetch_cart()
    if not result.ok:
        print(f"Error: {result.error}")
        return 1
    _print_cart(storefront)
    return 0


async def _orders(storefront: Storefront, args: argparse.Namespace) -> int:
    if args.order_id:
        result = await storefront.orders.fetch_order(args.order_id)
        if not result.ok:
            print(f"Error: {result.error}")
            return 1
        order = result.data
        print(f"Order {order.id}: {order.status.value}, {order.item_count} items, {format_price(order.total)}")
        if order.tracking_number:
            print(f"Tracking: {order.tracking_number}")
        return 0

    result = await storefront.orders.fetch_my_orders()
    if not result.ok:
        print(f"Error: {result.error}")
        return 1
    for order in result.data:
        print(f"{order.id}  {order.created_at or ''}  {order.status.value}  {format_price(order.total)}")
    return 0


async def _checkout(storefront: Storefront, args: argparse.Namespace) -> int:
    flow = storefront.checkout(navigate=lambda path: print(f"-> {path}"))
    overrides = {
        name: value
        for name, value in (
            ("email", args.email),
            ("phone", args.phone),
            ("first_name", args.first_name),
            ("last_name", args.last_name),
            ("street", args.street),
            ("city", args.city),
            ("state", args.state),
            ("pincode", args.pincode),
        )
        if value is not None
    }
    flow.update(payment_method=args.method or PaymentMethod.COD.value, **overrides)

    while flow.step is not CheckoutStep.PAYMENT:
        if not flow.go_to_next_step():
            print(f"Error: {flow.error}")
            missing = flow.missing_for_step(flow.step)
            if missing:
                print("Missing: " + ", ".join(missing))
            return 1

    print(f"Subtotal {format_price(flow.subtotal)}, shipping {format_price(flow.shipping)}, total {format_price(flow.total)}")
    outcome = await flow.place_order()
    if not outcome.ok:
        print(f"Error: {outcome.error}")
        return 1
    print(f"Order placed: {outcome.order_id}")
    return 0


async def run(storefront: Storefront, args: argparse.Namespace) -> int:
    if args.command == "login":
        password = args.password or getpass.getpass("Password: ")
        result = await storefront.auth.login(args.email, password)
        print(f"Logged in as {result.data.full_name or result.data.email}" if result.ok else f"Error: {result.error}")
        return 0 if result.ok else 1

    if args.command == "logout":
        storefront.auth.logout()
        print("Logged out")
        return 0

    if args.command == "whoami":
        user = storefront.session.user
        if not storefront.session.is_authenticated or user is None:
            print("Not logged in")
            return 1
        print(f"{user.full_name} <{user.email}> ({user.role.value})")
        return 0

    if args.command == "categories":
        result = await storefront.categories.fetch_categories()
        if not result.ok:
            print(f"Error: {result.error}")
            return 1
        for category in result.data:
            print(f"{category.id}  {category.name}")
        return 0

    if args.command == "content":
        await storefront.content.fetch_content()
        print(storefront.content.get_content_value(args.key))
        return 0

    if args.command == "cart":
        return await _cart(storefront, args)
    if args.command == "orders":
        return await _orders(storefront, args)
    if args.command == "checkout":
        return await _checkout(storefront, args)
    return 2


async def _main(args: argparse.Namespace) -> int:
    settings = load_settings(args.env_file)
    init_observability(settings)
    async with build_storefront(settings) as storefront:
        return await run(storefront, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_main(args))
    except StorefrontException as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
