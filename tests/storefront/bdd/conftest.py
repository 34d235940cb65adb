"""Shared BDD fixtures and step definitions for the storefront."""

import asyncio
import json

import pytest
from pytest_bdd import given, parsers, then, when
from storefront.facade import CartFacade, WishlistFacade
from storefront.guest.cart_store import GuestCartStore
from storefront.notifications import NotificationLevel
from storefront.reconciliation import GuestMergeReconciler
from storefront.shared.product import ProductSnapshot
from storefront.storage.port import MERGE_MARKER_KEY

ACCOUNT_TOKEN = "tok-shopper"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Products by key: ``"P1"`` for a simple product, ``"P2/M"`` for a size."""
    return {}


@pytest.fixture()
def cart_facade(session, guest_cart, cart_service, notifier):
    return CartFacade(session, guest_cart, cart_service, notifier)


@pytest.fixture()
def wishlist_facade(session, guest_wishlist, guest_cart, wishlist_service, notifier):
    return WishlistFacade(session, guest_wishlist, guest_cart, wishlist_service, notifier)


@pytest.fixture()
def reconciler(session, guest_cart, guest_wishlist, cart_service, wishlist_service, notifier, storage):
    reconciler = GuestMergeReconciler(
        session,
        guest_cart,
        guest_wishlist,
        cart_service,
        wishlist_service,
        notifier,
        storage,
        settle_delay=0.0,
    )
    reconciler.attach()
    yield reconciler
    reconciler.detach()


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{pid}" priced {price:g} with {stock:d} in stock'))
def simple_product(products, pid, price, stock):
    products[pid] = ProductSnapshot.build(pid, price=price, name=f"Product {pid}", stock=stock)


@given(parsers.cfparse('a product "{pid}" size "{size}" priced {price:g} with {stock:d} in stock'))
def sized_product(products, pid, size, price, stock):
    products[f"{pid}/{size}"] = ProductSnapshot.build(
        pid, price=price, name=f"Product {pid}", stock=stock, options={"size": size}
    )


@given("the backend is unavailable")
def backend_unavailable(backend):
    backend.configure(should_succeed=False)


@given("a merge marker was left by an earlier run")
def leftover_marker(storage):
    storage.set_item(MERGE_MARKER_KEY, json.dumps({"sessionId": "earlier-run"}))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the guest adds {qty:d} of "{key}" to the cart'))
@when(parsers.cfparse('the shopper adds {qty:d} of "{key}" to the cart'))
def add_to_cart(cart_facade, products, key, qty):
    asyncio.run(cart_facade.add(products[key], qty))


@when(parsers.cfparse('the guest sets "{key}" to {qty:d}'))
def set_quantity(cart_facade, products, key, qty):
    identity = products[key].variant_identity
    asyncio.run(cart_facade.update(identity.product_id, qty, identity))


@when(parsers.cfparse('the guest removes "{key}" from the cart'))
def remove_from_cart(cart_facade, products, key):
    identity = products[key].variant_identity
    asyncio.run(cart_facade.remove(identity.product_id, identity))


@when(parsers.cfparse('the guest saves "{key}" to the wishlist'))
def save_to_wishlist(wishlist_facade, products, key):
    asyncio.run(wishlist_facade.add(products[key]))


@when(parsers.cfparse('the guest moves "{key}" to the cart'))
def move_to_cart(wishlist_facade, products, key):
    identity = products[key].variant_identity
    asyncio.run(wishlist_facade.move_to_cart(identity.product_id, identity))


@when("the page is reloaded", target_fixture="cart_facade")
def reload_page(session, storage, cart_service, notifier):
    return CartFacade(session, GuestCartStore(storage), cart_service, notifier)


@when("the shopper logs in")
def log_in(session, reconciler):
    async def scenario():
        session.set_credentials({"_id": "shopper"}, ACCOUNT_TOKEN)
        await reconciler.wait()

    asyncio.run(scenario())


@when("the shopper logs out")
def log_out(session):
    session.logout()


@when("the storefront starts")
def storefront_starts(reconciler):
    async def scenario():
        await reconciler.resume()
        await reconciler.wait()

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _cart(cart_facade):
    return asyncio.run(cart_facade.current())


@then(parsers.cfparse("the cart has {count:d} line"))
@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_lines(cart_facade, count):
    assert len(_cart(cart_facade).items) == count


@then(parsers.cfparse("the cart holds {count:d} items"))
def cart_holds_items(cart_facade, count):
    assert _cart(cart_facade).total_items == count


@then(parsers.cfparse("the cart total is {total:g}"))
def cart_total(cart_facade, total):
    assert _cart(cart_facade).total_price == pytest.approx(total)


@then(parsers.cfparse('the line "{key}" has quantity {qty:d}'))
def line_quantity(cart_facade, products, key, qty):
    line = _cart(cart_facade).find(products[key].variant_identity)
    assert line is not None, f"No cart line for {key}"
    assert line.quantity == qty


@then("the cart is empty")
def cart_is_empty(cart_facade):
    assert _cart(cart_facade).items == ()


@then("the guest cart is empty")
def guest_cart_is_empty(guest_cart):
    assert guest_cart.is_empty
    assert guest_cart.total_items == 0


@then("the guest wishlist is empty")
def guest_wishlist_is_empty(guest_wishlist):
    assert guest_wishlist.is_empty


@then(parsers.cfparse('the wishlist contains "{key}"'))
def wishlist_contains(guest_wishlist, products, key):
    identity = products[key].variant_identity
    assert guest_wishlist.contains(identity.product_id, identity)


@then(parsers.cfparse('a cart merge was sent with {qty:d} of "{key}"'))
def cart_merge_sent(backend, products, key, qty):
    merges = backend.calls_to("merge", service="cart")
    assert len(merges) == 1
    assert merges[0]["lines"] == [{"line": products[key].variant_identity.label, "quantity": qty}]


@then(parsers.cfparse("{count:d} merge request was sent"))
@then(parsers.cfparse("{count:d} merge requests were sent"))
def merge_requests_sent(backend, count):
    assert len(backend.calls_to("merge")) == count


@then("no merge was sent")
def no_merge_sent(backend):
    assert backend.calls_to("merge") == []


@then(parsers.cfparse('the account cart has {qty:d} of "{key}"'))
def account_cart_has(backend, products, key, qty):
    line = backend.cart_for(ACCOUNT_TOKEN).find(products[key].variant_identity)
    assert line is not None and line.quantity == qty


@then(parsers.cfparse('the account wishlist contains "{key}"'))
def account_wishlist_contains(backend, products, key):
    assert backend.wishlist_for(ACCOUNT_TOKEN).contains(products[key].variant_identity)


@then(parsers.cfparse('the shopper is told "{message}"'))
def shopper_is_told(notifier, message):
    assert message in notifier.messages(NotificationLevel.SUCCESS)


@then(parsers.cfparse('the shopper is warned "{message}"'))
def shopper_is_warned(notifier, message):
    assert message in notifier.messages(NotificationLevel.WARNING)



@then(parsers.cfparse("the wishlist has {count:d} entry"))
@then(parsers.cfparse("the wishlist has {count:d} entries"))
def wishlist_has_entries(guest_wishlist, count):
    assert guest_wishlist.total_items == count
