"""Configurable fake cart/wishlist backend for development and testing.

Keeps one ``Cart`` and one ``Wishlist`` aggregate per account (keyed by the
bearer token) in memory, so merges and stock clamping behave exactly like
the guest stores. It can be configured at runtime to fail every call, and
records each call in ``calls`` for assertions.

Like the real backend it rejects unauthenticated calls and adds that would
exceed the known stock.
"""

from protean.exceptions import ValidationError

from storefront.cart.cart import Cart
from storefront.remote.port import CartService, RemoteServiceError, WishlistService
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity
from storefront.shared.views import CartLine, CartView, WishlistEntry, WishlistView
from storefront.wishlist.wishlist import Wishlist


class FakeBackend:
    """In-memory account carts and wishlists shared by the fake services."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Service unavailable"
        self.calls: list[dict] = []
        self.carts: dict[str, Cart] = {}
        self.wishlists: dict[str, Wishlist] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Service unavailable") -> None:
        """Configure backend behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def record(self, method: str, account: str | None, **details) -> str:
        self.calls.append({"method": method, "account": account, **details})
        if account is None:
            raise RemoteServiceError("Not authorized, no token", 401)
        if not self.should_succeed:
            raise RemoteServiceError(self.failure_reason, 503)
        return account

    def calls_to(self, method: str, service: str | None = None) -> list[dict]:
        return [
            call
            for call in self.calls
            if call["method"] == method and (service is None or call["service"] == service)
        ]

    def cart_for(self, account: str) -> Cart:
        if account not in self.carts:
            self.carts[account] = Cart(owner=account)
        return self.carts[account]

    def wishlist_for(self, account: str) -> Wishlist:
        if account not in self.wishlists:
            self.wishlists[account] = Wishlist(owner=account)
        return self.wishlists[account]

    def add_to_cart(self, account: str, product: ProductSnapshot, quantity: int) -> Cart:
        cart = self.cart_for(account)
        existing = cart.find(product.variant_identity)
        requested = quantity + (existing.quantity if existing else 0)
        if product.stock is not None and requested > product.stock:
            raise RemoteServiceError(f"Only {product.stock} left in stock", 400)
        try:
            cart.add_item(product, quantity)
        except ValidationError as exc:
            raise RemoteServiceError(_first_message(exc), 400) from exc
        cart._events.clear()
        return cart


def _first_message(exc: ValidationError) -> str:
    for messages in exc.messages.values():
        if messages:
            return messages[0]
    return "Invalid request"


class _FakeService:
    service: str = ""

    def __init__(self, backend: FakeBackend, token_provider) -> None:
        self.backend = backend
        self.token_provider = token_provider

    def _account(self, method: str, **details) -> str:
        return self.backend.record(method, self.token_provider(), service=self.service, **details)


class FakeCartService(_FakeService, CartService):
    service = "cart"

    def _view(self, account: str) -> CartView:
        cart = self.backend.cart_for(account)
        cart._events.clear()
        return cart.to_view()

    async def get_cart(self) -> CartView:
        return self._view(self._account("get_cart"))

    async def count(self) -> int:
        return self._view(self._account("count")).total_items

    async def add_item(self, product: ProductSnapshot, quantity: int) -> CartView:
        account = self._account("add_item", line=product.variant_identity.label, quantity=quantity)
        self.backend.add_to_cart(account, product, quantity)
        return self._view(account)

    async def update_item(self, identity: VariantIdentity, quantity: int) -> CartView:
        account = self._account("update_item", line=identity.label, quantity=quantity)
        cart = self.backend.cart_for(account)
        if cart.find(identity) is None:
            raise RemoteServiceError("Item not found in cart", 404)
        cart.update_item(identity, quantity)
        return self._view(account)

    async def remove_item(self, identity: VariantIdentity) -> CartView:
        account = self._account("remove_item", line=identity.label)
        self.backend.cart_for(account).remove_item(identity)
        return self._view(account)

    async def clear(self) -> CartView:
        account = self._account("clear")
        self.backend.cart_for(account).clear()
        return self._view(account)

    async def merge(self, lines: list[CartLine]) -> CartView:
        account = self._account(
            "merge",
            lines=[{"line": line.variant_identity.label, "quantity": line.quantity} for line in lines],
        )
        self.backend.cart_for(account).merge(lines)
        return self._view(account)


class FakeWishlistService(_FakeService, WishlistService):
    service = "wishlist"

    def _view(self, account: str) -> WishlistView:
        wishlist = self.backend.wishlist_for(account)
        wishlist._events.clear()
        return wishlist.to_view()

    async def get_wishlist(self) -> WishlistView:
        return self._view(self._account("get_wishlist"))

    async def count(self) -> int:
        return self._view(self._account("count")).total_items

    async def contains(self, identity: VariantIdentity) -> bool:
        account = self._account("contains", line=identity.label)
        return self.backend.wishlist_for(account).contains(identity)

    async def add_item(self, product: ProductSnapshot) -> WishlistView:
        account = self._account("add_item", line=product.variant_identity.label)
        if not self.backend.wishlist_for(account).add_item(product):
            raise RemoteServiceError("Product already in wishlist", 400)
        return self._view(account)

    async def remove_item(self, identity: VariantIdentity) -> WishlistView:
        account = self._account("remove_item", line=identity.label)
        self.backend.wishlist_for(account).remove_item(identity)
        return self._view(account)

    async def clear(self) -> WishlistView:
        account = self._account("clear")
        self.backend.wishlist_for(account).clear()
        return self._view(account)

    async def move_to_cart(self, identity: VariantIdentity) -> WishlistView:
        account = self._account("move_to_cart", line=identity.label)
        wishlist = self.backend.wishlist_for(account)
        item = wishlist.find(identity)
        if item is None:
            raise RemoteServiceError("Product not found in wishlist", 404)

        product = ProductSnapshot.for_identity(
            identity, price=item.price, name=item.name, image=item.image, stock=item.stock
        )
        self.backend.add_to_cart(account, product, 1)
        wishlist.remove_item(identity)
        return self._view(account)

    async def merge(self, entries: list[WishlistEntry]) -> WishlistView:
        account = self._account("merge", lines=[entry.variant_identity.label for entry in entries])
        self.backend.wishlist_for(account).merge(entries)
        return self._view(account)
