"""Guest cart store — the anonymous visitor's cart, kept in local storage."""

import structlog

from storefront.cart.cart import Cart
from storefront.guest.store import GuestStore
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity, resolve
from storefront.shared.views import CartLine, CartView
from storefront.storage.port import GUEST_CART_KEY

logger = structlog.get_logger(__name__)


class GuestCartStore(GuestStore):
    storage_key = GUEST_CART_KEY

    def _empty(self) -> Cart:
        return Cart()

    def _restore(self, data: dict) -> Cart:
        return Cart.from_snapshot(data)

    @property
    def cart(self) -> Cart:
        return self.aggregate

    @property
    def total_price(self) -> float:
        return self.cart.total_price

    def view(self) -> CartView:
        return self.cart.to_view()

    def lines(self) -> list[CartLine]:
        return self.cart.lines()

    def add(self, product: ProductSnapshot, quantity: int = 1) -> CartLine:
        """Add a product, incrementing an existing line up to its stock ceiling.

        Raises ValidationError for a non-positive quantity or an out-of-stock product.
        """
        item = self.cart.add_item(product, quantity)
        self._persist()
        logger.info("guest_cart_item_added", line=item.variant_identity.label, quantity=item.quantity)
        return item.to_line()

    def update(self, product_id, quantity: int, variant: VariantIdentity | None = None) -> CartLine | None:
        """Set a line's quantity; zero or less removes the line."""
        identity = resolve(product_id, variant)
        item = self.cart.update_item(identity, quantity)
        self._persist()
        return item.to_line() if item else None

    def remove(self, product_id, variant: VariantIdentity | None = None) -> bool:
        """Remove a line. Without a variant the simple (no-variant) line is addressed."""
        identity = resolve(product_id, variant)
        removed = self.cart.remove_item(identity)
        if removed:
            self._persist()
        return removed

    def clear(self) -> None:
        """Empty the cart and erase its persisted record."""
        self.cart.clear()
        self._erase()
