"""Cart and wishlist facades — one API for the UI, whoever is shopping.

Each call reads ``session.is_authenticated`` afresh and routes to the guest
store (local, synchronous) or to the remote account service (network). The
branch decision is never cached.

Every mutation reports its outcome through the notifier and returns whether
it was applied. Failures (a backend rejection, a transport error, an invalid
guest mutation) become a warning notification and a ``False`` result; no
exception reaches the caller.
"""

import dataclasses
from collections.abc import Callable

import structlog
from protean.exceptions import ValidationError

from storefront.guest.cart_store import GuestCartStore
from storefront.guest.wishlist_store import GuestWishlistStore
from storefront.notifications import Notifier
from storefront.remote.port import CartService, RemoteServiceError, WishlistService
from storefront.session import SessionStore
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity, resolve
from storefront.shared.views import EMPTY_CART, EMPTY_WISHLIST, CartView, WishlistView

logger = structlog.get_logger(__name__)


def failure_message(exc: Exception, default: str) -> str:
    """The message shown to the shopper for a failed operation."""
    if isinstance(exc, RemoteServiceError):
        return exc.message or default
    if isinstance(exc, ValidationError):
        for messages in exc.messages.values():
            if messages:
                return messages[0]
    return default


class CartFacade:
    def __init__(
        self,
        session: SessionStore,
        guest: GuestCartStore,
        remote: CartService,
        notifier: Notifier,
    ) -> None:
        self.session = session
        self.guest = guest
        self.remote = remote
        self.notifier = notifier
        # Last account cart seen, keyed by the session it belongs to
        self._known: tuple[str | None, CartView] | None = None

    def _remember(self, view: CartView) -> CartView:
        self._known = (self.session.session_id, view)
        return view

    async def _known_cart(self) -> CartView:
        if self._known is not None and self._known[0] == self.session.session_id:
            return self._known[1]
        return self._remember(await self.remote.get_cart())

    def invalidate(self) -> None:
        """Forget the last account cart seen; the next stock check fetches it again."""
        self._known = None

    def _failed(self, exc: Exception, default: str, **context) -> bool:
        message = failure_message(exc, default)
        logger.warning("cart_operation_failed", error=message, **context)
        self.notifier.warning(message)
        return False

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    async def current(self) -> CartView:
        """The cart the shopper sees right now."""
        if not self.session.is_authenticated:
            return self.guest.view()
        try:
            return self._remember(await self.remote.get_cart())
        except RemoteServiceError as exc:
            logger.warning("cart_fetch_failed", error=exc.message)
            return EMPTY_CART

    async def count(self) -> int:
        if not self.session.is_authenticated:
            return self.guest.total_items
        try:
            return await self.remote.count()
        except RemoteServiceError as exc:
            logger.warning("cart_count_failed", error=exc.message)
            return 0

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    async def add(self, product: ProductSnapshot, quantity: int = 1) -> bool:
        line = product.variant_identity.label
        if not self.session.is_authenticated:
            try:
                self.guest.add(product, quantity)
            except ValidationError as exc:
                return self._failed(exc, "Failed to add to cart", line=line, branch="guest")
        else:
            try:
                if await self._at_stock_ceiling(product):
                    logger.info("cart_add_short_circuited", line=line)
                    self.notifier.warning("You already have the maximum available quantity in your cart")
                    return False
                self._remember(await self.remote.add_item(product, quantity))
            except RemoteServiceError as exc:
                return self._failed(exc, "Failed to add to cart", line=line, branch="account")

        self.notifier.success("Product added to cart")
        return True

    async def _at_stock_ceiling(self, product: ProductSnapshot) -> bool:
        existing = (await self._known_cart()).find(product.variant_identity)
        if existing is None:
            return False
        if product.stock is not None:
            existing = dataclasses.replace(existing, stock=product.stock)
        return existing.at_stock_ceiling

    async def update(self, product_id, quantity: int, variant: VariantIdentity | None = None) -> bool:
        """Set a line's quantity. Zero or less removes the line."""
        try:
            if not self.session.is_authenticated:
                self.guest.update(product_id, quantity, variant)
            else:
                identity = resolve(product_id, variant)
                if quantity <= 0:
                    self._remember(await self.remote.remove_item(identity))
                else:
                    self._remember(await self.remote.update_item(identity, quantity))
        except (RemoteServiceError, ValidationError) as exc:
            return self._failed(exc, "Failed to update cart", product_id=str(product_id))

        self.notifier.success("Cart updated")
        return True

    async def remove(self, product_id, variant: VariantIdentity | None = None) -> bool:
        """Remove a line. Without a variant the simple (no-variant) line is addressed."""
        try:
            if not self.session.is_authenticated:
                self.guest.remove(product_id, variant)
            else:
                self._remember(await self.remote.remove_item(resolve(product_id, variant)))
        except (RemoteServiceError, ValidationError) as exc:
            return self._failed(exc, "Failed to remove item", product_id=str(product_id))

        self.notifier.success("Item removed from cart")
        return True

    async def clear(self) -> bool:
        if not self.session.is_authenticated:
            self.guest.clear()
        else:
            try:
                self._remember(await self.remote.clear())
            except RemoteServiceError as exc:
                return self._failed(exc, "Failed to clear cart")

        self.notifier.success("Cart cleared")
        return True


class WishlistFacade:
    def __init__(
        self,
        session: SessionStore,
        guest: GuestWishlistStore,
        guest_cart: GuestCartStore,
        remote: WishlistService,
        notifier: Notifier,
        on_cart_changed: Callable[[], None] | None = None,
    ) -> None:
        self.session = session
        self.guest = guest
        self.guest_cart = guest_cart
        self.remote = remote
        self.notifier = notifier
        self.on_cart_changed = on_cart_changed

    def _failed(self, exc: Exception, default: str, **context) -> bool:
        message = failure_message(exc, default)
        logger.warning("wishlist_operation_failed", error=message, **context)
        self.notifier.warning(message)
        return False

    async def current(self) -> WishlistView:
        if not self.session.is_authenticated:
            return self.guest.view()
        try:
            return await self.remote.get_wishlist()
        except RemoteServiceError as exc:
            logger.warning("wishlist_fetch_failed", error=exc.message)
            return EMPTY_WISHLIST

    async def count(self) -> int:
        if not self.session.is_authenticated:
            return self.guest.total_items
        try:
            return await self.remote.count()
        except RemoteServiceError as exc:
            logger.warning("wishlist_count_failed", error=exc.message)
            return 0

    async def contains(self, product_id, variant: VariantIdentity | None = None) -> bool:
        try:
            if not self.session.is_authenticated:
                return self.guest.contains(product_id, variant)
            return await self.remote.contains(resolve(product_id, variant))
        except (RemoteServiceError, ValidationError) as exc:
            logger.warning("wishlist_check_failed", product_id=str(product_id), error=str(exc))
            return False

    async def add(self, product: ProductSnapshot) -> bool:
        line = product.variant_identity.label
        if not self.session.is_authenticated:
            if not self.guest.add(product):
                self.notifier.info("Product is already in your wishlist")
                return False
        else:
            try:
                await self.remote.add_item(product)
            except RemoteServiceError as exc:
                return self._failed(exc, "Failed to add to wishlist", line=line)

        self.notifier.success("Product added to wishlist")
        return True

    async def remove(self, product_id, variant: VariantIdentity | None = None) -> bool:
        try:
            if not self.session.is_authenticated:
                self.guest.remove(product_id, variant)
            else:
                await self.remote.remove_item(resolve(product_id, variant))
        except (RemoteServiceError, ValidationError) as exc:
            return self._failed(exc, "Failed to remove from wishlist", product_id=str(product_id))

        self.notifier.success("Product removed from wishlist")
        return True

    async def clear(self) -> bool:
        if not self.session.is_authenticated:
            self.guest.clear()
        else:
            try:
                await self.remote.clear()
            except RemoteServiceError as exc:
                return self._failed(exc, "Failed to clear wishlist")

        self.notifier.success("Wishlist cleared")
        return True

    async def move_to_cart(self, product_id, variant: VariantIdentity | None = None) -> bool:
        """Move a wishlist line into the cart (one unit) and drop it from the wishlist."""
        try:
            identity = resolve(product_id, variant)
            if self.session.is_authenticated:
                await self.remote.move_to_cart(identity)
                if self.on_cart_changed is not None:
                    self.on_cart_changed()
            else:
                self._move_guest_line(identity)
        except (RemoteServiceError, ValidationError) as exc:
            return self._failed(exc, "Failed to move product to cart", product_id=str(product_id))

        self.notifier.success("Product moved to cart")
        return True

    def _move_guest_line(self, identity: VariantIdentity) -> None:
        entry = next(
            (e for e in self.guest.entries() if e.variant_identity.matches(identity)),
            None,
        )
        if entry is None:
            raise ValidationError({"product": ["Product not found in wishlist"]})

        product = ProductSnapshot.for_identity(
            identity, price=entry.price, name=entry.name, image=entry.image, stock=entry.stock
        )
        self.guest_cart.add(product, 1)
        self.guest.remove(identity.product_id, identity)
