"""Guest wishlist store — the anonymous visitor's wishlist, kept in local storage."""

from storefront.guest.store import GuestStore
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity, resolve
from storefront.shared.views import WishlistEntry, WishlistView
from storefront.storage.port import GUEST_WISHLIST_KEY
from storefront.wishlist.wishlist import Wishlist


class GuestWishlistStore(GuestStore):
    storage_key = GUEST_WISHLIST_KEY

    def _empty(self) -> Wishlist:
        return Wishlist()

    def _restore(self, data: dict) -> Wishlist:
        return Wishlist.from_snapshot(data)

    @property
    def wishlist(self) -> Wishlist:
        return self.aggregate

    def view(self) -> WishlistView:
        return self.wishlist.to_view()

    def entries(self) -> list[WishlistEntry]:
        return self.wishlist.entries()

    def contains(self, product_id, variant: VariantIdentity | None = None) -> bool:
        return self.wishlist.contains(resolve(product_id, variant))

    def add(self, product: ProductSnapshot) -> bool:
        """Add a product. A line that is already present is left alone."""
        added = self.wishlist.add_item(product)
        if added:
            self._persist()
        return added

    def remove(self, product_id, variant: VariantIdentity | None = None) -> bool:
        removed = self.wishlist.remove_item(resolve(product_id, variant))
        if removed:
            self._persist()
        return removed

    def clear(self) -> None:
        self.wishlist.clear()
        self._erase()
