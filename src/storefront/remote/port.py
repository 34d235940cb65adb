"""Remote cart and wishlist service ports (abstract interfaces).

Authenticated shoppers' carts and wishlists live on the backend. These
contracts let the facades and the reconciler talk to it without knowing
whether they hold the HTTP adapter or the in-memory fake.
"""

from abc import ABC, abstractmethod

from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity
from storefront.shared.views import CartLine, CartView, WishlistEntry, WishlistView


class RemoteServiceError(Exception):
    """A remote cart/wishlist call failed or was rejected by the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CartService(ABC):
    """Abstract remote cart interface."""

    @abstractmethod
    async def get_cart(self) -> CartView:
        """Fetch the account cart."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Total number of units in the account cart."""
        ...

    @abstractmethod
    async def add_item(self, product: ProductSnapshot, quantity: int) -> CartView:
        """Add a product line (or increase it) and return the updated cart."""
        ...

    @abstractmethod
    async def update_item(self, identity: VariantIdentity, quantity: int) -> CartView:
        """Set a line's quantity and return the updated cart."""
        ...

    @abstractmethod
    async def remove_item(self, identity: VariantIdentity) -> CartView:
        """Remove a line and return the updated cart."""
        ...

    @abstractmethod
    async def clear(self) -> CartView:
        """Remove every line."""
        ...

    @abstractmethod
    async def merge(self, lines: list[CartLine]) -> CartView:
        """Merge guest cart lines into the account cart in one request."""
        ...


class WishlistService(ABC):
    """Abstract remote wishlist interface."""

    @abstractmethod
    async def get_wishlist(self) -> WishlistView: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def contains(self, identity: VariantIdentity) -> bool: ...

    @abstractmethod
    async def add_item(self, product: ProductSnapshot) -> WishlistView: ...

    @abstractmethod
    async def remove_item(self, identity: VariantIdentity) -> WishlistView: ...

    @abstractmethod
    async def clear(self) -> WishlistView: ...

    @abstractmethod
    async def move_to_cart(self, identity: VariantIdentity) -> WishlistView:
        """Move a wishlist line into the account cart."""
        ...

    @abstractmethod
    async def merge(self, entries: list[WishlistEntry]) -> WishlistView:
        """Merge guest wishlist entries into the account wishlist in one request."""
        ...
