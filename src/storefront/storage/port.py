"""Local storage port — the browser-local-storage contract for guest state.

Writes are best effort: adapters report failures through ``WriteResult``
instead of raising, and callers keep their in-memory state authoritative.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

GUEST_CART_KEY = "guestCart"
GUEST_WISHLIST_KEY = "guestWishlist"
AUTH_SESSION_KEY = "authSession"
MERGE_MARKER_KEY = "guestMergeMarker"


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a storage write or removal."""

    success: bool
    error: str | None = None


class LocalStorage(ABC):
    """Abstract key/value store holding one serialised record per key."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent or unreadable."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> WriteResult:
        """Store a value under a key, replacing any previous value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> WriteResult:
        """Erase a key. Removing an absent key succeeds."""
        ...
