"""Storefront bounded context: client-side cart and wishlist state.

Holds the guest cart and wishlist kept in local storage for anonymous
visitors, routes calls to the remote account cart once the visitor logs in,
and merges the guest state into the account exactly once on login.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")

# Owner recorded on carts and wishlists that belong to an anonymous visitor.
GUEST_OWNER = "guest"
