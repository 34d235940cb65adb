"""Domain events for the Wishlist aggregate."""

from protean.fields import Identifier, Integer, Text

from storefront.domain import storefront


@storefront.event(part_of="Wishlist")
class WishlistItemAdded:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    line = Text(required=True)


@storefront.event(part_of="Wishlist")
class WishlistItemRemoved:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    line = Text(required=True)


@storefront.event(part_of="Wishlist")
class WishlistCleared:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    items_removed = Integer(required=True)


@storefront.event(part_of="Wishlist")
class WishlistsMerged:
    """Guest wishlist entries were merged into this wishlist."""

    __version__ = 1

    wishlist_id = Identifier(required=True)
    items_merged_count = Integer(required=True)
