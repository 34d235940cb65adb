"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, Text

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product line was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line = Text(required=True)
    requested_quantity = Integer(required=True)
    quantity = Integer(required=True)
    clamped = Integer(default=0)  # units dropped to stay within stock


@storefront.event(part_of="Cart")
class CartItemQuantityUpdated:
    """The quantity of a cart line was set to a new value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line = Text(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line = Text(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)


@storefront.event(part_of="Cart")
class CartsMerged:
    """Guest cart lines were merged into this cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_merged_count = Integer(required=True)
