"""Cart aggregate — one line per (product, variant identity), quantities clamped to stock.

The same aggregate backs the guest cart kept in local storage and the
in-memory account carts of the fake remote service. It is never persisted
through a protean repository; the guest store serialises it with
``to_snapshot``/``from_snapshot``.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String, Text, ValueObject

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    CartsMerged,
)
from storefront.domain import GUEST_OWNER, storefront
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity, same_line
from storefront.shared.views import CartLine, CartView


def clamp_to_stock(quantity: int, stock: int | None) -> int:
    """Cap a quantity at the known stock ceiling (no ceiling when unknown)."""
    if stock is None:
        return quantity
    return min(quantity, stock)


@storefront.entity(part_of="Cart")
class CartItem:
    variant_identity = ValueObject(VariantIdentity, required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    stock = Integer(min_value=0)  # known stock ceiling
    name = String(max_length=255)
    image = Text()

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_line(self) -> CartLine:
        return CartLine(
            variant_identity=self.variant_identity,
            quantity=self.quantity,
            unit_price=self.unit_price,
            stock=self.stock,
            name=self.name,
            image=self.image,
        )

    def to_snapshot(self) -> dict:
        return {
            "variantIdentity": self.variant_identity.to_snapshot(),
            "quantity": self.quantity,
            "price": self.unit_price,
            "stock": self.stock,
            "name": self.name,
            "image": self.image,
        }


@storefront.aggregate
class Cart:
    owner = String(max_length=255, default=GUEST_OWNER)
    items = HasMany(CartItem)
    updated_at = DateTime()

    @invariant.post
    def one_item_per_line(self):
        seen = []
        for item in self.items:
            if any(same_line(item.variant_identity, other) for other in seen):
                raise ValidationError({"items": [f"Duplicate cart line {item.variant_identity.label}"]})
            seen.append(item.variant_identity)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, identity: VariantIdentity) -> CartItem | None:
        return next((i for i in self.items if same_line(i.variant_identity, identity)), None)

    def to_view(self) -> CartView:
        return CartView.of(item.to_line() for item in self.items)

    def lines(self) -> list[CartLine]:
        return [item.to_line() for item in self.items]

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product: ProductSnapshot, quantity: int = 1) -> CartItem:
        """Add a product line, or increase the quantity of the matching line.

        The resulting quantity never exceeds the line's stock ceiling.
        """
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        identity = product.variant_identity
        existing = self.find(identity)
        previous_quantity = existing.quantity if existing else 0

        if existing:
            stock = product.stock if product.stock is not None else existing.stock
            new_quantity = clamp_to_stock(existing.quantity + quantity, stock)
            if new_quantity < 1:
                raise ValidationError({"quantity": [f"{product.name or identity.label} is out of stock"]})
            existing.stock = stock
            existing.quantity = new_quantity
            item = existing
        else:
            new_quantity = clamp_to_stock(quantity, product.stock)
            if new_quantity < 1:
                raise ValidationError({"quantity": [f"{product.name or identity.label} is out of stock"]})
            item = CartItem(
                variant_identity=identity,
                quantity=new_quantity,
                unit_price=product.price,
                stock=product.stock,
                name=product.name,
                image=product.image,
            )
            self.add_items(item)

        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                line=identity.label,
                requested_quantity=quantity,
                quantity=new_quantity,
                clamped=max(previous_quantity + quantity - new_quantity, 0),
            )
        )
        return item

    def update_item(self, identity: VariantIdentity, quantity: int) -> CartItem | None:
        """Set the quantity of a line; zero or less removes it. Unknown lines are ignored."""
        item = self.find(identity)
        if item is None:
            return None

        new_quantity = clamp_to_stock(quantity, item.stock)
        if new_quantity <= 0:
            self._drop(item)
            return None

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                line=identity.label,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )
        return item

    def remove_item(self, identity: VariantIdentity) -> bool:
        """Remove the matching line. Returns False when there was nothing to remove."""
        item = self.find(identity)
        if item is None:
            return False
        self._drop(item)
        return True

    def clear(self) -> None:
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(removed)))

    def _drop(self, item: CartItem) -> None:
        line = item.variant_identity.label
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), line=line))

    # -------------------------------------------------------------------
    # Cart merging (guest → account)
    # -------------------------------------------------------------------
    def merge(self, lines) -> int:
        """Merge guest cart lines into this cart.

        Quantities of matching lines are added together and clamped to the
        stock ceiling; lines that end up empty (out of stock) are skipped.
        Returns the number of lines merged.
        """
        merged = 0
        for line in lines:
            existing = self.find(line.variant_identity)
            if existing:
                stock = line.stock if line.stock is not None else existing.stock
                new_quantity = clamp_to_stock(existing.quantity + line.quantity, stock)
                if new_quantity < 1:
                    continue
                existing.stock = stock
                existing.quantity = new_quantity
            else:
                new_quantity = clamp_to_stock(line.quantity, line.stock)
                if new_quantity < 1:
                    continue
                self.add_items(
                    CartItem(
                        variant_identity=line.variant_identity,
                        quantity=new_quantity,
                        unit_price=line.unit_price,
                        stock=line.stock,
                        name=line.name,
                        image=line.image,
                    )
                )
            merged += 1

        self.updated_at = datetime.now(UTC)
        self.raise_(CartsMerged(cart_id=str(self.id), items_merged_count=merged))
        return merged

    # -------------------------------------------------------------------
    # Persistence snapshot
    # -------------------------------------------------------------------
    def to_snapshot(self) -> dict:
        return {
            "items": [item.to_snapshot() for item in self.items],
            "totalItems": self.total_items,
            "totalPrice": self.total_price,
        }

    @classmethod
    def from_snapshot(cls, data: dict, owner: str = GUEST_OWNER) -> "Cart":
        """Rebuild a cart from its persisted record.

        Raises KeyError, TypeError or ValidationError when the record is malformed.
        """
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise TypeError("Cart snapshot must be an object with an 'items' list")

        cart = cls(owner=owner)
        for entry in data["items"]:
            cart.add_items(
                CartItem(
                    variant_identity=VariantIdentity.from_snapshot(entry["variantIdentity"]),
                    quantity=entry["quantity"],
                    unit_price=entry["price"],
                    stock=entry.get("stock"),
                    name=entry.get("name"),
                    image=entry.get("image"),
                )
            )
        return cart
