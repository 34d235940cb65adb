"""Wishlist aggregate — presence-only lines keyed by (product, variant identity)."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String, Text, ValueObject

from storefront.domain import GUEST_OWNER, storefront
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity, same_line
from storefront.shared.views import WishlistEntry, WishlistView
from storefront.wishlist.events import (
    WishlistCleared,
    WishlistItemAdded,
    WishlistItemRemoved,
    WishlistsMerged,
)


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    variant_identity = ValueObject(VariantIdentity, required=True)
    name = String(max_length=255)
    price = Float(min_value=0.0)
    image = Text()
    stock = Integer(min_value=0)

    def to_entry(self) -> WishlistEntry:
        return WishlistEntry(
            variant_identity=self.variant_identity,
            name=self.name,
            price=self.price,
            image=self.image,
            stock=self.stock,
        )

    def to_snapshot(self) -> dict:
        return {
            "variantIdentity": self.variant_identity.to_snapshot(),
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "stock": self.stock,
        }


@storefront.aggregate
class Wishlist:
    owner = String(max_length=255, default=GUEST_OWNER)
    items = HasMany(WishlistItem)
    updated_at = DateTime()

    @invariant.post
    def one_item_per_line(self):
        seen = []
        for item in self.items:
            if any(same_line(item.variant_identity, other) for other in seen):
                raise ValidationError({"items": [f"Duplicate wishlist line {item.variant_identity.label}"]})
            seen.append(item.variant_identity)

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, identity: VariantIdentity) -> WishlistItem | None:
        return next((i for i in self.items if same_line(i.variant_identity, identity)), None)

    def contains(self, identity: VariantIdentity) -> bool:
        return self.find(identity) is not None

    def to_view(self) -> WishlistView:
        return WishlistView.of(item.to_entry() for item in self.items)

    def entries(self) -> list[WishlistEntry]:
        return [item.to_entry() for item in self.items]

    def add_item(self, product: ProductSnapshot) -> bool:
        """Add a product line. Returns False when the line is already present."""
        identity = product.variant_identity
        if self.contains(identity):
            return False

        self.add_items(
            WishlistItem(
                variant_identity=identity,
                name=product.name,
                price=product.price,
                image=product.image,
                stock=product.stock,
            )
        )
        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistItemAdded(wishlist_id=str(self.id), line=identity.label))
        return True

    def remove_item(self, identity: VariantIdentity) -> bool:
        item = self.find(identity)
        if item is None:
            return False

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistItemRemoved(wishlist_id=str(self.id), line=identity.label))
        return True

    def clear(self) -> None:
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistCleared(wishlist_id=str(self.id), items_removed=len(removed)))

    def merge(self, entries) -> int:
        """Add guest entries that are not already present. Returns how many were added."""
        merged = 0
        for entry in entries:
            if self.contains(entry.variant_identity):
                continue
            self.add_items(
                WishlistItem(
                    variant_identity=entry.variant_identity,
                    name=entry.name,
                    price=entry.price,
                    image=entry.image,
                    stock=entry.stock,
                )
            )
            merged += 1

        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistsMerged(wishlist_id=str(self.id), items_merged_count=merged))
        return merged

    def to_snapshot(self) -> dict:
        return {
            "products": [item.to_snapshot() for item in self.items],
            "totalItems": self.total_items,
        }

    @classmethod
    def from_snapshot(cls, data: dict, owner: str = GUEST_OWNER) -> "Wishlist":
        if not isinstance(data, dict) or not isinstance(data.get("products"), list):
            raise TypeError("Wishlist snapshot must be an object with a 'products' list")

        wishlist = cls(owner=owner)
        for entry in data["products"]:
            wishlist.add_items(
                WishlistItem(
                    variant_identity=VariantIdentity.from_snapshot(entry["variantIdentity"]),
                    name=entry.get("name"),
                    price=entry.get("price"),
                    image=entry.get("image"),
                    stock=entry.get("stock"),
                )
            )
        return wishlist
