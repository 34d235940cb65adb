"""Read models shared by the guest stores, the remote services and the facades."""

from dataclasses import dataclass, field

from storefront.shared.variant import VariantIdentity, same_line


@dataclass(frozen=True)
class CartLine:
    variant_identity: VariantIdentity
    quantity: int
    unit_price: float
    stock: int | None = None
    name: str | None = None
    image: str | None = None

    @property
    def product_id(self) -> str:
        return str(self.variant_identity.product_id)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    @property
    def at_stock_ceiling(self) -> bool:
        return self.stock is not None and self.quantity >= self.stock


@dataclass(frozen=True)
class CartView:
    items: tuple[CartLine, ...] = field(default_factory=tuple)
    total_items: int = 0
    total_price: float = 0.0

    @classmethod
    def of(cls, lines) -> "CartView":
        lines = tuple(lines)
        return cls(
            items=lines,
            total_items=sum(line.quantity for line in lines),
            total_price=sum(line.line_total for line in lines),
        )

    def find(self, identity: VariantIdentity) -> CartLine | None:
        return next((line for line in self.items if same_line(line.variant_identity, identity)), None)


@dataclass(frozen=True)
class WishlistEntry:
    variant_identity: VariantIdentity
    name: str | None = None
    price: float | None = None
    image: str | None = None
    stock: int | None = None

    @property
    def product_id(self) -> str:
        return str(self.variant_identity.product_id)


@dataclass(frozen=True)
class WishlistView:
    items: tuple[WishlistEntry, ...] = field(default_factory=tuple)
    total_items: int = 0

    @classmethod
    def of(cls, entries) -> "WishlistView":
        entries = tuple(entries)
        return cls(items=entries, total_items=len(entries))

    def contains(self, identity: VariantIdentity) -> bool:
        return any(same_line(entry.variant_identity, identity) for entry in self.items)


EMPTY_CART = CartView()
EMPTY_WISHLIST = WishlistView()
