"""Pydantic wire schemas for the cart/wishlist REST backend.

These are the external contract (anti-corruption layer): backend payloads
are parsed here and turned into the storefront's own read models, and the
storefront's lines are turned into backend request bodies.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity, identity_for
from storefront.shared.views import CartLine, CartView, WishlistEntry, WishlistView


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------
class ApiResponse(_WireModel):
    success: bool = True
    message: str | None = None
    data: Any = None


# ---------------------------------------------------------------------------
# Populated product references
# ---------------------------------------------------------------------------
class VariantPayload(_WireModel):
    id: str | None = Field(default=None, alias="_id")
    sku: str | None = None
    price: float | None = None
    stock: int | None = None
    options: dict[str, Any] | None = None


class ProductPayload(_WireModel):
    id: str = Field(alias="_id")
    name: str | None = None
    price: float | None = None
    images: list[Any] = Field(default_factory=list)
    stock: int | None = None
    variants: list[VariantPayload] = Field(default_factory=list)

    @property
    def first_image(self) -> str | None:
        if not self.images:
            return None
        image = self.images[0]
        if isinstance(image, dict):
            return image.get("url")
        return str(image)

    def stock_for(self, variant_id: str | None, sku: str | None) -> int | None:
        """Stock ceiling of the selected variant, falling back to the product's."""
        for variant in self.variants:
            if (variant_id and variant.id == variant_id) or (sku and variant.sku == sku):
                return variant.stock
        return self.stock


class _LinePayload(_WireModel):
    product: ProductPayload | str | None = None
    variant_id: str | None = Field(default=None, alias="variantId")
    variant_sku: str | None = Field(default=None, alias="variantSku")
    variant_options: dict[str, Any] | None = Field(default=None, alias="variantOptions")

    @property
    def product_id(self) -> str:
        return self.product.id if isinstance(self.product, ProductPayload) else self.product

    @property
    def variant_identity(self) -> VariantIdentity:
        return identity_for(
            self.product_id,
            variant_id=self.variant_id,
            sku=self.variant_sku,
            options=self.variant_options,
        )

    @property
    def stock(self) -> int | None:
        if isinstance(self.product, ProductPayload):
            return self.product.stock_for(self.variant_id, self.variant_sku)
        return None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CartItemPayload(_LinePayload):
    quantity: int
    price: float = 0.0
    name: str | None = None
    image: str | None = None

    def to_line(self) -> CartLine:
        product = self.product if isinstance(self.product, ProductPayload) else None
        return CartLine(
            variant_identity=self.variant_identity,
            quantity=self.quantity,
            unit_price=self.price,
            stock=self.stock,
            name=self.name or (product.name if product else None),
            image=self.image or (product.first_image if product else None),
        )


class CartPayload(_WireModel):
    items: list[CartItemPayload] = Field(default_factory=list)
    total_items: int | None = Field(default=None, alias="totalItems")
    total_price: float | None = Field(default=None, alias="totalPrice")

    def to_view(self) -> CartView:
        # Lines whose product was deleted come back with a null product.
        return CartView.of(item.to_line() for item in self.items if item.product is not None)


class CountPayload(_WireModel):
    count: int = 0


# ---------------------------------------------------------------------------
# Wishlist
# ---------------------------------------------------------------------------
class WishlistItemPayload(_LinePayload):
    def to_entry(self) -> WishlistEntry:
        product = self.product if isinstance(self.product, ProductPayload) else None
        return WishlistEntry(
            variant_identity=self.variant_identity,
            name=product.name if product else None,
            price=product.price if product else None,
            image=product.first_image if product else None,
            stock=self.stock,
        )


class WishlistPayload(_WireModel):
    items: list[WishlistItemPayload] = Field(default_factory=list)
    total_items: int | None = Field(default=None, alias="totalItems")

    def to_view(self) -> WishlistView:
        return WishlistView.of(item.to_entry() for item in self.items if item.product is not None)


class WishlistStatusPayload(_WireModel):
    is_in_wishlist: bool = Field(default=False, alias="isInWishlist")


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
def add_to_cart_body(product: ProductSnapshot, quantity: int) -> dict:
    return {
        "productId": str(product.product_id),
        "quantity": quantity,
        **product.variant_identity.wire_params(),
    }


def update_cart_body(identity: VariantIdentity, quantity: int) -> dict:
    return {"productId": str(identity.product_id), "quantity": quantity, **identity.wire_params()}


def variant_query(identity: VariantIdentity) -> dict:
    """Query-string form of a variant identity (options travel as JSON text)."""
    params = identity.wire_params()
    if "variantOptions" in params:
        params["variantOptions"] = identity.variant_key
    return params


def guest_cart_item(line: CartLine) -> dict:
    return {
        "product": line.product_id,
        "quantity": line.quantity,
        "price": line.unit_price,
        "name": line.name,
        "image": line.image,
        "stock": line.stock,
        **line.variant_identity.wire_params(),
    }


def guest_wishlist_product(entry: WishlistEntry) -> dict:
    return {
        "_id": entry.product_id,
        "name": entry.name,
        "price": entry.price,
        "images": [entry.image] if entry.image else [],
        "stock": entry.stock,
        **entry.variant_identity.wire_params(),
    }
