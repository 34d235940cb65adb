"""ProductSnapshot value object — the denormalised product data a line keeps."""

import json

from protean.fields import Float, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.variant import VariantBy, VariantIdentity, identity_for, options_key


@storefront.value_object
class ProductSnapshot:
    """Product (and selected variant) as it looked when the shopper picked it.

    ``stock`` is the known stock ceiling for the selected variant; ``None``
    means the ceiling is unknown and quantities are not clamped.
    """

    product_id: String(required=True, max_length=255)
    name: String(max_length=255)
    price: Float(required=True, min_value=0.0)
    image: Text()
    stock: Integer(min_value=0)
    variant_id: String(max_length=255)
    sku: String(max_length=255)
    options: Text()  # canonical JSON of the selected options

    @property
    def variant_identity(self) -> VariantIdentity:
        return identity_for(
            self.product_id,
            variant_id=self.variant_id,
            sku=self.sku,
            options=json.loads(self.options) if self.options else None,
        )

    @classmethod
    def build(
        cls,
        product_id,
        price: float,
        name: str | None = None,
        image: str | None = None,
        stock: int | None = None,
        variant_id: str | None = None,
        sku: str | None = None,
        options: dict | None = None,
    ) -> "ProductSnapshot":
        return cls(
            product_id=str(product_id),
            name=name,
            price=price,
            image=image,
            stock=stock,
            variant_id=variant_id,
            sku=sku,
            options=options_key(options),
        )

    @classmethod
    def for_identity(
        cls,
        identity: VariantIdentity,
        price: float | None,
        name: str | None = None,
        image: str | None = None,
        stock: int | None = None,
    ) -> "ProductSnapshot":
        """Rebuild the snapshot of an existing line (e.g. when moving it between stores)."""
        variant = {}
        if identity.variant_by == VariantBy.ID.value:
            variant["variant_id"] = identity.variant_key
        elif identity.variant_by == VariantBy.SKU.value:
            variant["sku"] = identity.variant_key
        elif identity.variant_by == VariantBy.OPTIONS.value:
            variant["options"] = json.loads(identity.variant_key)

        return cls.build(
            product_id=identity.product_id,
            price=price or 0.0,
            name=name,
            image=image,
            stock=stock,
            **variant,
        )

    @classmethod
    def from_catalogue(cls, product: dict, variant: dict | None = None) -> "ProductSnapshot":
        """Build from a catalogue product payload and an optional selected variant.

        A selected variant overrides the product's price, stock and image.
        """
        images = product.get("images") or []
        price = product.get("price", 0.0)
        stock = product.get("stock")
        image = images[0] if images else None
        variant_id = sku = options = None

        if variant:
            price = variant.get("price", price)
            stock = variant.get("stock", stock)
            image = variant.get("image") or image
            variant_id = variant.get("_id") or variant.get("id")
            sku = variant.get("sku")
            options = variant.get("options")

        return cls.build(
            product_id=product.get("_id") or product["id"],
            name=product.get("name"),
            price=price,
            image=image,
            stock=stock,
            variant_id=variant_id,
            sku=sku,
            options=options,
        )
