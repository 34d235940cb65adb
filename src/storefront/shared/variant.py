"""VariantIdentity value object — what makes two cart/wishlist lines the same line.

A product without selectable options has a *simple* identity (the product id
alone). A product with options has a *variant* identity: the product id plus
one discriminant, taken in this order of precedence:

1. the variant id assigned by the catalogue,
2. the variant SKU,
3. the selected options map (e.g. ``{"size": "M", "color": "red"}``),
   canonicalised with sorted keys so selection order never matters.

Add, update and remove all resolve lines through :func:`same_line`, so a
line added with one selection can only be updated or removed with that same
selection.
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String, Text

from storefront.domain import storefront


class VariantKind(Enum):
    SIMPLE = "simple"
    VARIANT = "variant"


class VariantBy(Enum):
    ID = "id"
    SKU = "sku"
    OPTIONS = "options"


@storefront.value_object
class VariantIdentity:
    """Identity of a single cart or wishlist line."""

    kind: String(required=True, choices=VariantKind)
    product_id: String(required=True, max_length=255)
    variant_by: String(choices=VariantBy)
    variant_key: Text()

    @invariant.post
    def discriminant_must_match_kind(self):
        if self.kind == VariantKind.SIMPLE.value:
            if self.variant_by or self.variant_key:
                raise ValidationError({"variant_key": ["A simple line cannot carry a variant discriminant"]})
        elif not self.variant_by or not self.variant_key:
            raise ValidationError({"variant_key": ["A variant line needs a variant id, SKU or options"]})

    @property
    def is_simple(self) -> bool:
        return self.kind == VariantKind.SIMPLE.value

    @property
    def label(self) -> str:
        """Short human-readable form, used in log lines."""
        if self.is_simple:
            return str(self.product_id)
        return f"{self.product_id}[{self.variant_by}={self.variant_key}]"

    def matches(self, other: "VariantIdentity | None") -> bool:
        return same_line(self, other)

    def wire_params(self) -> dict:
        """Variant fields as the REST backend names them."""
        if self.is_simple:
            return {}
        if self.variant_by == VariantBy.ID.value:
            return {"variantId": self.variant_key}
        if self.variant_by == VariantBy.SKU.value:
            return {"variantSku": self.variant_key}
        return {"variantOptions": json.loads(self.variant_key)}

    def to_snapshot(self) -> dict:
        return {
            "kind": self.kind,
            "productId": str(self.product_id),
            "variantBy": self.variant_by,
            "variantKey": self.variant_key,
        }

    @classmethod
    def from_snapshot(cls, data: dict) -> "VariantIdentity":
        return cls(
            kind=data["kind"],
            product_id=data["productId"],
            variant_by=data.get("variantBy"),
            variant_key=data.get("variantKey"),
        )


def options_key(options: dict | None) -> str | None:
    """Canonical text for an options map; ``None`` when nothing is selected."""
    if not options:
        return None
    return json.dumps(options, sort_keys=True, separators=(",", ":"))


def identity_for(product_id, variant_id=None, sku=None, options=None) -> VariantIdentity:
    """Build the identity for a product and an optional variant selection."""
    if variant_id:
        return VariantIdentity(
            kind=VariantKind.VARIANT.value,
            product_id=str(product_id),
            variant_by=VariantBy.ID.value,
            variant_key=str(variant_id),
        )
    if sku:
        return VariantIdentity(
            kind=VariantKind.VARIANT.value,
            product_id=str(product_id),
            variant_by=VariantBy.SKU.value,
            variant_key=str(sku),
        )
    key = options_key(options)
    if key:
        return VariantIdentity(
            kind=VariantKind.VARIANT.value,
            product_id=str(product_id),
            variant_by=VariantBy.OPTIONS.value,
            variant_key=key,
        )
    return VariantIdentity(kind=VariantKind.SIMPLE.value, product_id=str(product_id))


def resolve(product_id, variant: VariantIdentity | None = None) -> VariantIdentity:
    """Identity addressed by an update/remove call.

    Without a variant the call addresses the simple (no-variant) line.
    """
    if variant is None:
        return identity_for(product_id)
    if str(variant.product_id) != str(product_id):
        raise ValidationError({"variant": [f"Variant belongs to product {variant.product_id}, not {product_id}"]})
    return variant


def same_line(a: VariantIdentity | None, b: VariantIdentity | None) -> bool:
    """Explicit equality for line identities."""
    if a is None or b is None:
        return False
    return (
        a.kind == b.kind
        and str(a.product_id) == str(b.product_id)
        and (a.variant_by or None) == (b.variant_by or None)
        and (a.variant_key or None) == (b.variant_key or None)
    )
