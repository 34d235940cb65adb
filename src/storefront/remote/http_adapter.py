"""HTTP adapters for the remote cart and wishlist services.

Talks to the storefront REST backend with an ``httpx.AsyncClient``. Every
response uses the ``{success, message, data}`` envelope; transport errors,
non-2xx statuses, ``success: false`` and unparseable payloads are all raised
as ``RemoteServiceError`` carrying the backend's message when there is one.
"""

from collections.abc import Callable
from typing import Any

import httpx
import structlog
from protean.exceptions import ValidationError as DomainValidationError
from pydantic import BaseModel, ValidationError

from storefront.remote.port import CartService, RemoteServiceError, WishlistService
from storefront.remote.schemas import (
    ApiResponse,
    CartPayload,
    CountPayload,
    WishlistPayload,
    WishlistStatusPayload,
    add_to_cart_body,
    guest_cart_item,
    guest_wishlist_product,
    update_cart_body,
    variant_query,
)
from storefront.shared.product import ProductSnapshot
from storefront.shared.variant import VariantIdentity
from storefront.shared.views import CartLine, CartView, WishlistEntry, WishlistView

logger = structlog.get_logger(__name__)

TokenProvider = Callable[[], str | None]


class _HttpService:
    def __init__(self, client: httpx.AsyncClient, token_provider: TokenProvider) -> None:
        self.client = client
        self.token_provider = token_provider

    def _headers(self) -> dict:
        token = self.token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, path: str, json: Any = None, params: dict | None = None) -> Any:
        try:
            response = await self.client.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("remote_request_failed", method=method, path=path, error=str(exc))
            raise RemoteServiceError(f"Could not reach the store: {exc}") from exc

        try:
            envelope = ApiResponse.model_validate(response.json())
        except ValueError:
            envelope = None

        if response.is_error or envelope is None or not envelope.success:
            message = envelope.message if envelope and envelope.message else None
            if message is None:
                message = (
                    f"Request failed with status {response.status_code}"
                    if response.is_error or envelope is not None
                    else "Malformed response from the store"
                )
            logger.warning(
                "remote_request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise RemoteServiceError(message, response.status_code)

        return envelope.data

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> Any:
        try:
            return model.model_validate(data or {})
        except ValidationError as exc:
            raise RemoteServiceError(f"Malformed response from the store: {exc.error_count()} error(s)") from exc

    @classmethod
    def _view(cls, model: type[BaseModel], data: Any) -> Any:
        # Payloads pydantic accepts can still break domain invariants (empty product id).
        payload = cls._parse(model, data)
        try:
            return payload.to_view()
        except DomainValidationError as exc:
            logger.warning("remote_payload_rejected", errors=exc.messages)
            raise RemoteServiceError("Malformed response from the store: invalid line") from exc


class HttpCartService(_HttpService, CartService):
    """Account cart over ``/cart`` endpoints."""

    async def _cart_from(self, data: Any) -> CartView:
        if isinstance(data, dict) and "items" in data:
            return self._view(CartPayload, data)
        return await self.get_cart()

    async def get_cart(self) -> CartView:
        data = await self._request("GET", "/cart/")
        return self._view(CartPayload, data)

    async def count(self) -> int:
        data = await self._request("GET", "/cart/count")
        return self._parse(CountPayload, data).count

    async def add_item(self, product: ProductSnapshot, quantity: int) -> CartView:
        data = await self._request("POST", "/cart/add", json=add_to_cart_body(product, quantity))
        return await self._cart_from(data)

    async def update_item(self, identity: VariantIdentity, quantity: int) -> CartView:
        data = await self._request("PUT", "/cart/update", json=update_cart_body(identity, quantity))
        return await self._cart_from(data)

    async def remove_item(self, identity: VariantIdentity) -> CartView:
        data = await self._request(
            "DELETE",
            f"/cart/remove/{identity.product_id}",
            params=variant_query(identity) or None,
        )
        return await self._cart_from(data)

    async def clear(self) -> CartView:
        data = await self._request("DELETE", "/cart/clear")
        return await self._cart_from(data)

    async def merge(self, lines: list[CartLine]) -> CartView:
        data = await self._request(
            "POST",
            "/cart/merge-guest-cart",
            json={"guestCartItems": [guest_cart_item(line) for line in lines]},
        )
        return await self._cart_from(data)


class HttpWishlistService(_HttpService, WishlistService):
    """Account wishlist over ``/wishlist`` endpoints."""

    async def _wishlist_from(self, data: Any) -> WishlistView:
        if isinstance(data, dict) and "items" in data:
            return self._view(WishlistPayload, data)
        return await self.get_wishlist()

    async def get_wishlist(self) -> WishlistView:
        data = await self._request("GET", "/wishlist/")
        return self._view(WishlistPayload, data)

    async def count(self) -> int:
        data = await self._request("GET", "/wishlist/count")
        return self._parse(CountPayload, data).count

    async def contains(self, identity: VariantIdentity) -> bool:
        if not identity.is_simple:
            # The status endpoint only knows products, so check the lines themselves.
            return (await self.get_wishlist()).contains(identity)
        data = await self._request("GET", f"/wishlist/check/{identity.product_id}")
        return self._parse(WishlistStatusPayload, data).is_in_wishlist

    async def add_item(self, product: ProductSnapshot) -> WishlistView:
        body = {"productId": str(product.product_id), **product.variant_identity.wire_params()}
        data = await self._request("POST", "/wishlist/add", json=body)
        return await self._wishlist_from(data)

    async def remove_item(self, identity: VariantIdentity) -> WishlistView:
        data = await self._request(
            "DELETE",
            f"/wishlist/remove/{identity.product_id}",
            params=variant_query(identity) or None,
        )
        return await self._wishlist_from(data)

    async def clear(self) -> WishlistView:
        data = await self._request("DELETE", "/wishlist/clear")
        return await self._wishlist_from(data)

    async def move_to_cart(self, identity: VariantIdentity) -> WishlistView:
        data = await self._request(
            "POST",
            f"/wishlist/move-to-cart/{identity.product_id}",
            params=variant_query(identity) or None,
        )
        return await self._wishlist_from(data)

    async def merge(self, entries: list[WishlistEntry]) -> WishlistView:
        data = await self._request(
            "POST",
            "/wishlist/merge-guest-wishlist",
            json={"guestWishlistProducts": [guest_wishlist_product(entry) for entry in entries]},
        )
        return await self._wishlist_from(data)
