"""Remote cart/wishlist service factory.

Provides get_remote_services() to pick the implementation:
- HttpCartService / HttpWishlistService against the REST backend (default)
- FakeCartService / FakeWishlistService over an in-memory backend

Set STOREFRONT_REMOTE=fake (or ``Settings.remote``) for development and tests.
"""

from dataclasses import dataclass

import httpx

from storefront.config import Settings
from storefront.remote.fake_adapter import FakeBackend, FakeCartService, FakeWishlistService
from storefront.remote.http_adapter import HttpCartService, HttpWishlistService
from storefront.remote.port import CartService, RemoteServiceError, WishlistService

_fake_backend: FakeBackend | None = None


@dataclass
class RemoteServices:
    cart: CartService
    wishlist: WishlistService
    client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()


def get_fake_backend() -> FakeBackend:
    """Return the shared in-memory backend used by the fake services."""
    global _fake_backend
    if _fake_backend is None:
        _fake_backend = FakeBackend()
    return _fake_backend


def reset_fake_backend() -> None:
    """Reset the in-memory backend (useful for testing)."""
    global _fake_backend
    _fake_backend = None


def get_remote_services(
    settings: Settings,
    session,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RemoteServices:
    """Build the cart and wishlist services for ``settings.remote``.

    Both services read the bearer token from ``session`` on every call.
    ``transport`` replaces the network transport of the HTTP client.
    """

    def token_provider() -> str | None:
        return session.token

    if settings.remote == "fake":
        backend = get_fake_backend()
        return RemoteServices(
            cart=FakeCartService(backend, token_provider),
            wishlist=FakeWishlistService(backend, token_provider),
        )
    if settings.remote == "http":
        client = httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
        return RemoteServices(
            cart=HttpCartService(client, token_provider),
            wishlist=HttpWishlistService(client, token_provider),
            client=client,
        )
    raise ValueError(f"Unknown remote adapter: {settings.remote}")


__all__ = [
    "CartService",
    "RemoteServiceError",
    "RemoteServices",
    "WishlistService",
    "get_fake_backend",
    "get_remote_services",
    "reset_fake_backend",
]
