"""Storefront application container.

One explicit object owns every piece of cart/wishlist state for a running
client: settings, local storage, the session store, the guest stores, the
remote services, the facades and the reconciler. Nothing lives in module
globals; the lifecycle is tied to ``start()``/``close()``.

Usage::

    async with Storefront() as shop:
        await shop.cart.add(ProductSnapshot.build("p1", price=9.5, stock=3))
        await shop.login({"_id": "u1"}, token)
        await shop.reconciler.wait()
"""

import structlog

from storefront.config import Settings
from storefront.domain import storefront
from storefront.facade import CartFacade, WishlistFacade
from storefront.guest.cart_store import GuestCartStore
from storefront.guest.wishlist_store import GuestWishlistStore
from storefront.notifications import LogNotifier, Notifier
from storefront.reconciliation import GuestMergeReconciler
from storefront.remote import get_remote_services
from storefront.session import SessionStore
from storefront.storage import LocalStorage, get_storage

logger = structlog.get_logger(__name__)


class Storefront:
    def __init__(
        self,
        settings: Settings | None = None,
        storage: LocalStorage | None = None,
        notifier: Notifier | None = None,
        transport=None,
        init_domain: bool = True,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.storage = storage or get_storage(self.settings.storage, self.settings.storage_dir)
        self.notifier = notifier or LogNotifier()
        self.init_domain = init_domain

        self.session = SessionStore(self.storage)
        self.guest_cart = GuestCartStore(self.storage)
        self.guest_wishlist = GuestWishlistStore(self.storage)
        self.remote = get_remote_services(self.settings, self.session, transport=transport)

        self.cart = CartFacade(self.session, self.guest_cart, self.remote.cart, self.notifier)
        self.wishlist = WishlistFacade(
            self.session,
            self.guest_wishlist,
            self.guest_cart,
            self.remote.wishlist,
            self.notifier,
            on_cart_changed=self.cart.invalidate,
        )
        self.reconciler = GuestMergeReconciler(
            self.session,
            self.guest_cart,
            self.guest_wishlist,
            self.remote.cart,
            self.remote.wishlist,
            self.notifier,
            self.storage,
            settle_delay=self.settings.merge_delay,
            on_cart_changed=self.cart.invalidate,
        )
        self._context = None

    async def start(self) -> "Storefront":
        if self.init_domain:
            storefront.init()
        self._context = storefront.domain_context()
        self._context.push()

        self.reconciler.attach()
        await self.reconciler.resume()
        logger.info(
            "storefront_started",
            remote=self.settings.remote,
            storage=self.settings.storage,
            authenticated=self.session.is_authenticated,
        )
        return self

    async def close(self) -> None:
        self.reconciler.detach()
        try:
            if self.reconciler.in_flight:
                await self.reconciler.wait()
        finally:
            await self.remote.aclose()
            if self._context is not None:
                self._context.pop()
                self._context = None
            logger.info("storefront_closed")

    async def __aenter__(self) -> "Storefront":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def login(self, user: dict, token: str) -> None:
        """Store the credentials. A pending guest merge starts in the background."""
        self.session.set_credentials(user, token)

    async def logout(self) -> None:
        self.session.logout()
