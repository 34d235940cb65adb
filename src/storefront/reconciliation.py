"""Guest → account reconciliation on login.

When the session flips from anonymous to authenticated and the guest cart or
wishlist holds anything, the reconciler moves it into the account:

1. IDLE → MERGING, then wait a short settle delay so the new session can
   finish its own start-up requests first.
2. Give up if the shopper logged out (or a different session started)
   during the delay.
3. Write a merge marker keyed by the session id. A marker for the current
   session means the guest data was already dispatched; nothing is sent twice.
4. Snapshot the guest cart and wishlist, clear both guest stores, then send
   one bulk merge request per store.
5. Report one notification per store, remove the marker, and go back to
   IDLE. Failures are not retried; the guest data is gone either way.

A marker still present at start-up means a previous run dispatched the
guest data but never finished, so ``resume()`` clears the guest stores
instead of merging them again.
"""

import asyncio
import json
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum

import structlog

from storefront.guest.cart_store import GuestCartStore
from storefront.guest.wishlist_store import GuestWishlistStore
from storefront.notifications import Notifier
from storefront.remote.port import CartService, RemoteServiceError, WishlistService
from storefront.session import SessionStore
from storefront.storage.port import MERGE_MARKER_KEY, LocalStorage

logger = structlog.get_logger(__name__)


class ReconciliationState(Enum):
    IDLE = "idle"
    MERGING = "merging"


class GuestMergeReconciler:
    def __init__(
        self,
        session: SessionStore,
        guest_cart: GuestCartStore,
        guest_wishlist: GuestWishlistStore,
        cart_service: CartService,
        wishlist_service: WishlistService,
        notifier: Notifier,
        storage: LocalStorage,
        settle_delay: float = 1.0,
        on_cart_changed: Callable[[], None] | None = None,
    ) -> None:
        self.session = session
        self.guest_cart = guest_cart
        self.guest_wishlist = guest_wishlist
        self.cart_service = cart_service
        self.wishlist_service = wishlist_service
        self.notifier = notifier
        self.storage = storage
        self.settle_delay = settle_delay
        self.on_cart_changed = on_cart_changed
        self.state = ReconciliationState.IDLE
        self._task: asyncio.Task | None = None
        self._unsubscribe = None

    # -------------------------------------------------------------------
    # Wiring
    # -------------------------------------------------------------------
    def attach(self) -> None:
        """Start listening to the session store."""
        if self._unsubscribe is None:
            self._unsubscribe = self.session.subscribe(self._on_auth_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_auth_change(self, was_authenticated: bool, is_authenticated: bool) -> None:
        if not was_authenticated and is_authenticated:
            self.trigger()

    @property
    def has_guest_data(self) -> bool:
        return not (self.guest_cart.is_empty and self.guest_wishlist.is_empty)

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> asyncio.Task | None:
        """Schedule a merge if one is due. Returns the running merge task, if any."""
        if self.in_flight:
            return self._task
        if not self.session.is_authenticated or not self.has_guest_data:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Picked up by resume() once the application loop is running.
            logger.info("guest_merge_deferred", reason="no_running_loop")
            return None

        self._task = loop.create_task(self.reconcile())
        return self._task

    async def resume(self) -> asyncio.Task | None:
        """Finish what a previous run left behind and handle a deferred trigger."""
        marker = self._read_marker()
        if marker is not None:
            logger.warning("guest_merge_marker_found", marker_session_id=marker.get("sessionId"))
            self.guest_cart.clear()
            self.guest_wishlist.clear()
            self._clear_marker()
        return self.trigger()

    async def wait(self) -> None:
        """Wait for the in-flight merge, if any."""
        if self._task is not None:
            await self._task

    # -------------------------------------------------------------------
    # Merge
    # -------------------------------------------------------------------
    async def reconcile(self) -> bool:
        """Run one merge attempt. Returns True when everything sent was accepted."""
        if self.state is not ReconciliationState.IDLE:
            logger.info("guest_merge_skipped", reason="already_merging")
            return False

        self.state = ReconciliationState.MERGING
        try:
            return await self._merge()
        finally:
            self.state = ReconciliationState.IDLE

    async def _merge(self) -> bool:
        session_id = self.session.session_id
        await asyncio.sleep(self.settle_delay)

        if not self.session.is_authenticated or self.session.session_id != session_id:
            logger.info("guest_merge_aborted", reason="session_changed")
            return False

        marker = self._read_marker()
        if marker is not None and marker.get("sessionId") == session_id:
            logger.info("guest_merge_skipped", reason="already_dispatched")
            return False

        lines = self.guest_cart.lines()
        entries = self.guest_wishlist.entries()
        if not lines and not entries:
            return False

        self._write_marker(session_id, len(lines), len(entries))
        self.guest_cart.clear()
        self.guest_wishlist.clear()
        logger.info("guest_merge_dispatched", cart_lines=len(lines), wishlist_entries=len(entries))

        try:
            succeeded = True
            if lines:
                succeeded &= await self._send(
                    self.cart_service.merge(lines),
                    store="cart",
                    success="Guest cart merged with your account",
                    failure="Failed to merge guest cart",
                )
            if entries:
                succeeded &= await self._send(
                    self.wishlist_service.merge(entries),
                    store="wishlist",
                    success="Guest wishlist merged with your account",
                    failure="Failed to merge guest wishlist",
                )
            return succeeded
        finally:
            self._clear_marker()
            # The account cart may have changed server-side even when the merge failed.
            if lines and self.on_cart_changed is not None:
                self.on_cart_changed()

    async def _send(self, request, store: str, success: str, failure: str) -> bool:
        try:
            await request
        except RemoteServiceError as exc:
            logger.warning("guest_merge_failed", store=store, error=exc.message, status_code=exc.status_code)
            self.notifier.warning(failure)
            return False

        logger.info("guest_merge_completed", store=store)
        self.notifier.success(success)
        return True

    # -------------------------------------------------------------------
    # Merge marker
    # -------------------------------------------------------------------
    def _read_marker(self) -> dict | None:
        raw = self.storage.get_item(MERGE_MARKER_KEY)
        if raw is None:
            return None
        try:
            marker = json.loads(raw)
        except json.JSONDecodeError:
            marker = None
        if not isinstance(marker, dict):
            # An unreadable marker still means a merge was under way.
            return {"sessionId": None}
        return marker

    def _write_marker(self, session_id: str | None, cart_lines: int, wishlist_entries: int) -> None:
        result = self.storage.set_item(
            MERGE_MARKER_KEY,
            json.dumps(
                {
                    "sessionId": session_id,
                    "startedAt": datetime.now(UTC).isoformat(),
                    "cartLines": cart_lines,
                    "wishlistEntries": wishlist_entries,
                }
            ),
        )
        if not result.success:
            logger.warning("guest_merge_marker_write_failed", error=result.error)

    def _clear_marker(self) -> None:
        result = self.storage.remove_item(MERGE_MARKER_KEY)
        if not result.success:
            logger.warning("guest_merge_marker_erase_failed", error=result.error)
