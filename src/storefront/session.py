"""Session store — who is logged in, and who wants to know when that changes.

The store is an explicit object owned by the application container. It
restores a persisted session on construction, persists credentials on
login, erases them on logout, and notifies listeners on every flip of the
``is_authenticated`` flag.
"""

import json
from collections.abc import Callable
from uuid import uuid4

import structlog

from storefront.storage.port import AUTH_SESSION_KEY, LocalStorage
from storefront.utils.logging import bind_session

logger = structlog.get_logger(__name__)

AuthListener = Callable[[bool, bool], None]


class SessionStore:
    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage
        self.user: dict | None = None
        self.token: str | None = None
        self.session_id: str | None = None
        self._listeners: list[AuthListener] = []
        self._restore()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _restore(self) -> None:
        raw = self.storage.get_item(AUTH_SESSION_KEY)
        if raw is None:
            return
        try:
            data = json.loads(raw)
            token = data["token"]
            user = data["user"]
            session_id = data.get("sessionId") or uuid4().hex
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            logger.warning("session_record_corrupt", error=str(exc))
            self.storage.remove_item(AUTH_SESSION_KEY)
            return
        if not token:
            self.storage.remove_item(AUTH_SESSION_KEY)
            return
        self.user, self.token, self.session_id = user, token, session_id
        bind_session(session_id)

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener called with ``(was_authenticated, is_authenticated)``.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_credentials(self, user: dict, token: str) -> None:
        """Log in: store the user and token and start a new session."""
        if not token:
            raise ValueError("A token is required to log in")

        was_authenticated = self.is_authenticated
        self.user = user
        self.token = token
        self.session_id = uuid4().hex
        bind_session(self.session_id)

        result = self.storage.set_item(
            AUTH_SESSION_KEY,
            json.dumps({"user": user, "token": token, "sessionId": self.session_id}),
        )
        if not result.success:
            logger.warning("session_write_failed", error=result.error)

        logger.info("session_started", user_id=(user or {}).get("_id") or (user or {}).get("id"))
        self._notify(was_authenticated)

    def logout(self) -> None:
        """Log out. The guest cart and wishlist become active again."""
        was_authenticated = self.is_authenticated
        self.user = None
        self.token = None
        self.session_id = None
        bind_session(None)

        result = self.storage.remove_item(AUTH_SESSION_KEY)
        if not result.success:
            logger.warning("session_erase_failed", error=result.error)

        logger.info("session_ended")
        self._notify(was_authenticated)

    def _notify(self, was_authenticated: bool) -> None:
        if was_authenticated == self.is_authenticated:
            return
        for listener in list(self._listeners):
            listener(was_authenticated, self.is_authenticated)
