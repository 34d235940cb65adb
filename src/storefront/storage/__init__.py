"""Local storage registry — where guest carts, wishlists and the session live.

Uses file storage by default. Set STOREFRONT_STORAGE=memory for sessions
that should leave nothing behind.
"""

import os

import structlog

from storefront.storage.port import (
    AUTH_SESSION_KEY,
    GUEST_CART_KEY,
    GUEST_WISHLIST_KEY,
    MERGE_MARKER_KEY,
    LocalStorage,
    WriteResult,
)

logger = structlog.get_logger(__name__)

_storage_instance = None
_storage_config: tuple[str, str | None] | None = None


def _build(adapter: str, directory: str | None) -> LocalStorage:
    if adapter == "memory":
        from storefront.storage.memory_adapter import MemoryStorage

        return MemoryStorage()
    if adapter == "file":
        from storefront.storage.file_adapter import FileStorage

        return FileStorage(directory)
    raise ValueError(f"Unknown storage adapter: {adapter}")


def get_storage(adapter: str | None = None, directory: str | None = None) -> LocalStorage:
    """Return the configured storage adapter (singleton).

    Arguments override the STOREFRONT_STORAGE and STOREFRONT_STORAGE_DIR
    environment variables. Asking for a different adapter or directory than
    the one already built replaces the singleton.
    """
    global _storage_instance, _storage_config
    if _storage_instance is not None and adapter is None and directory is None:
        return _storage_instance

    adapter = adapter or (_storage_config[0] if _storage_config else os.environ.get("STOREFRONT_STORAGE", "file"))
    if adapter == "file":
        directory = directory or os.environ.get("STOREFRONT_STORAGE_DIR", ".storefront")
    else:
        directory = None
    config = (adapter, str(directory) if directory is not None else None)

    if _storage_instance is None or config != _storage_config:
        if _storage_instance is not None:
            logger.warning("storage_adapter_replaced", previous=_storage_config[0], adapter=adapter)
        _storage_instance = _build(adapter, directory)
        _storage_config = config
    return _storage_instance


def reset_storage():
    """Reset the storage singleton (useful for testing)."""
    global _storage_instance, _storage_config
    _storage_instance = None
    _storage_config = None


__all__ = [
    "AUTH_SESSION_KEY",
    "GUEST_CART_KEY",
    "GUEST_WISHLIST_KEY",
    "MERGE_MARKER_KEY",
    "LocalStorage",
    "WriteResult",
    "get_storage",
    "reset_storage",
]
