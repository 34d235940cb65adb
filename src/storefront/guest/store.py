"""Shared persistence for the guest stores.

Each store owns one aggregate and one storage key. The aggregate is loaded
lazily from storage on first use; a missing record gives an empty aggregate
and a corrupt one is discarded. After every mutation the whole snapshot is
written back synchronously. Write failures are logged and kept in
``last_write``; the in-memory aggregate stays authoritative.
"""

import json
from abc import ABC, abstractmethod

import structlog
from protean.exceptions import ValidationError

from storefront.storage.port import LocalStorage, WriteResult

logger = structlog.get_logger(__name__)


class GuestStore(ABC):
    storage_key: str = ""

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage
        self.last_write: WriteResult | None = None
        self._aggregate = None

    @abstractmethod
    def _empty(self):
        """A fresh aggregate for a shopper with nothing stored."""

    @abstractmethod
    def _restore(self, data: dict):
        """Rebuild the aggregate from a stored snapshot."""

    @property
    def aggregate(self):
        if self._aggregate is None:
            self._aggregate = self._load()
        return self._aggregate

    def _load(self):
        raw = self.storage.get_item(self.storage_key)
        if raw is None:
            return self._empty()

        try:
            return self._restore(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, ValidationError) as exc:
            logger.warning("guest_store_corrupt", key=self.storage_key, error=str(exc))
            self.storage.remove_item(self.storage_key)
            return self._empty()

    def _persist(self) -> WriteResult:
        self._drain_events()
        result = self.storage.set_item(self.storage_key, json.dumps(self.aggregate.to_snapshot()))
        return self._record(result)

    def _erase(self) -> WriteResult:
        self._drain_events()
        return self._record(self.storage.remove_item(self.storage_key))

    def _record(self, result: WriteResult) -> WriteResult:
        self.last_write = result
        if not result.success:
            logger.warning("guest_store_write_failed", key=self.storage_key, error=result.error)
        return result

    def _drain_events(self) -> None:
        for event in self.aggregate._events:
            logger.debug("guest_store_event", key=self.storage_key, event_type=type(event).__name__)
        self.aggregate._events.clear()

    @property
    def is_empty(self) -> bool:
        return self.aggregate.is_empty

    @property
    def total_items(self) -> int:
        return self.aggregate.total_items

    def reload(self) -> None:
        """Drop the in-memory state and read it again from storage on next use."""
        self._aggregate = None
