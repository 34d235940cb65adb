"""In-memory local storage — for tests and for sessions that need no persistence."""

from storefront.storage.port import LocalStorage, WriteResult


class MemoryStorage(LocalStorage):
    """Dictionary-backed storage that can be told to fail writes."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.should_fail: bool = False
        self.failure_reason: str = "Storage quota exceeded"

    def configure(self, should_fail: bool, failure_reason: str = "Storage quota exceeded") -> None:
        """Configure write behaviour at runtime."""
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> WriteResult:
        if self.should_fail:
            return WriteResult(success=False, error=self.failure_reason)
        self.data[key] = value
        return WriteResult(success=True)

    def remove_item(self, key: str) -> WriteResult:
        if self.should_fail:
            return WriteResult(success=False, error=self.failure_reason)
        self.data.pop(key, None)
        return WriteResult(success=True)
