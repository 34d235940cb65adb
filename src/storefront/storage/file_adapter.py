"""File-backed local storage: one JSON document per key in a state directory."""

import os
import re
import tempfile
from pathlib import Path

import structlog

from storefront.storage.port import LocalStorage, WriteResult

logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class FileStorage(LocalStorage):
    """Stores each key as ``<directory>/<key>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace`` so a crash never leaves a half-written record.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("storage_read_failed", key=key, error=str(exc))
            return None

    def set_item(self, key: str, value: str) -> WriteResult:
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            return WriteResult(success=False, error=str(exc))
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        return WriteResult(success=True)

    def remove_item(self, key: str) -> WriteResult:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            return WriteResult(success=False, error=str(exc))
        return WriteResult(success=True)
