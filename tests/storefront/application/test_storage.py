"""Tests for the local storage adapters and registry."""

import pytest
from storefront.storage import get_storage, reset_storage
from storefront.storage.file_adapter import FileStorage
from storefront.storage.memory_adapter import MemoryStorage


class TestMemoryStorage:
    def test_round_trip(self):
        storage = MemoryStorage()
        assert storage.set_item("guestCart", "{}").success
        assert storage.get_item("guestCart") == "{}"
        assert storage.remove_item("guestCart").success
        assert storage.get_item("guestCart") is None

    def test_configured_failure(self):
        storage = MemoryStorage()
        storage.configure(should_fail=True, failure_reason="Disk full")
        result = storage.set_item("guestCart", "{}")
        assert result.success is False
        assert result.error == "Disk full"
        assert storage.get_item("guestCart") is None


class TestFileStorage:
    def test_round_trip(self, tmp_path):
        storage = FileStorage(tmp_path / "state")
        assert storage.set_item("guestCart", '{"items": []}').success
        assert (tmp_path / "state" / "guestCart.json").exists()
        assert FileStorage(tmp_path / "state").get_item("guestCart") == '{"items": []}'

    def test_missing_key(self, tmp_path):
        assert FileStorage(tmp_path).get_item("guestWishlist") is None

    def test_remove_missing_key_succeeds(self, tmp_path):
        assert FileStorage(tmp_path).remove_item("guestWishlist").success

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set_item("authSession", "one")
        storage.set_item("authSession", "two")
        assert storage.get_item("authSession") == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["authSession.json"]

    def test_invalid_key_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            FileStorage(tmp_path).get_item("../escape")

    def test_unwritable_directory_reports_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        result = FileStorage(blocker / "state").set_item("guestCart", "{}")
        assert result.success is False
        assert result.error


class TestRegistry:
    def test_memory_adapter(self):
        reset_storage()
        assert isinstance(get_storage("memory"), MemoryStorage)

    def test_singleton(self):
        reset_storage()
        assert get_storage("memory") is get_storage()

    def test_file_adapter(self, tmp_path):
        reset_storage()
        storage = get_storage("file", str(tmp_path))
        assert isinstance(storage, FileStorage)
        assert storage.directory == tmp_path

    def test_different_adapter_replaces_singleton(self, tmp_path):
        reset_storage()
        get_storage("memory")
        storage = get_storage("file", str(tmp_path))
        assert isinstance(storage, FileStorage)
        assert get_storage() is storage

    def test_same_arguments_keep_singleton(self, tmp_path):
        reset_storage()
        storage = get_storage("file", str(tmp_path))
        assert get_storage("file", str(tmp_path)) is storage

    def test_unknown_adapter(self):
        reset_storage()
        with pytest.raises(ValueError):
            get_storage("cookie")
