"""Tests for the configuration store."""

from __future__ import annotations

from pathlib import Path

import pytest

from ccs.options import CaseOptions, InvalidOptionError
from ccs.store import ConfigurationNotFoundError, ConfigurationStore, StoreError


class TestConfigurationStore:
    def test_create_and_get(self, store: ConfigurationStore) -> None:
        created = store.create("file:///tmp/a.png", 2000, 4000)
        loaded = store.get(created.id)
        assert loaded == created
        assert loaded.cropped_image_url is None
        assert loaded.options is None

    def test_ids_are_unique(self, store: ConfigurationStore) -> None:
        ids = {store.create("file:///tmp/a.png", 1, 1).id for _ in range(5)}
        assert len(ids) == 5
        assert len(store.list()) == 5

    def test_get_unknown_returns_none(self, store: ConfigurationStore) -> None:
        assert store.get("nope") is None

    def test_records_survive_reopen(self, store: ConfigurationStore) -> None:
        created = store.create("file:///tmp/a.png", 10, 20)
        reopened = ConfigurationStore(store.filepath)
        assert reopened.get(created.id) == created

    def test_second_save_overwrites_first(self, store: ConfigurationStore) -> None:
        created = store.create("file:///tmp/a.png", 10, 20)
        store.save_options(created.id, CaseOptions("black", "iphone11", "silicone", "smooth"))
        store.save_options(created.id, CaseOptions("blue", "iphone11", "polycarbonate", "smooth"))
        loaded = store.get(created.id)
        assert loaded.color == "blue"
        assert loaded.material == "polycarbonate"

    def test_cropped_image_and_options_are_independent(self, store: ConfigurationStore) -> None:
        created = store.create("file:///tmp/a.png", 10, 20)
        store.set_cropped_image(created.id, "file:///tmp/crop.png")
        store.save_options(created.id, CaseOptions.default())
        loaded = store.get(created.id)
        assert loaded.cropped_image_url == "file:///tmp/crop.png"
        assert loaded.options == CaseOptions.default()
        assert loaded.is_complete

    def test_invalid_options_are_rejected(self, store: ConfigurationStore) -> None:
        created = store.create("file:///tmp/a.png", 10, 20)
        with pytest.raises(InvalidOptionError):
            store.save_options(created.id, CaseOptions("black", "nokia", "silicone", "smooth"))
        assert store.get(created.id).model is None

    def test_unknown_id_raises(self, store: ConfigurationStore) -> None:
        with pytest.raises(ConfigurationNotFoundError):
            store.set_cropped_image("nope", "file:///tmp/crop.png")
        with pytest.raises(ConfigurationNotFoundError):
            store.save_options("nope", CaseOptions.default())

    def test_creates_parent_directory(self, temp_dir: Path) -> None:
        path = temp_dir / "nested" / "dir" / "store.json"
        ConfigurationStore(str(path)).create("file:///tmp/a.png", 1, 1)
        assert path.exists()


class TestCorruptStore:
    def test_truncated_store_is_not_overwritten(self, store: ConfigurationStore) -> None:
        first = store.create("file:///tmp/a.png", 10, 20)
        path = Path(store.filepath)
        original = path.read_text(encoding="utf-8")
        path.write_text(original[:-5], encoding="utf-8")

        with pytest.raises(StoreError):
            store.create("file:///tmp/b.png", 10, 20)
        with pytest.raises(StoreError):
            store.get(first.id)
        assert path.read_text(encoding="utf-8") == original[:-5]

        path.write_text(original, encoding="utf-8")
        assert store.get(first.id) == first

    def test_non_object_store_is_rejected(self, store: ConfigurationStore) -> None:
        Path(store.filepath).write_text("[]", encoding="utf-8")
        with pytest.raises(StoreError):
            store.list()

    def test_writes_leave_no_temporary_files(self, store: ConfigurationStore) -> None:
        created = store.create("file:///tmp/a.png", 10, 20)
        store.save_options(created.id, CaseOptions.default())
        directory = Path(store.filepath).parent
        assert [p.name for p in directory.iterdir() if p.name.startswith(".tmp-")] == []
