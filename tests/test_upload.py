"""Tests for the local upload service."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from ccs.image_processing import UploadFile
from ccs.store import ConfigurationNotFoundError, ConfigurationStore
from ccs.upload import LocalUploadService, UploadError


def png_file(path: Path, name: str = "photo.png") -> UploadFile:
    return UploadFile(name=name, content_type="image/png", data=path.read_bytes())


class TestFirstUpload:
    def test_creates_configuration_with_image_size(
        self,
        upload_service: LocalUploadService,
        store: ConfigurationStore,
        make_png: Callable[..., Path],
    ) -> None:
        result = upload_service.upload(png_file(make_png(size=(30, 60))))
        configuration = store.get(result.config_id)
        assert configuration.image_url == result.url
        assert (configuration.width, configuration.height) == (30, 60)
        assert configuration.cropped_image_url is None

    def test_url_points_at_stored_file(
        self, upload_service: LocalUploadService, make_png: Callable[..., Path]
    ) -> None:
        source = make_png()
        result = upload_service.upload(png_file(source))
        assert result.url.startswith("file://")
        stored = Path(url2pathname(urlparse(result.url).path))
        assert stored.read_bytes() == source.read_bytes()

    def test_unreadable_image_uses_fallback_size(
        self, upload_service: LocalUploadService, store: ConfigurationStore
    ) -> None:
        result = upload_service.upload(UploadFile("odd.png", "image/png", b"\x00" * 10))
        configuration = store.get(result.config_id)
        assert (configuration.width, configuration.height) == (500, 500)


class TestCroppedUpload:
    def test_attaches_cropped_image(
        self,
        upload_service: LocalUploadService,
        store: ConfigurationStore,
        make_png: Callable[..., Path],
    ) -> None:
        created = upload_service.upload(png_file(make_png()))
        result = upload_service.upload(png_file(make_png("crop.png")), config_id=created.config_id)
        assert result.config_id == created.config_id
        assert store.get(created.config_id).cropped_image_url == result.url

    def test_retry_creates_new_file_and_keeps_latest(
        self,
        upload_service: LocalUploadService,
        store: ConfigurationStore,
        make_png: Callable[..., Path],
    ) -> None:
        created = upload_service.upload(png_file(make_png()))
        first = upload_service.upload(png_file(make_png("crop.png")), config_id=created.config_id)
        second = upload_service.upload(png_file(make_png("crop.png")), config_id=created.config_id)
        assert first.url != second.url
        assert store.get(created.config_id).cropped_image_url == second.url

    def test_unknown_configuration(
        self, upload_service: LocalUploadService, make_png: Callable[..., Path]
    ) -> None:
        with pytest.raises(ConfigurationNotFoundError):
            upload_service.upload(png_file(make_png()), config_id="missing")


class TestProgressAndValidation:
    def test_progress_runs_from_zero_to_hundred(
        self, temp_dir: Path, store: ConfigurationStore, make_png: Callable[..., Path]
    ) -> None:
        service = LocalUploadService(str(temp_dir / "uploads"), store, chunk_size=64)
        seen: List[int] = []
        service.upload(png_file(make_png(size=(64, 64))), progress_callback=seen.append)
        assert seen[0] == 0
        assert seen[-1] == 100
        assert seen == sorted(seen)
        assert all(0 <= value <= 100 for value in seen)

    def test_rejects_non_images(self, upload_service: LocalUploadService) -> None:
        with pytest.raises(UploadError, match="Unsupported"):
            upload_service.upload(UploadFile("notes.txt", "text/plain", b"hello"))

    def test_rejects_empty_files(self, upload_service: LocalUploadService) -> None:
        with pytest.raises(UploadError):
            upload_service.upload(UploadFile("empty.png", "image/png", b""))

    def test_rejects_large_files(
        self, temp_dir: Path, store: ConfigurationStore, make_png: Callable[..., Path]
    ) -> None:
        service = LocalUploadService(str(temp_dir / "uploads"), store, max_file_size=10)
        with pytest.raises(UploadError, match="limit"):
            service.upload(png_file(make_png()))
