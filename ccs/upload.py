"""Local image upload service.

Stores files under an upload directory and hands back ``file://`` URLs. When an
upload completes it either creates a new configuration (first upload of a
design) or attaches the file as the configuration's cropped image.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from . import config
from .constants import MAX_UPLOAD_BYTES, UPLOAD_CHUNK_SIZE
from .image_processing import UploadFile, read_image_size
from .store import ConfigurationStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class UploadError(Exception):
    """Raised when a file is rejected or cannot be stored."""


@dataclass(frozen=True)
class UploadResult:
    url: str
    config_id: str


class LocalUploadService:
    def __init__(
        self,
        upload_dir: str,
        store: ConfigurationStore,
        max_file_size: int = MAX_UPLOAD_BYTES,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ) -> None:
        self.upload_dir = upload_dir
        self.store = store
        self.max_file_size = max_file_size
        self.chunk_size = chunk_size

    def _validate(self, file: UploadFile) -> None:
        if not file.content_type.startswith("image/"):
            raise UploadError(f"Unsupported file type '{file.content_type}'")
        if file.size == 0:
            raise UploadError("File is empty")
        if file.size > self.max_file_size:
            raise UploadError(
                f"File is {file.size} bytes, the limit is {self.max_file_size} bytes"
            )

    def _store_file(self, file: UploadFile, progress_callback: Optional[ProgressCallback]) -> str:
        exists, error = config.ensure_directory(self.upload_dir, auto_create=True)
        if not exists:
            raise UploadError(error or f"Upload directory '{self.upload_dir}' is unavailable")

        # Every upload gets a fresh key, so retries never clobber earlier files.
        path = os.path.abspath(os.path.join(self.upload_dir, f"{uuid.uuid4().hex}_{file.name}"))
        try:
            with open(path, "wb") as handle:
                for offset in range(0, file.size, self.chunk_size):
                    chunk = file.data[offset:offset + self.chunk_size]
                    handle.write(chunk)
                    if progress_callback:
                        progress_callback(int((offset + len(chunk)) * 100 / file.size))
        except OSError as exc:
            raise UploadError(f"Could not store upload: {exc}") from exc

        return Path(path).as_uri()

    def upload(
        self,
        file: UploadFile,
        config_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        self._validate(file)
        if progress_callback:
            progress_callback(0)

        url = self._store_file(file, progress_callback)
        logger.info("Uploaded %s (%d bytes) to %s", file.name, file.size, url)

        if config_id is None:
            width, height = read_image_size(file.data)
            configuration = self.store.create(image_url=url, width=width, height=height)
            return UploadResult(url=url, config_id=configuration.id)

        self.store.set_cropped_image(config_id, url)
        return UploadResult(url=url, config_id=config_id)
