"""Core backend implementation orchestrating all helper modules."""
from __future__ import annotations

import logging
import mimetypes
import os
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image

from . import config
from .configuration import Configuration
from .constants import (
    APP_NAME,
    BASE_PRICE,
    CONFIG_FILE,
    DEFAULT_DATA_DIR,
    DEFAULT_LANG_CODE,
    DEFAULT_SILHOUETTE_WIDTH,
    DEFAULT_THEME,
    PHONE_TEMPLATE_HEIGHT,
    PHONE_TEMPLATE_WIDTH,
    STORE_FILE,
    UPLOAD_DIR_NAME,
)
from .geometry import LayoutMeasurement, Size
from .image_processing import ExportError, ImageCompositor, UploadFile
from .options import CaseOptions, InvalidOptionError, calculate_price, find_option
from .placement import PlacementSurface
from .store import ConfigurationStore, StoreError
from .submission import SubmissionPipeline, SubmissionResult
from .upload import LocalUploadService, ProgressCallback, UploadError

logger = logging.getLogger(__name__)

ACCEPTED_CONTENT_TYPES = ("image/png", "image/jpeg")


class Backend:
    """Backend logic for Custom Case Studio.

    UI events (navigation requests and error notifications) raised on worker
    threads are put on ``events`` as ``(kind, payload)`` tuples; the UI drains
    the queue on its own thread.
    """

    def __init__(self, config_path: str = CONFIG_FILE, data_dir: Optional[str] = None) -> None:
        self.initialization_error: Optional[str] = None
        self.initialization_warning: Optional[str] = None

        self.config_path = config_path
        self.config_data: Dict[str, Any] = config.load_main_config(config_path)
        self.selected_language_code: str = self.config_data.get("language", DEFAULT_LANG_CODE)
        self.lang, warning, error = config.load_language_config(self.selected_language_code)
        if warning:
            self.initialization_warning = warning
        if error:
            self.initialization_error = error

        self._apply_settings_from_config(data_dir)

        self.compositor = ImageCompositor()
        self.store = ConfigurationStore(os.path.join(self.data_dir, STORE_FILE))
        self.upload_service = LocalUploadService(os.path.join(self.data_dir, UPLOAD_DIR_NAME), self.store)

        self.executor = ThreadPoolExecutor(max_workers=4)
        self.events: "queue.Queue[Tuple[str, Any]]" = queue.Queue()
        self.pipeline = SubmissionPipeline(
            store=self.store,
            compositor=self.compositor,
            upload_service=self.upload_service,
            executor=self.executor,
            navigate=lambda path: self.events.put(("navigate", path)),
            notify_error=lambda title, message: self.events.put(("error", (title, message))),
            messages=self.lang,
        )

    # ------------------------------------------------------------------
    # Configuration management
    # ------------------------------------------------------------------
    def _apply_settings_from_config(self, data_dir: Optional[str]) -> None:
        self.theme = self.config_data.get("theme", DEFAULT_THEME)
        self.data_dir = data_dir or self.config_data.get("data_dir", DEFAULT_DATA_DIR)
        self.silhouette_width = int(self.config_data.get("silhouette_width", DEFAULT_SILHOUETTE_WIDTH))

        exists, error = config.ensure_directory(self.data_dir, auto_create=True)
        if not exists and not self.initialization_error:
            self.initialization_error = error

        self.config_data.update(
            {
                "theme": self.theme,
                "data_dir": self.data_dir,
                "silhouette_width": self.silhouette_width,
                "language": self.selected_language_code,
            }
        )

    def save_main_config(self, updated_config: Optional[Dict[str, Any]] = None) -> bool:
        config_snapshot = self.config_data.copy()
        if updated_config:
            config_snapshot.update(updated_config)

        self.selected_language_code = config_snapshot.get("language", self.selected_language_code)
        self.theme = config_snapshot.get("theme", self.theme)
        self.silhouette_width = int(config_snapshot.get("silhouette_width", self.silhouette_width))
        self.config_data = config_snapshot

        config_to_save: Dict[str, Any] = {
            "language": self.selected_language_code,
            "theme": self.theme,
            "data_dir": config_snapshot.get("data_dir", self.data_dir),
            "silhouette_width": self.silhouette_width,
        }
        return config.save_main_config(config_to_save, self.config_path)

    def get_available_languages(self) -> List[Tuple[str, str]]:
        return config.get_available_languages()

    @property
    def silhouette_size(self) -> Size:
        width = float(self.silhouette_width)
        return Size(width, width * PHONE_TEMPLATE_HEIGHT / PHONE_TEMPLATE_WIDTH)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------
    def upload_image(
        self, image_path: str, progress_callback: Optional[ProgressCallback] = None
    ) -> Tuple[bool, str]:
        """Upload a new source image. Returns ``(True, config_id)`` or ``(False, error)``."""
        content_type, _ = mimetypes.guess_type(image_path)
        if content_type not in ACCEPTED_CONTENT_TYPES:
            return False, f"Unsupported file type: {os.path.basename(image_path)}"

        try:
            with open(image_path, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            return False, str(exc)

        file = UploadFile(name=os.path.basename(image_path), content_type=content_type, data=data)
        try:
            result = self.upload_service.upload(file, progress_callback=progress_callback)
        except UploadError as exc:
            logger.warning("Upload of %s rejected: %s", image_path, exc)
            return False, str(exc)
        except StoreError as exc:
            logger.error("Upload of %s could not be recorded: %s", image_path, exc)
            return False, str(exc)
        return True, result.config_id

    def upload_image_async(
        self, image_path: str, progress_callback: Optional[ProgressCallback] = None
    ) -> "Future[Tuple[bool, str]]":
        return self.executor.submit(self.upload_image, image_path, progress_callback)

    # ------------------------------------------------------------------
    # Design
    # ------------------------------------------------------------------
    def get_configuration(self, config_id: str) -> Optional[Configuration]:
        return self.store.get(config_id)

    def open_design(self, config_id: str) -> Optional[PlacementSurface]:
        configuration = self.store.get(config_id)
        if configuration is None:
            return None
        return PlacementSurface(configuration.image_url, configuration.image_size)

    def load_source_image(self, config_id: str) -> Optional[Image.Image]:
        configuration = self.store.get(config_id)
        if configuration is None:
            return None
        try:
            return self.compositor.load_image(configuration.image_url)
        except ExportError as exc:
            logger.warning("Could not load source image for %s: %s", config_id, exc)
            return None

    def submit_design(
        self,
        config_id: str,
        surface: PlacementSurface,
        layout: LayoutMeasurement,
        options: CaseOptions,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> "Future[SubmissionResult]":
        return self.pipeline.submit(config_id, surface, layout, options, progress_callback)

    @property
    def submission_pending(self) -> bool:
        return self.pipeline.pending

    # ------------------------------------------------------------------
    # Pricing & summary
    # ------------------------------------------------------------------
    def quote(self, options: CaseOptions) -> int:
        return calculate_price(options.material, options.finish)

    def describe_configuration(self, config_id: str) -> Tuple[bool, Any]:
        """Summary used by the preview step: labels, prices and the cropped image URL."""
        configuration = self.store.get(config_id)
        if configuration is None:
            return False, f"Configuration {config_id} not found"

        options = configuration.options
        if options is None:
            return False, f"Configuration {config_id} has no saved options"

        try:
            labels = options.labels()
            material = find_option("material", options.material)
            finish = find_option("finish", options.finish)
        except InvalidOptionError as exc:
            return False, str(exc)

        return True, {
            "config_id": configuration.id,
            "image_url": configuration.image_url,
            "cropped_image_url": configuration.cropped_image_url,
            "options": options.to_dict(),
            "labels": labels,
            "base_price": BASE_PRICE,
            "material_price": material.price,
            "finish_price": finish.price,
            "total": options.price,
        }

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------
    def drain_events(self) -> List[Tuple[str, Any]]:
        drained: List[Tuple[str, Any]] = []
        while True:
            try:
                drained.append(self.events.get_nowait())
            except queue.Empty:
                return drained

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False)


__all__ = ["Backend", "APP_NAME"]
