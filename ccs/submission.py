"""Submit a finished design: export the crop and persist the options together."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .constants import DEFAULT_LANG_KEYS, PREVIEW_PATH
from .geometry import (
    LayoutMeasurement,
    LayoutMeasurementError,
    Rect,
    Size,
    measure_frames,
    resolve_crop_region,
)
from .image_processing import ExportError, ImageCompositor
from .options import CaseOptions
from .placement import PlacementSurface
from .store import ConfigurationStore
from .upload import LocalUploadService, ProgressCallback

logger = logging.getLogger(__name__)

Navigate = Callable[[str], None]
NotifyError = Callable[[str, str], None]


def preview_path(config_id: str) -> str:
    return f"{PREVIEW_PATH}?id={config_id}"


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    config_id: str
    cropped_image_url: Optional[str] = None
    error: Optional[str] = None


class SubmissionPipeline:
    """Runs export+upload and option persistence as one all-or-nothing step.

    Both halves run concurrently on ``executor``. The user is navigated forward
    only when both succeed; otherwise exactly one error notification is sent.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        compositor: ImageCompositor,
        upload_service: LocalUploadService,
        executor: Executor,
        navigate: Navigate,
        notify_error: NotifyError,
        messages: Optional[Dict[str, str]] = None,
    ) -> None:
        self.store = store
        self.compositor = compositor
        self.upload_service = upload_service
        self.executor = executor
        self.navigate = navigate
        self.notify_error = notify_error
        self.messages = messages if messages is not None else DEFAULT_LANG_KEYS

        self._pending: Optional[Future] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None and not self._pending.done()

    def _message(self, key: str) -> str:
        return self.messages.get(key, DEFAULT_LANG_KEYS[key])

    # ------------------------------------------------------------------
    # Halves of a submission
    # ------------------------------------------------------------------
    def _export_and_upload(
        self,
        config_id: str,
        image_url: str,
        crop: Rect,
        output_size: Size,
        progress_callback: Optional[ProgressCallback],
    ) -> str:
        file = self.compositor.export(image_url, crop, output_size)
        result = self.upload_service.upload(file, config_id=config_id, progress_callback=progress_callback)
        return result.url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def submit(
        self,
        config_id: str,
        surface: PlacementSurface,
        layout: LayoutMeasurement,
        options: CaseOptions,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> "Future[SubmissionResult]":
        """Start a submission and return a future for its outcome.

        Placement and layout are read here, on the caller's thread, so the
        export reflects exactly what was on screen when the user submitted.
        Raises ``LayoutMeasurementError`` if the layout cannot be measured.
        """
        with self._lock:
            if self._pending is not None and not self._pending.done():
                logger.info("Submission for %s already in progress", config_id)
                return self._pending

            placement = surface.snapshot()
            try:
                silhouette, viewport = measure_frames(layout)
            except LayoutMeasurementError:
                logger.exception("Aborting submission for %s: layout is not measurable", config_id)
                raise
            crop = resolve_crop_region(placement, silhouette, viewport)

            surface.lock()
            result: "Future[SubmissionResult]" = Future()
            result.set_running_or_notify_cancel()
            self._pending = result

        try:
            export_future = self.executor.submit(
                self._export_and_upload,
                config_id,
                surface.image_url,
                crop,
                silhouette.size,
                progress_callback,
            )
            persist_future = self.executor.submit(self.store.save_options, config_id, options)
        except Exception as exc:
            logger.exception("Could not start submission for %s", config_id)
            surface.unlock()
            self._release(result)
            result.set_exception(exc)
            return result

        self._join(config_id, surface, export_future, persist_future, result)
        return result

    def _release(self, result: Future) -> None:
        with self._lock:
            if self._pending is result:
                self._pending = None

    def _join(
        self,
        config_id: str,
        surface: PlacementSurface,
        export_future: Future,
        persist_future: Future,
        result: "Future[SubmissionResult]",
    ) -> None:
        remaining = [2]
        join_lock = threading.Lock()

        def on_done(_: Future) -> None:
            with join_lock:
                remaining[0] -= 1
                if remaining[0]:
                    return
            self._finish(config_id, surface, export_future, persist_future, result)

        export_future.add_done_callback(on_done)
        persist_future.add_done_callback(on_done)

    def _finish(
        self,
        config_id: str,
        surface: PlacementSurface,
        export_future: Future,
        persist_future: Future,
        result: "Future[SubmissionResult]",
    ) -> None:
        errors: List[str] = []
        message_key = "error_server"

        export_error = export_future.exception()
        if export_error is not None:
            logger.error("Export for %s failed: %s", config_id, export_error)
            errors.append(f"export: {export_error}")
            if isinstance(export_error, ExportError):
                message_key = "error_export"

        persist_error = persist_future.exception()
        if persist_error is not None:
            logger.error("Saving options for %s failed: %s", config_id, persist_error)
            errors.append(f"options: {persist_error}")

        if errors:
            outcome = SubmissionResult(success=False, config_id=config_id, error="; ".join(errors))
        else:
            outcome = SubmissionResult(
                success=True,
                config_id=config_id,
                cropped_image_url=export_future.result(),
            )

        # The surface and the pending slot are released even if a UI callback raises.
        try:
            if errors:
                self.notify_error(self._message("error_title"), self._message(message_key))
            else:
                logger.info("Submitted configuration %s", config_id)
                self.navigate(preview_path(config_id))
        finally:
            surface.unlock()
            self._release(result)
            result.set_result(outcome)
