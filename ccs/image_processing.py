"""Image loading, compositing and export helpers for the backend."""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Tuple
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from PIL import Image, UnidentifiedImageError

from .constants import (
    EXPORT_CONTENT_TYPE,
    EXPORT_FILENAME,
    FALLBACK_IMAGE_SIZE,
    HTTP_TIMEOUT,
)
from .geometry import Rect, Size

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when the source image cannot be loaded, drawn, or encoded."""


@dataclass(frozen=True)
class UploadFile:
    """An in-memory file ready to hand to the upload service."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def read_image_size(data: bytes) -> Tuple[int, int]:
    """Return the pixel size of encoded image data, or the fallback square."""
    try:
        with Image.open(BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        logger.warning("Could not read image dimensions, using %spx fallback", FALLBACK_IMAGE_SIZE)
        return FALLBACK_IMAGE_SIZE, FALLBACK_IMAGE_SIZE


class ImageCompositor:
    """Load source images and render the print-ready crop of a placement."""

    def __init__(
        self,
        resample: Image.Resampling = Image.Resampling.BILINEAR,
        http_timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.resample = resample
        self.http_timeout = http_timeout

        self._thumbnail_cache: Dict[Tuple[str, Tuple[int, int]], Image.Image] = {}
        self._cache_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Image loading helpers
    # ------------------------------------------------------------------
    def fetch_bytes(self, image_url: str) -> bytes:
        """Read the raw bytes behind a local path, ``file://`` or ``http(s)://`` URL."""
        parsed = urlparse(image_url)
        if parsed.scheme in ("http", "https"):
            response = httpx.get(image_url, timeout=self.http_timeout, follow_redirects=True)
            response.raise_for_status()
            return response.content

        path = url2pathname(parsed.path) if parsed.scheme == "file" else image_url
        with open(path, "rb") as handle:
            return handle.read()

    def load_image(self, image_url: str) -> Image.Image:
        """Load and fully decode an image as RGBA."""
        try:
            data = self.fetch_bytes(image_url)
            img = Image.open(BytesIO(data))
            # Image.open is lazy; force decoding before anything is drawn.
            img.load()
            if img.mode != "RGBA":
                img = img.convert("RGBA")
            return img
        except (httpx.HTTPError, OSError, UnidentifiedImageError, ValueError) as exc:
            raise ExportError(f"Could not load image '{image_url}': {exc}") from exc

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------
    def render_crop(self, source: Image.Image, crop: Rect, output_size: Size) -> Image.Image:
        """Replay the on-screen placement onto a surface the size of the silhouette.

        ``crop`` is expressed in silhouette pixels, so the source is scaled to
        the crop size and pasted at the crop origin. Anything that falls outside
        the surface is clipped; uncovered areas stay transparent.
        """
        canvas_width = max(1, int(round(output_size.width)))
        canvas_height = max(1, int(round(output_size.height)))
        canvas = Image.new("RGBA", (canvas_width, canvas_height), (0, 0, 0, 0))

        target_size = (max(1, int(round(crop.width))), max(1, int(round(crop.height))))
        if source.mode != "RGBA":
            source = source.convert("RGBA")
        scaled = source.resize(target_size, self.resample)

        # The canvas is fully transparent, so a maskless paste keeps source alpha as is.
        canvas.paste(scaled, (int(round(crop.left)), int(round(crop.top))))
        return canvas

    @staticmethod
    def encode_png(image: Image.Image) -> bytes:
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def export(self, image_url: str, crop: Rect, output_size: Size) -> UploadFile:
        """Load ``image_url``, render ``crop`` and package the result as a PNG file."""
        source = self.load_image(image_url)
        try:
            rendered = self.render_crop(source, crop, output_size)
            data = self.encode_png(rendered)
        except (OSError, ValueError) as exc:
            raise ExportError(f"Could not render crop: {exc}") from exc

        logger.info(
            "Exported %dx%d crop of %s (%d bytes)",
            rendered.width,
            rendered.height,
            os.path.basename(urlparse(image_url).path) or image_url,
            len(data),
        )
        return UploadFile(name=EXPORT_FILENAME, content_type=EXPORT_CONTENT_TYPE, data=data)

    # ------------------------------------------------------------------
    # Thumbnail cache
    # ------------------------------------------------------------------
    def get_cached_thumbnail(self, image_url: str, size: Tuple[int, int] = (150, 150)) -> Image.Image:
        cache_key = (image_url, size)

        with self._cache_lock:
            thumbnail = self._thumbnail_cache.get(cache_key)
        if thumbnail is not None:
            return thumbnail

        thumbnail = self.load_image(image_url)
        thumbnail.thumbnail(size, Image.Resampling.LANCZOS)

        with self._cache_lock:
            self._thumbnail_cache[cache_key] = thumbnail
            if len(self._thumbnail_cache) > 100:
                for key in list(self._thumbnail_cache.keys())[:20]:
                    del self._thumbnail_cache[key]

        return thumbnail
