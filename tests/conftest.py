"""Pytest fixtures for Custom Case Studio tests."""

from __future__ import annotations

import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Tuple

import pytest
from PIL import Image

from ccs.geometry import SILHOUETTE, VIEWPORT, Rect
from ccs.image_processing import ImageCompositor
from ccs.store import ConfigurationStore
from ccs.upload import LocalUploadService


class StaticLayout:
    """Layout measurement returning fixed rectangles."""

    def __init__(self, rects: Dict[str, Optional[Rect]]) -> None:
        self.rects = rects

    def measure(self, name: str) -> Optional[Rect]:
        return self.rects.get(name)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_png(temp_dir: Path) -> Callable[..., Path]:
    """Write a solid-colour PNG and return its path."""

    def _make(
        name: str = "source.png",
        size: Tuple[int, int] = (200, 400),
        color: Tuple[int, int, int, int] = (255, 0, 0, 255),
    ) -> Path:
        path = temp_dir / name
        Image.new("RGBA", size, color).save(path)
        return path

    return _make


@pytest.fixture
def store(temp_dir: Path) -> ConfigurationStore:
    return ConfigurationStore(str(temp_dir / "data" / "configurations.json"))


@pytest.fixture
def compositor() -> ImageCompositor:
    return ImageCompositor()


@pytest.fixture
def upload_service(temp_dir: Path, store: ConfigurationStore) -> LocalUploadService:
    return LocalUploadService(str(temp_dir / "data" / "uploads"), store)


@pytest.fixture
def executor() -> Generator[ThreadPoolExecutor, None, None]:
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def layout() -> StaticLayout:
    """Viewport at the origin with the silhouette inset at (40, 60)."""
    return StaticLayout(
        {
            VIEWPORT: Rect(0, 0, 896, 600),
            SILHOUETTE: Rect(40, 60, 240, 490),
        }
    )


@pytest.fixture
def recorder() -> Dict[str, List]:
    """Collects navigation requests and error notifications."""
    return {"navigate": [], "errors": []}
