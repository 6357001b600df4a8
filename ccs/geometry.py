"""Coordinate reconciliation between the viewport and the phone silhouette.

The draggable image is positioned in viewport coordinates, while the print area
is the silhouette, which sits inset inside the viewport. Before exporting, the
placement has to be shifted by the silhouette's offset within the viewport so
the crop lines up with what the user saw.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

SILHOUETTE = "silhouette"
VIEWPORT = "viewport"


class LayoutMeasurementError(RuntimeError):
    """Raised when a layout rectangle cannot be measured (element not mounted)."""


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def scaled(self, factor: float) -> "Size":
        return Size(self.width * factor, self.height * factor)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def origin(self) -> Point:
        return Point(self.left, self.top)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class PlacementState:
    """Size and top-left position of the user's image, in viewport pixels."""

    position: Point
    dimensions: Size

    @property
    def rect(self) -> Rect:
        return Rect(self.position.x, self.position.y, self.dimensions.width, self.dimensions.height)


class LayoutMeasurement(Protocol):
    """Anything that can report the rendered rectangle of a named element."""

    def measure(self, name: str) -> Optional[Rect]:
        ...


def measure_frames(layout: LayoutMeasurement) -> Tuple[Rect, Rect]:
    """Read the silhouette and viewport rectangles, in that order."""
    frames = []
    for name in (SILHOUETTE, VIEWPORT):
        rect = layout.measure(name)
        if rect is None or rect.width <= 0 or rect.height <= 0:
            raise LayoutMeasurementError(f"Could not measure the '{name}' element")
        frames.append(rect)
    return frames[0], frames[1]


def frame_offset(silhouette: Rect, viewport: Rect) -> Point:
    """Offset of the silhouette's top-left corner within the viewport."""
    return Point(silhouette.left - viewport.left, silhouette.top - viewport.top)


def resolve_crop_region(placement: PlacementState, silhouette: Rect, viewport: Rect) -> Rect:
    """Translate a viewport-space placement into silhouette space."""
    offset = frame_offset(silhouette, viewport)
    crop = Rect(
        placement.position.x - offset.x,
        placement.position.y - offset.y,
        placement.dimensions.width,
        placement.dimensions.height,
    )
    logger.debug("Resolved crop %s (silhouette offset %s)", crop, offset)
    return crop
