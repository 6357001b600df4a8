"""Live placement of the user's image over the phone silhouette."""
from __future__ import annotations

import logging
from enum import Enum

from .constants import (
    DEFAULT_PLACEMENT_SCALE,
    DEFAULT_PLACEMENT_X,
    DEFAULT_PLACEMENT_Y,
    MIN_PLACEMENT_WIDTH,
)
from .geometry import PlacementState, Point, Size

logger = logging.getLogger(__name__)


class Handle(Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"

    @property
    def is_left(self) -> bool:
        return self in (Handle.TOP_LEFT, Handle.BOTTOM_LEFT)

    @property
    def is_top(self) -> bool:
        return self in (Handle.TOP_LEFT, Handle.TOP_RIGHT)


class PlacementSurface:
    """Owns the position and size of the draggable image.

    The size is always derived from a width and the source image's aspect
    ratio, so no sequence of resizes can distort the image. Positions are not
    bounded: the image may be moved partly or fully off the silhouette.
    """

    def __init__(
        self,
        image_url: str,
        native_size: Size,
        position: Point = Point(DEFAULT_PLACEMENT_X, DEFAULT_PLACEMENT_Y),
        scale: float = DEFAULT_PLACEMENT_SCALE,
    ) -> None:
        self.image_url = image_url
        self.native_size = native_size
        self._state = PlacementState(position=position, dimensions=native_size.scaled(scale))
        self._locked = False

    @property
    def aspect_ratio(self) -> float:
        return self.native_size.aspect_ratio

    @property
    def state(self) -> PlacementState:
        return self._state

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    def snapshot(self) -> PlacementState:
        # PlacementState is frozen, so handing out the current value is safe.
        return self._state

    # ------------------------------------------------------------------
    # Manipulation
    # ------------------------------------------------------------------
    def drag(self, new_position: Point) -> PlacementState:
        if self._locked:
            logger.debug("Ignoring drag while a submission is in progress")
            return self._state
        self._state = PlacementState(position=new_position, dimensions=self._state.dimensions)
        return self._state

    def resize(self, new_size: Size, new_position: Point) -> PlacementState:
        if self._locked:
            logger.debug("Ignoring resize while a submission is in progress")
            return self._state
        self._state = PlacementState(position=new_position, dimensions=self._locked_size(new_size.width))
        return self._state

    def preview_resize(self, handle: Handle, dx: float, dy: float) -> PlacementState:
        """State that dragging ``handle`` by (dx, dy) would produce, without applying it."""
        current = self._state
        width = current.dimensions.width
        height = current.dimensions.height

        grow_x = -dx if handle.is_left else dx
        grow_y = -dy if handle.is_top else dy
        # The axis the pointer moved furthest along drives the new size.
        if abs(grow_x) >= abs(grow_y * self.aspect_ratio):
            new_width = width + grow_x
        else:
            new_width = width + grow_y * self.aspect_ratio

        size = self._locked_size(new_width)
        right = current.position.x + width
        bottom = current.position.y + height
        x = right - size.width if handle.is_left else current.position.x
        y = bottom - size.height if handle.is_top else current.position.y
        return PlacementState(position=Point(x, y), dimensions=size)

    def resize_from_handle(self, handle: Handle, dx: float, dy: float) -> PlacementState:
        proposed = self.preview_resize(handle, dx, dy)
        return self.resize(proposed.dimensions, proposed.position)

    def _locked_size(self, width: float) -> Size:
        width = max(width, MIN_PLACEMENT_WIDTH)
        return Size(width, width / self.aspect_ratio)
