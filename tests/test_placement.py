"""Tests for the placement surface."""

from __future__ import annotations

import pytest

from ccs.geometry import Point, Size
from ccs.placement import Handle, PlacementSurface


def assert_aspect(surface: PlacementSurface) -> None:
    dims = surface.state.dimensions
    assert dims.width / dims.height == pytest.approx(surface.aspect_ratio, rel=1e-9)


@pytest.fixture
def surface() -> PlacementSurface:
    return PlacementSurface("file:///tmp/source.png", Size(2000, 4000))


class TestDefaultPlacement:
    def test_quarter_of_native_size(self, surface: PlacementSurface) -> None:
        assert surface.state.dimensions == Size(500, 1000)

    def test_default_position(self, surface: PlacementSurface) -> None:
        assert surface.state.position == Point(150, 205)


class TestDrag:
    def test_moves_without_resizing(self, surface: PlacementSurface) -> None:
        state = surface.drag(Point(-400, 900))
        assert state.position == Point(-400, 900)
        assert state.dimensions == Size(500, 1000)

    def test_last_drag_wins(self, surface: PlacementSurface) -> None:
        surface.drag(Point(1, 2))
        surface.drag(Point(3, 4))
        assert surface.state.position == Point(3, 4)


class TestResize:
    def test_height_follows_width(self, surface: PlacementSurface) -> None:
        state = surface.resize(Size(300, 999), Point(10, 20))
        assert state.dimensions == Size(300, 600)
        assert state.position == Point(10, 20)

    def test_bottom_right_keeps_origin(self, surface: PlacementSurface) -> None:
        state = surface.resize_from_handle(Handle.BOTTOM_RIGHT, 100, 0)
        assert state.dimensions == Size(600, 1200)
        assert state.position == Point(150, 205)

    def test_top_left_keeps_opposite_corner(self, surface: PlacementSurface) -> None:
        state = surface.resize_from_handle(Handle.TOP_LEFT, -100, 0)
        assert state.dimensions == Size(600, 1200)
        assert state.position == Point(50, 5)
        assert state.position.x + state.dimensions.width == 650
        assert state.position.y + state.dimensions.height == 1205

    def test_vertical_movement_drives_size(self, surface: PlacementSurface) -> None:
        state = surface.resize_from_handle(Handle.BOTTOM_LEFT, 0, 100)
        assert state.dimensions == Size(550, 1100)
        assert state.position == Point(100, 205)

    def test_shrinks_no_further_than_minimum(self, surface: PlacementSurface) -> None:
        state = surface.resize_from_handle(Handle.TOP_RIGHT, -10000, 0)
        assert state.dimensions.width == 10
        assert_aspect(surface)

    def test_preview_does_not_commit(self, surface: PlacementSurface) -> None:
        preview = surface.preview_resize(Handle.BOTTOM_RIGHT, 50, 50)
        assert preview.dimensions != surface.state.dimensions
        assert surface.state.dimensions == Size(500, 1000)

    def test_aspect_ratio_survives_any_sequence(self) -> None:
        surface = PlacementSurface("file:///tmp/source.png", Size(1234, 567))
        moves = [
            (Handle.TOP_LEFT, 13.7, -4.2),
            (Handle.BOTTOM_RIGHT, -91.3, 250.0),
            (Handle.TOP_RIGHT, 0.3, 0.1),
            (Handle.BOTTOM_LEFT, 77.0, -33.3),
        ]
        assert_aspect(surface)
        for handle, dx, dy in moves * 5:
            surface.resize_from_handle(handle, dx, dy)
            assert_aspect(surface)
        surface.resize(Size(333.3, 1.0), Point(0, 0))
        assert_aspect(surface)


class TestLocking:
    def test_locked_surface_ignores_manipulation(self, surface: PlacementSurface) -> None:
        before = surface.snapshot()
        surface.lock()
        surface.drag(Point(0, 0))
        surface.resize_from_handle(Handle.BOTTOM_RIGHT, 100, 100)
        assert surface.state == before

        surface.unlock()
        surface.drag(Point(0, 0))
        assert surface.state.position == Point(0, 0)
