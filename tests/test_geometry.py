"""Tests for hit-testing and resize geometry."""

import pytest

from PyQt6.QtCore import QPointF

from data_labeler.core.geometry import (
    HANDLE_ORDER,
    apply_resize,
    box_from_corners,
    find_topmost_box_at,
    handle_at,
    handle_rects,
    point_in_box
)
from data_labeler.core.models import Box, Handle


class TestHitTesting:
    """Tests for point containment and z-order."""

    def test_point_in_box_is_inclusive(self):
        box = Box(10, 10, 20, 20)

        assert point_in_box(QPointF(10, 10), box)
        assert point_in_box(QPointF(30, 30), box)
        assert not point_in_box(QPointF(30.1, 20), box)

    def test_topmost_is_last_drawn(self):
        boxes = [Box(0, 0, 50, 50), Box(25, 25, 50, 50)]

        assert find_topmost_box_at(QPointF(30, 30), boxes) == 1
        assert find_topmost_box_at(QPointF(10, 10), boxes) == 0
        assert find_topmost_box_at(QPointF(90, 90), boxes) is None

    def test_no_boxes(self):
        assert find_topmost_box_at(QPointF(0, 0), []) is None


class TestHandles:
    """Tests for resize handle placement and lookup."""

    def test_eight_handles_centered_on_anchors(self):
        rects = dict(handle_rects(Box(0, 0, 100, 50)))

        assert [h for h, _ in handle_rects(Box(0, 0, 100, 50))] == list(HANDLE_ORDER)
        assert rects[Handle.NW].center() == QPointF(0, 0)
        assert rects[Handle.SE].center() == QPointF(100, 50)
        assert rects[Handle.N].center() == QPointF(50, 0)
        assert rects[Handle.E].center() == QPointF(100, 25)
        assert rects[Handle.W].width() == 8

    def test_handle_at_with_tolerance(self):
        box = Box(0, 0, 100, 50)

        assert handle_at(box, QPointF(100, 50)) is Handle.SE
        # 4 units of square plus 4 units of tolerance
        assert handle_at(box, QPointF(-8, -8)) is Handle.NW
        assert handle_at(box, QPointF(-9, 0)) is None
        assert handle_at(box, QPointF(50, 25)) is None

    def test_first_handle_wins_on_small_box(self):
        assert handle_at(Box(0, 0, 4, 4), QPointF(2, 2)) is Handle.NW


class TestApplyResize:
    """Tests for resizing by handle drag."""

    def test_east_handle_grows_width(self):
        box = apply_resize(Box(10, 10, 50, 30), Handle.E, QPointF(60, 25), QPointF(80, 40))

        assert (box.x, box.y, box.width, box.height) == (10, 10, 70, 30)

    def test_east_handle_clamped_to_minimum(self):
        box = apply_resize(Box(10, 10, 50, 30), Handle.E, QPointF(60, 25), QPointF(-40, 25))

        assert box.width == 10
        assert box.x == 10

    def test_west_handle_keeps_right_edge_when_clamped(self):
        original = Box(10, 10, 50, 30)
        box = apply_resize(original, Handle.W, QPointF(10, 25), QPointF(200, 25))

        assert box.width == 10
        assert box.right == original.right

    def test_north_west_moves_origin(self):
        box = apply_resize(Box(10, 10, 50, 30), Handle.NW, QPointF(10, 10), QPointF(0, 5))

        assert (box.x, box.y, box.width, box.height) == (0, 5, 60, 35)

    def test_north_handle_keeps_bottom_edge_when_clamped(self):
        original = Box(10, 10, 50, 30)
        box = apply_resize(original, Handle.N, QPointF(35, 10), QPointF(35, 100))

        assert box.height == 10
        assert box.bottom == original.bottom

    def test_original_not_modified(self):
        original = Box(10, 10, 50, 30, "cat")
        box = apply_resize(original, Handle.S, QPointF(35, 40), QPointF(35, 60))

        assert original.height == 30
        assert box.height == 50
        assert box.label == "cat"


@pytest.mark.parametrize("anchor,current", [
    (QPointF(10, 10), QPointF(30, 40)),
    (QPointF(30, 40), QPointF(10, 10)),
    (QPointF(30, 10), QPointF(10, 40)),
])
def test_box_from_corners_any_direction(anchor, current):
    box = box_from_corners(anchor, current, "car")

    assert (box.x, box.y, box.width, box.height) == (10, 10, 20, 30)
    assert box.label == "car"
