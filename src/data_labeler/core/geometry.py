"""Hit-testing and resize geometry for pixel-space boxes."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from PyQt6.QtCore import QPointF, QRectF

from .models import Box, Handle

# Side length of the square drawn for each resize handle
HANDLE_SIZE = 8.0

# Extra margin around a handle that still counts as a hit
HANDLE_TOLERANCE = 4.0

# Smallest width/height a resize may produce
MIN_RESIZE_SIZE = 10.0

# Hit-test order; the first matching handle wins
HANDLE_ORDER = (
    Handle.NW, Handle.NE, Handle.SW, Handle.SE,
    Handle.N, Handle.S, Handle.W, Handle.E,
)


def point_in_box(point: QPointF, box: Box) -> bool:
    """Inclusive containment test."""
    return (
        box.x <= point.x() <= box.x + box.width and
        box.y <= point.y() <= box.y + box.height
    )


def find_topmost_box_at(point: QPointF, boxes: Sequence[Box]) -> Optional[int]:
    """
    Find the topmost box under a point.

    The last box in the sequence is the topmost in z-order.

    Args:
        point: Position in image coordinates
        boxes: Boxes in insertion order

    Returns:
        Index of the hit box, or None
    """
    for index in range(len(boxes) - 1, -1, -1):
        if point_in_box(point, boxes[index]):
            return index
    return None


def handle_anchor(box: Box, handle: Handle) -> QPointF:
    """Get the corner or edge midpoint a handle is centered on."""
    if handle.moves_left:
        x = box.x
    elif handle.moves_right:
        x = box.x + box.width
    else:
        x = box.x + box.width / 2

    if handle.moves_top:
        y = box.y
    elif handle.moves_bottom:
        y = box.y + box.height
    else:
        y = box.y + box.height / 2

    return QPointF(x, y)


def handle_rects(box: Box) -> List[Tuple[Handle, QRectF]]:
    """Get the square of every handle, in hit-test order."""
    half = HANDLE_SIZE / 2
    rects = []
    for handle in HANDLE_ORDER:
        anchor = handle_anchor(box, handle)
        rects.append(
            (handle, QRectF(anchor.x() - half, anchor.y() - half, HANDLE_SIZE, HANDLE_SIZE))
        )
    return rects


def handle_at(box: Box, point: QPointF) -> Optional[Handle]:
    """
    Find the resize handle under a point.

    Args:
        box: Box whose handles are tested
        point: Position in image coordinates

    Returns:
        The first handle whose square, grown by the tolerance, contains the point
    """
    for handle, rect in handle_rects(box):
        if (
            rect.left() - HANDLE_TOLERANCE <= point.x() <= rect.right() + HANDLE_TOLERANCE and
            rect.top() - HANDLE_TOLERANCE <= point.y() <= rect.bottom() + HANDLE_TOLERANCE
        ):
            return handle
    return None


def apply_resize(
    original: Box,
    handle: Handle,
    drag_start: QPointF,
    drag_current: QPointF
) -> Box:
    """
    Resize a box by dragging one of its handles.

    Each dimension is kept at MIN_RESIZE_SIZE or more. When a left or top
    edge is dragged past that limit, the opposite edge stays where it was.

    Args:
        original: Box as it was when the drag started
        handle: Handle being dragged
        drag_start: Pointer position when the drag started
        drag_current: Current pointer position

    Returns:
        New box; the original is not modified
    """
    delta_x = drag_current.x() - drag_start.x()
    delta_y = drag_current.y() - drag_start.y()

    x, y = original.x, original.y
    width, height = original.width, original.height

    if handle.moves_left:
        x += delta_x
        width -= delta_x
    elif handle.moves_right:
        width += delta_x

    if handle.moves_top:
        y += delta_y
        height -= delta_y
    elif handle.moves_bottom:
        height += delta_y

    if width < MIN_RESIZE_SIZE:
        if handle.moves_left:
            x = original.x + original.width - MIN_RESIZE_SIZE
        width = MIN_RESIZE_SIZE

    if height < MIN_RESIZE_SIZE:
        if handle.moves_top:
            y = original.y + original.height - MIN_RESIZE_SIZE
        height = MIN_RESIZE_SIZE

    return replace(original, x=x, y=y, width=width, height=height)


def box_from_corners(anchor: QPointF, current: QPointF, label: str = "") -> Box:
    """Build a box spanning two opposite corners, dragged in any direction."""
    return Box(
        x=min(anchor.x(), current.x()),
        y=min(anchor.y(), current.y()),
        width=abs(current.x() - anchor.x()),
        height=abs(current.y() - anchor.y()),
        label=label
    )


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(value, high))
