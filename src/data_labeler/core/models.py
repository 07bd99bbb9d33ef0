"""Data models for Data Labeler annotations."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from PyQt6.QtCore import QPointF, QRectF

logger = logging.getLogger(__name__)

# Label assigned to boxes whose class index has no entry in the class list
UNKNOWN_CLASS = "unknown"


class Tool(str, Enum):
    """Active tool of the annotation surface."""

    DRAW = "draw"
    SELECT = "select"


class Handle(str, Enum):
    """Resize handles of a box: four corners and four edge midpoints."""

    NW = "nw"
    NE = "ne"
    SW = "sw"
    SE = "se"
    N = "n"
    S = "s"
    W = "w"
    E = "e"

    @property
    def moves_left(self) -> bool:
        """True if the handle drags the left edge."""
        return "w" in self.value

    @property
    def moves_right(self) -> bool:
        """True if the handle drags the right edge."""
        return "e" in self.value

    @property
    def moves_top(self) -> bool:
        """True if the handle drags the top edge."""
        return "n" in self.value

    @property
    def moves_bottom(self) -> bool:
        """True if the handle drags the bottom edge."""
        return "s" in self.value


@dataclass
class Box:
    """
    A pixel-space bounding box tied to one decoded image.

    Coordinates are the top-left corner plus size, in the pixel space of
    the image the box was drawn on or denormalized against.
    """

    x: float
    y: float
    width: float
    height: float
    label: str = ""
    confidence: Optional[float] = None

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> QPointF:
        return QPointF(self.x + self.width / 2, self.y + self.height / 2)

    def to_rect(self) -> QRectF:
        """Return the box as a QRectF for painting."""
        return QRectF(self.x, self.y, self.width, self.height)

    def copy(self) -> Box:
        return replace(self)

    def is_larger_than(self, size: float) -> bool:
        """Check that both dimensions strictly exceed ``size``."""
        return self.width > size and self.height > size


@dataclass
class LabelRecord:
    """
    One normalized label line: class index plus center-based box.

    All four coordinates are fractions of the image width/height.
    """

    class_index: int
    x_center: float
    y_center: float
    width: float
    height: float

    def to_line(self) -> str:
        """Format as a label line with 6 decimal places."""
        return (
            f"{self.class_index} {self.x_center:.6f} {self.y_center:.6f} "
            f"{self.width:.6f} {self.height:.6f}"
        )

    @classmethod
    def from_line(cls, line: str) -> Optional[LabelRecord]:
        """
        Parse a label line.

        Args:
            line: A single line of a label file

        Returns:
            LabelRecord, or None unless the line holds exactly 5 numeric tokens
        """
        parts = line.split()
        if len(parts) != 5:
            return None

        try:
            values = [float(p) for p in parts]
        except ValueError:
            return None

        if not all(math.isfinite(v) for v in values):
            return None

        class_value, x_center, y_center, width, height = values
        # A fractional class index matches no class list entry
        class_index = int(class_value) if class_value.is_integer() else -1

        return cls(class_index, x_center, y_center, width, height)
