"""Annotation canvas widget."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import (
    QColor, QFont, QFontMetrics, QImage, QKeyEvent, QMouseEvent, QPainter, QPen
)
from PyQt6.QtWidgets import QWidget

from ..core.geometry import handle_rects
from ..core.models import Box, Handle, Tool
from ..core.session import AnnotationSession

logger = logging.getLogger(__name__)

# Colors assigned to classes by their position in the class list
CLASS_COLORS = [
    "#FF5733", "#33FF57", "#3357FF", "#FF33A1",
    "#A133FF", "#33FFA1", "#FFC300", "#C70039",
]

HANDLE_CURSORS = {
    Handle.NW: Qt.CursorShape.SizeFDiagCursor,
    Handle.SE: Qt.CursorShape.SizeFDiagCursor,
    Handle.NE: Qt.CursorShape.SizeBDiagCursor,
    Handle.SW: Qt.CursorShape.SizeBDiagCursor,
    Handle.N: Qt.CursorShape.SizeVerCursor,
    Handle.S: Qt.CursorShape.SizeVerCursor,
    Handle.W: Qt.CursorShape.SizeHorCursor,
    Handle.E: Qt.CursorShape.SizeHorCursor,
}


class AnnotationCanvas(QWidget):
    """
    Widget showing the current image and its boxes.

    The image is scaled to fit the widget. Mouse positions are mapped to
    image pixel coordinates before they reach the session, so all box
    geometry lives in image space.
    """

    def __init__(self, session: AnnotationSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.image: Optional[QImage] = None
        self.show_filled = True
        self.line_thickness = 2
        self.font_size = 10

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(320, 240)

        session.boxes_changed.connect(self.update)
        session.selection_changed.connect(lambda _: self.update())
        session.hover_changed.connect(lambda _: self.update())

    def set_image(self, image: Optional[QImage]) -> None:
        self.image = image
        self.update()

    # === Coordinate Transform Methods ===

    def _scale(self) -> float:
        if self.image is None or self.image.isNull():
            return 1.0
        return min(self.width() / self.image.width(), self.height() / self.image.height())

    def _offset(self) -> QPointF:
        if self.image is None or self.image.isNull():
            return QPointF()
        scale = self._scale()
        return QPointF(
            (self.width() - self.image.width() * scale) / 2,
            (self.height() - self.image.height() * scale) / 2
        )

    def _transform_pos(self, pos: QPointF) -> QPointF:
        """Transform widget position to image coordinates."""
        offset = self._offset()
        scale = self._scale()
        return QPointF((pos.x() - offset.x()) / scale, (pos.y() - offset.y()) / scale)

    # === Event Handlers ===

    def mousePressEvent(self, event: QMouseEvent) -> None:
        self.setFocus()
        self.session.pointer_down(self._transform_pos(event.position()), event.button())

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        pos = self._transform_pos(event.position())
        self.session.pointer_move(pos)
        self._update_cursor(pos)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.session.pointer_up(self._transform_pos(event.position()))

    def leaveEvent(self, event) -> None:
        self.session.pointer_leave()
        self.unsetCursor()
        super().leaveEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        try:
            key = Qt.Key(event.key())
        except ValueError:
            super().keyPressEvent(event)
            return

        if key == Qt.Key.Key_T:
            self.show_filled = not self.show_filled
            self.update()
        elif not self.session.key_press(key):
            super().keyPressEvent(event)

    def _update_cursor(self, pos: QPointF) -> None:
        if self.session.tool == Tool.DRAW:
            self.setCursor(Qt.CursorShape.CrossCursor)
            return

        handle = self.session.resize_handle or self.session.handle_under(pos)
        if handle is not None:
            self.setCursor(HANDLE_CURSORS[handle])
        elif self.session.hovered_index is not None:
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)

    # === Painting ===

    def class_color(self, label: str) -> QColor:
        """Get the display color of a class."""
        if label in self.session.classes:
            index = self.session.classes.index(label)
            return QColor(CLASS_COLORS[index % len(CLASS_COLORS)])
        return QColor("#AAAAAA")

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor("#333333"))

        if self.image is None or self.image.isNull():
            painter.end()
            return

        offset = self._offset()
        scale = self._scale()
        painter.translate(offset)
        painter.scale(scale, scale)
        painter.drawImage(QPointF(0, 0), self.image)

        session = self.session
        for index, box in enumerate(session.boxes):
            self._draw_box(
                painter, box, scale,
                selected=index == session.selected_index,
                hovered=index == session.hovered_index
            )

        if session.current_box is not None:
            self._draw_box(painter, session.current_box, scale, drawing=True)

        if session.selected_box is not None:
            self._draw_handles(painter, session.selected_box, scale)

        painter.end()

    def _draw_box(
        self,
        painter: QPainter,
        box: Box,
        scale: float,
        selected: bool = False,
        hovered: bool = False,
        drawing: bool = False
    ) -> None:
        color = self.class_color(box.label)
        width = (self.line_thickness + (1 if selected or hovered else 0)) / scale

        pen = QPen(color, width)
        if drawing:
            pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)

        if self.show_filled:
            alpha = 110 if selected else 80 if hovered else 56
            painter.setBrush(QColor(color.red(), color.green(), color.blue(), alpha))
        else:
            painter.setBrush(Qt.BrushStyle.NoBrush)

        painter.drawRect(box.to_rect())

        text = box.label
        if box.confidence is not None:
            text = f"{text} {box.confidence:.2f}"
        self._draw_label(painter, text, QPointF(box.x, box.y), color, scale)

    def _draw_label(
        self,
        painter: QPainter,
        label: str,
        point: QPointF,
        color: QColor,
        scale: float
    ) -> None:
        """Draw a label with background above the given point."""
        font_size = self.font_size / scale
        font = QFont("Arial")
        font.setPointSizeF(font_size)
        metrics = QFontMetrics(font)
        padding = 3 / scale

        rect = QRectF(
            point.x(),
            point.y() - metrics.height() - 2 * padding,
            metrics.horizontalAdvance(label) + 2 * padding,
            metrics.height() + 2 * padding
        )

        background = QColor(color)
        background.setAlpha(200)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(background)
        painter.drawRect(rect)

        painter.setFont(font)
        painter.setPen(Qt.GlobalColor.black)
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, label)

    def _draw_handles(self, painter: QPainter, box: Box, scale: float) -> None:
        painter.setPen(QPen(QColor("#333333"), 2 / scale))
        painter.setBrush(QColor("#FFFFFF"))
        for _, rect in handle_rects(box):
            painter.drawRect(rect)
