"""Interactive annotation session for the image open in the annotation surface."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from PyQt6.QtCore import QObject, QPointF, Qt, pyqtSignal

from .geometry import apply_resize, box_from_corners, find_topmost_box_at, handle_at
from .models import Box, Handle, Tool
from .prediction import MIN_BOX_SIZE
from .project import Project
from .storage import unique_classes
from .yolo_format import decode_labels, encode_labels

logger = logging.getLogger(__name__)


class AnnotationSession(QObject):
    """
    In-memory working copy of the annotations of one image.

    Turns pointer and keyboard gestures into changes of the box
    collection and writes the collection through to the project's label
    store after every completed change. Writes happen before the handler
    returns, so writes for one image never overlap.

    Loading is split into ``begin_load``/``apply_load`` around a
    generation counter: a load that finishes after a newer navigation
    started is dropped.
    """

    # Signals
    boxes_changed = pyqtSignal()
    selection_changed = pyqtSignal(object)  # Selected index or None
    hover_changed = pyqtSignal(object)  # Hovered index or None
    image_changed = pyqtSignal(int)
    classes_changed = pyqtSignal(list)
    load_requested = pyqtSignal(int, int)  # generation, image index
    annotation_status_changed = pyqtSignal(int, bool)  # image index, annotated

    def __init__(
        self,
        project: Project,
        async_loading: bool = False,
        parent: Optional[QObject] = None
    ) -> None:
        """
        Initialize the session.

        Args:
            project: Project providing images, labels and classes
            async_loading: Emit load_requested instead of loading in place
            parent: Optional parent object
        """
        super().__init__(parent)
        self.project = project
        self.async_loading = async_loading

        self.image_ids: List[str] = []
        self.annotated: List[bool] = []
        self.classes: List[str] = []
        self.selected_class = ""
        self.tool = Tool.DRAW

        self.current_index = 0
        self.image_id: Optional[str] = None
        self.image_size: Optional[Tuple[int, int]] = None
        self.boxes: List[Box] = []
        self._generation = 0

        self._reset_image_state()

    def _reset_image_state(self) -> None:
        """Reset selection, hover and any gesture in progress."""
        self.selected_index: Optional[int] = None
        self.hovered_index: Optional[int] = None

        self.drawing = False
        self.draw_anchor = QPointF()
        self.current_box: Optional[Box] = None

        self.resize_handle: Optional[Handle] = None
        self.resize_anchor = QPointF()
        self.resize_origin: Optional[Box] = None

    # === Properties ===

    @property
    def resizing(self) -> bool:
        return self.resize_handle is not None

    @property
    def has_image(self) -> bool:
        return self.image_id is not None and self.image_size is not None

    @property
    def selected_box(self) -> Optional[Box]:
        if self.selected_index is None:
            return None
        return self.boxes[self.selected_index]

    @property
    def generation(self) -> int:
        return self._generation

    def annotated_count(self) -> int:
        return sum(1 for flag in self.annotated if flag)

    # === Project and image loading ===

    def open(self) -> None:
        """Read the class list and image list, then load the first image."""
        self.classes = self.project.classes.read()
        if self.selected_class not in self.classes:
            self.selected_class = self.classes[0] if self.classes else ""
        self.classes_changed.emit(list(self.classes))

        status = self.project.annotation_status()
        self.image_ids = [name for name, _ in status]
        self.annotated = [flag for _, flag in status]
        logger.info(f"Opened project {self.project.name} with {len(self.image_ids)} images")

        if self.image_ids:
            self.load_image(0)

    def begin_load(self, index: int) -> Optional[int]:
        """
        Start loading the image at an index.

        Invalidates any load still in flight and clears per-image state.

        Args:
            index: Image index, clamped to the valid range

        Returns:
            Generation to hand back to apply_load, or None without images
        """
        if not self.image_ids:
            return None

        index = max(0, min(index, len(self.image_ids) - 1))
        self._generation += 1
        self.current_index = index
        self.image_id = None
        self.image_size = None
        self.boxes = []
        self._reset_image_state()
        return self._generation

    def apply_load(
        self,
        generation: int,
        index: int,
        width: int,
        height: int,
        label_text: Optional[str]
    ) -> bool:
        """
        Finish a load started by begin_load.

        Args:
            generation: Value returned by begin_load
            index: Image index that was loaded
            width: Image width in pixels
            height: Image height in pixels
            label_text: Raw label text, or None if there is no label file

        Returns:
            False if the load was superseded and has been dropped
        """
        if generation != self._generation or index != self.current_index:
            logger.debug(f"Dropping stale load of image {index} (generation {generation})")
            return False

        self.image_id = self.image_ids[index]
        self.image_size = (width, height)
        self.boxes = decode_labels(label_text or "", width, height, self.classes)
        logger.info(f"Loaded {len(self.boxes)} boxes for {self.image_id}")

        self.image_changed.emit(index)
        self.selection_changed.emit(None)
        self.hover_changed.emit(None)
        self.boxes_changed.emit()
        return True

    def load_image(self, index: int) -> None:
        """
        Load the image at an index.

        With async loading the session only emits load_requested and
        waits for apply_load; otherwise the image is read in place.
        """
        generation = self.begin_load(index)
        if generation is None:
            return

        if self.async_loading:
            self.load_requested.emit(generation, self.current_index)
            return

        image_id = self.image_ids[self.current_index]
        try:
            width, height = self.project.image_size(image_id)
        except ValueError as e:
            logger.error(f"Cannot load {image_id}: {e}")
            self.image_changed.emit(self.current_index)
            self.boxes_changed.emit()
            return

        label_text = self.project.labels.read(image_id)
        self.apply_load(generation, self.current_index, width, height, label_text)

    def navigate(self, step: int) -> None:
        """Move to an adjacent image; stays put at either end of the list."""
        if not self.image_ids:
            return

        target = max(0, min(self.current_index + step, len(self.image_ids) - 1))
        if target != self.current_index:
            self.load_image(target)

    # === Persistence ===

    def _persist(self) -> bool:
        """Write the box collection to the label store."""
        if not self.has_image:
            logger.warning("No image loaded, annotations not saved")
            return False

        width, height = self.image_size
        text = encode_labels(self.boxes, width, height, self.classes)

        if not self.project.labels.write(self.image_id, text):
            logger.warning(f"Failed to save labels for {self.image_id}, keeping in-memory state")
            return False

        annotated = bool(self.boxes)
        if self.annotated[self.current_index] != annotated:
            self.annotated[self.current_index] = annotated
            self.annotation_status_changed.emit(self.current_index, annotated)
        return True

    def _set_boxes(self, boxes: List[Box]) -> None:
        """Replace the box collection, drop indices into it, and persist."""
        self.boxes = boxes
        self._set_selected(None)
        self._set_hovered(None)
        self.boxes_changed.emit()
        self._persist()

    # === Tool and class selection ===

    def set_tool(self, tool: Tool) -> None:
        """Switch tool, abandoning any gesture in progress."""
        tool = Tool(tool)
        if tool == self.tool:
            return

        if self.resizing:
            self._finish_resize()
        self.drawing = False
        self.current_box = None
        self.tool = tool
        self._set_hovered(None)
        self.boxes_changed.emit()

    def set_selected_class(self, name: str) -> None:
        if name in self.classes:
            self.selected_class = name

    def add_class(self, name: str) -> bool:
        """
        Append a class to the class list and select it.

        Returns:
            True if the class was added
        """
        name = name.strip()
        if not name or name in self.classes:
            return False

        self.classes.append(name)
        self.selected_class = name
        self.project.classes.write(self.classes)
        self.classes_changed.emit(list(self.classes))
        return True

    def delete_class(self, name: str) -> None:
        """
        Remove a class and every box of the current image labeled with it.

        Label files of other images are not touched.
        """
        # Saved against the old class list; indices of later classes shift afterwards
        remaining = [box for box in self.boxes if box.label != name]
        if len(remaining) != len(self.boxes):
            self._set_boxes(remaining)

        if name in self.classes:
            self.classes = unique_classes([c for c in self.classes if c != name])
            self.project.classes.write(self.classes)

        if self.selected_class == name:
            self.selected_class = self.classes[0] if self.classes else ""
        self.classes_changed.emit(list(self.classes))

    # === Selection helpers ===

    def _set_selected(self, index: Optional[int]) -> None:
        if index != self.selected_index:
            # A resize only ever applies to the selected box
            if self.resizing:
                self._finish_resize()
            self.selected_index = index
            self.selection_changed.emit(index)

    def _set_hovered(self, index: Optional[int]) -> None:
        if index != self.hovered_index:
            self.hovered_index = index
            self.hover_changed.emit(index)

    def handle_under(self, pos: QPointF) -> Optional[Handle]:
        """Get the handle of the selected box under a position, if any."""
        if self.tool != Tool.SELECT or self.selected_box is None:
            return None
        return handle_at(self.selected_box, pos)

    # === Pointer gestures ===

    def pointer_down(
        self,
        pos: QPointF,
        button: Qt.MouseButton = Qt.MouseButton.LeftButton
    ) -> None:
        """Handle a pointer press at an image position."""
        if button != Qt.MouseButton.LeftButton or not self.has_image:
            return

        if self.tool == Tool.SELECT:
            handle = self.handle_under(pos)
            if handle is not None:
                self.resize_handle = handle
                self.resize_anchor = QPointF(pos)
                self.resize_origin = self.selected_box.copy()
                return

            self._set_selected(find_topmost_box_at(pos, self.boxes))
            return

        if not self.selected_class:
            logger.debug("No class selected, not drawing")
            return

        self.drawing = True
        self.draw_anchor = QPointF(pos)
        self.current_box = None

    def pointer_move(self, pos: QPointF) -> None:
        """Handle pointer movement at an image position."""
        if self.resizing:
            self.boxes[self.selected_index] = apply_resize(
                self.resize_origin, self.resize_handle, self.resize_anchor, pos
            )
            self.boxes_changed.emit()
            return

        if self.tool == Tool.SELECT:
            self._set_hovered(find_topmost_box_at(pos, self.boxes))
            return

        if self.drawing:
            self.current_box = box_from_corners(self.draw_anchor, pos, self.selected_class)
            self.boxes_changed.emit()

    def pointer_up(self, pos: Optional[QPointF] = None) -> None:
        """Handle a pointer release; finishes a resize or a draw."""
        if self.resizing:
            self._finish_resize()
            return

        if not self.drawing:
            return

        if pos is not None:
            self.current_box = box_from_corners(self.draw_anchor, pos, self.selected_class)

        box = self.current_box
        self.drawing = False
        self.current_box = None

        if box is not None and box.is_larger_than(MIN_BOX_SIZE):
            self.boxes.append(box)
            self.boxes_changed.emit()
            self._persist()
        else:
            logger.debug("Box too small, discarding")
            self.boxes_changed.emit()

    def pointer_leave(self) -> None:
        """Handle the pointer leaving the canvas."""
        self._set_hovered(None)
        if self.resizing:
            self._finish_resize()
        elif self.drawing:
            self.pointer_up()

    def _finish_resize(self) -> None:
        self.resize_handle = None
        self.resize_anchor = QPointF()
        self.resize_origin = None
        self._persist()

    # === Keyboard ===

    def key_press(self, key: Qt.Key) -> bool:
        """
        Handle a key press.

        Returns:
            True if the key was handled
        """
        if key == Qt.Key.Key_Delete:
            if self.selected_index is None:
                return False
            self.delete_selected_box()
        elif key == Qt.Key.Key_Right:
            self.navigate(1)
        elif key == Qt.Key.Key_Left:
            self.navigate(-1)
        elif key == Qt.Key.Key_R:
            return self.repeat_previous()
        elif key == Qt.Key.Key_Escape:
            self._set_selected(None)
        else:
            return False
        return True

    # === Box collection edits ===

    def delete_selected_box(self) -> None:
        """Remove the selected box."""
        if self.selected_index is None:
            return

        boxes = [box for i, box in enumerate(self.boxes) if i != self.selected_index]
        self._set_boxes(boxes)

    def set_selected_box_class(self, label: str) -> None:
        """Relabel the selected box."""
        if self.selected_index is None:
            return

        self.boxes[self.selected_index].label = label
        self.boxes_changed.emit()
        self._persist()

    def clear_boxes(self) -> None:
        """Remove every box of the current image."""
        self._set_boxes([])

    def repeat_previous(self) -> bool:
        """
        Replace the boxes with those of the previous image.

        Pixel coordinates are copied unchanged.

        Returns:
            False on the first image or without a loaded image
        """
        if self.current_index <= 0 or not self.has_image:
            return False

        previous_id = self.image_ids[self.current_index - 1]
        label_text = self.project.labels.read(previous_id)
        if label_text is None:
            boxes: List[Box] = []
        else:
            try:
                width, height = self.project.image_size(previous_id)
            except ValueError as e:
                logger.error(f"Cannot copy annotations from {previous_id}: {e}")
                return False
            boxes = decode_labels(label_text, width, height, self.classes)

        logger.info(f"Copied {len(boxes)} boxes from {previous_id}")
        self._set_boxes(boxes)
        return True

    def add_predictions(self, boxes: List[Box]) -> None:
        """Append predicted boxes and persist them as one batch."""
        if not boxes:
            return

        self.boxes.extend(boxes)
        self.boxes_changed.emit()
        self._persist()
