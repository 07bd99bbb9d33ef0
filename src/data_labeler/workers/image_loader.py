"""Background image loading worker thread."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal
from PyQt6.QtGui import QImage

from ..core.project import Project

logger = logging.getLogger(__name__)


class ImageLoadWorker(QThread):
    """
    Background thread that decodes one image and reads its label text.

    Results carry the generation of the navigation that requested them
    so the receiver can drop loads that have been superseded.
    """

    # Signal emitted on success (generation, index, image, label text or None)
    loaded = pyqtSignal(int, int, QImage, object)

    # Signal emitted on failure (generation, index, error message)
    failed = pyqtSignal(int, int, str)

    def __init__(
        self,
        project: Project,
        generation: int,
        index: int,
        image_id: str,
        parent: Optional[QThread] = None
    ) -> None:
        """
        Initialize the worker.

        Args:
            project: Project holding the image and its labels
            generation: Navigation generation this load belongs to
            index: Image index in the session's image list
            image_id: Image file name
        """
        super().__init__(parent)
        self.project = project
        self.generation = generation
        self.index = index
        self.image_id = image_id

    def run(self) -> None:
        """Decode the image and read its labels."""
        path = self.project.image_path(self.image_id)
        image = QImage(str(path))

        if image.isNull() or image.width() <= 0 or image.height() <= 0:
            message = f"Could not decode image: {path}"
            logger.error(message)
            self.failed.emit(self.generation, self.index, message)
            return

        label_text = self.project.labels.read(self.image_id)
        logger.debug(f"Loaded {self.image_id} ({image.width()}x{image.height()})")
        self.loaded.emit(self.generation, self.index, image, label_text)
