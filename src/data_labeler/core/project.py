"""Project context: stage directories, stores and image source."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

from PyQt6.QtGui import QImageReader

from .storage import ClassListStore, LabelStore
from .yolo_format import has_annotation

logger = logging.getLogger(__name__)

# Image types accepted in a project
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

# Stage directories images move through, in order
STAGES = ("unlabeled", "annotation", "dataset")

ANNOTATION_STAGE = "annotation"
CLASS_LIST_FILE = "project.json"


def is_image(path: Path) -> bool:
    """Return True if the path has a supported image extension."""
    return path.suffix.lower() in IMAGE_EXTENSIONS


class Project:
    """
    An annotation project rooted at one directory.

    Passed explicitly to the components that need it; there is no
    process-wide current project.
    """

    def __init__(self, root: Path) -> None:
        """
        Initialize the project.

        Args:
            root: Project root directory
        """
        self.root = Path(root)
        self.labels = LabelStore(self.annotation_dir)
        self.classes = ClassListStore(self.root / CLASS_LIST_FILE)

    @classmethod
    def create(cls, root: Path) -> Project:
        """Create the stage directories under ``root`` and open the project."""
        project = cls(root)
        for stage in STAGES:
            project.stage_dir(stage).mkdir(parents=True, exist_ok=True)
        logger.info(f"Created project at {project.root}")
        return project

    @property
    def name(self) -> str:
        return self.root.name

    def stage_dir(self, stage: str) -> Path:
        """Get the directory of a stage."""
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage}")
        return self.root / stage

    @property
    def annotation_dir(self) -> Path:
        return self.stage_dir(ANNOTATION_STAGE)

    def list_images(self) -> List[str]:
        """
        List the images of the annotation stage.

        Returns:
            Sorted image file names
        """
        if not self.annotation_dir.is_dir():
            logger.warning(f"Annotation directory missing: {self.annotation_dir}")
            return []

        return sorted(
            entry.name for entry in self.annotation_dir.iterdir()
            if entry.is_file() and is_image(entry)
        )

    def annotation_status(self) -> List[Tuple[str, bool]]:
        """List images together with whether each has at least one saved box."""
        return [
            (name, has_annotation(self.labels.label_path(name)))
            for name in self.list_images()
        ]

    def image_path(self, image_id: str) -> Path:
        return self.annotation_dir / image_id

    def image_size(self, image_id: str) -> Tuple[int, int]:
        """
        Get the pixel dimensions of an image without decoding it.

        Args:
            image_id: Image file name in the annotation stage

        Returns:
            Tuple of (width, height)

        Raises:
            ValueError: If the dimensions cannot be determined
        """
        path = self.image_path(image_id)
        reader = QImageReader(str(path))
        size = reader.size()

        if not size.isValid() or size.width() <= 0 or size.height() <= 0:
            # Some formats only report their size once decoded
            image = QImageReader(str(path)).read()
            if image.isNull() or image.width() <= 0 or image.height() <= 0:
                raise ValueError(f"Could not determine image dimensions for: {path}")
            return image.width(), image.height()

        return size.width(), size.height()
