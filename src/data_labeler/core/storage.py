"""File-backed stores for label files and the project class list."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .yolo_format import get_label_path

logger = logging.getLogger(__name__)

# Class list used when a project has none stored yet
DEFAULT_CLASSES = ["person", "car"]


class LabelStore:
    """
    Store of one label text file per image.

    Label files live in a single directory and share the image's stem,
    e.g. ``cat_01.jpg`` is labeled by ``cat_01.txt``.
    """

    def __init__(self, directory: Path) -> None:
        """
        Initialize the store.

        Args:
            directory: Directory holding images and their label files
        """
        self.directory = Path(directory)

    def label_path(self, image_id: str) -> Path:
        """Get the label file path for an image name."""
        return get_label_path(self.directory / image_id)

    def exists(self, image_id: str) -> bool:
        return self.label_path(image_id).exists()

    def read(self, image_id: str) -> Optional[str]:
        """
        Read the raw label text for an image.

        Returns:
            File contents, or None when there is no label file
        """
        path = self.label_path(image_id)
        if not path.exists():
            logger.debug(f"No label file for {image_id}")
            return None

        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Error reading label file {path}: {e}")
            return None

    def write(self, image_id: str, text: str) -> bool:
        """
        Write the raw label text for an image.

        An empty text removes the label file.

        Returns:
            True if the write was successful
        """
        path = self.label_path(image_id)

        if not text.strip():
            if path.exists():
                try:
                    path.unlink()
                    logger.info(f"Deleted empty label file: {path}")
                except OSError as e:
                    logger.error(f"Error deleting label file {path}: {e}")
                    return False
            return True

        try:
            path.write_text(text, encoding="utf-8")
            logger.info(f"Saved labels to {path}")
            return True
        except OSError as e:
            logger.error(f"Error writing label file {path}: {e}")
            return False


class ClassListStore:
    """
    Store of the ordered project class list.

    Persisted as ``{"classes": [...]}`` in a JSON file. The position of a
    class in the list is the class index written to label files.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> List[str]:
        """
        Read the class list.

        Returns:
            Stored classes, or the default list if nothing usable is stored
        """
        if not self.path.exists():
            logger.info(f"No class list at {self.path}, using defaults")
            return list(DEFAULT_CLASSES)

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading class list from {self.path}: {e}")
            return list(DEFAULT_CLASSES)

        classes = data.get("classes") if isinstance(data, dict) else None
        if not isinstance(classes, list):
            logger.warning(f"Invalid class list in {self.path}, using defaults")
            return list(DEFAULT_CLASSES)

        return unique_classes(classes)

    def write(self, classes: Sequence[str]) -> bool:
        """
        Write the class list.

        Returns:
            True if the write was successful
        """
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump({"classes": list(classes)}, f, indent=2)
            logger.info(f"Saved {len(classes)} classes to {self.path}")
            return True
        except OSError as e:
            logger.error(f"Error saving class list to {self.path}: {e}")
            return False


def unique_classes(classes: Sequence[object]) -> List[str]:
    """Drop non-string and duplicate entries, keeping first occurrences."""
    result: List[str] = []
    for name in classes:
        if isinstance(name, str) and name and name not in result:
            result.append(name)
    return result
