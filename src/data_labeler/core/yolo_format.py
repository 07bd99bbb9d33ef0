"""YOLO label format: conversion between pixel boxes and normalized records."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from .models import UNKNOWN_CLASS, Box, LabelRecord

logger = logging.getLogger(__name__)


def _check_dimensions(img_width: float, img_height: float) -> None:
    if img_width <= 0 or img_height <= 0:
        raise ValueError(
            f"Image dimensions must be positive, got {img_width}x{img_height}"
        )


def parse_label_text(text: str) -> List[LabelRecord]:
    """
    Parse the contents of a label file.

    Lines that do not hold exactly 5 numeric tokens are skipped.

    Args:
        text: Raw label file text

    Returns:
        List of parsed records in file order
    """
    records: List[LabelRecord] = []

    for line_num, line in enumerate(text.split("\n"), 1):
        line = line.strip()
        if not line:
            continue

        record = LabelRecord.from_line(line)
        if record is None:
            logger.debug(f"Skipping malformed label line {line_num}: {line!r}")
            continue
        records.append(record)

    return records


def format_label_text(records: Iterable[LabelRecord]) -> str:
    """
    Format records as label file text.

    Returns:
        LF-separated lines with a trailing newline, or an empty string
    """
    lines = [record.to_line() for record in records]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def denormalize(
    records: Iterable[LabelRecord],
    img_width: float,
    img_height: float,
    classes: Sequence[str]
) -> List[Box]:
    """
    Convert normalized records to pixel-space boxes.

    Args:
        records: Normalized label records
        img_width: Image width in pixels
        img_height: Image height in pixels
        classes: Ordered class list; record class indices point into it

    Returns:
        Boxes labeled with the class name, or "unknown" for indices
        outside the class list
    """
    _check_dimensions(img_width, img_height)

    boxes: List[Box] = []
    for record in records:
        box_width = record.width * img_width
        box_height = record.height * img_height

        if 0 <= record.class_index < len(classes):
            label = classes[record.class_index]
        else:
            label = UNKNOWN_CLASS

        boxes.append(Box(
            x=record.x_center * img_width - box_width / 2,
            y=record.y_center * img_height - box_height / 2,
            width=box_width,
            height=box_height,
            label=label
        ))

    return boxes


def normalize(
    boxes: Iterable[Box],
    img_width: float,
    img_height: float,
    classes: Sequence[str]
) -> List[LabelRecord]:
    """
    Convert pixel-space boxes to normalized records.

    Boxes whose label is not in the class list are left out of the
    result. Confidence is not part of the record.

    Args:
        boxes: Pixel-space boxes
        img_width: Image width in pixels
        img_height: Image height in pixels
        classes: Ordered class list

    Returns:
        One record per box with a known class, in box order
    """
    _check_dimensions(img_width, img_height)

    class_ids = {}
    for index, name in enumerate(classes):
        class_ids.setdefault(name, index)

    records: List[LabelRecord] = []
    for box in boxes:
        class_index = class_ids.get(box.label)
        if class_index is None:
            logger.debug(f"Class not in class list, box not saved: {box.label!r}")
            continue

        records.append(LabelRecord(
            class_index=class_index,
            x_center=(box.x + box.width / 2) / img_width,
            y_center=(box.y + box.height / 2) / img_height,
            width=box.width / img_width,
            height=box.height / img_height
        ))

    return records


def decode_labels(
    text: str,
    img_width: float,
    img_height: float,
    classes: Sequence[str]
) -> List[Box]:
    """Parse label text and denormalize it against the image size."""
    return denormalize(parse_label_text(text), img_width, img_height, classes)


def encode_labels(
    boxes: Iterable[Box],
    img_width: float,
    img_height: float,
    classes: Sequence[str]
) -> str:
    """Normalize boxes and format them as label text."""
    return format_label_text(normalize(boxes, img_width, img_height, classes))


def get_label_path(image_path: Path) -> Path:
    """
    Get the label file path for an image.

    Args:
        image_path: Path to the image file

    Returns:
        Path to the sibling ``.txt`` file with the same stem
    """
    return Path(image_path).with_suffix(".txt")



def has_annotation(label_path: Path) -> bool:
    """
    Check if a label file holds at least one valid record.

    Args:
        label_path: Path to the label file

    Returns:
        True if the file exists and contains a parseable line
    """
    label_path = Path(label_path)
    if not label_path.exists():
        return False

    try:
        text = label_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Error reading label file {label_path}: {e}")
        return False

    return bool(parse_label_text(text))
