"""Conversion of detection model output into annotation boxes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ValidationError, field_validator

from .geometry import clamp
from .models import Box

logger = logging.getLogger(__name__)

# Boxes must be strictly larger than this in both dimensions to be kept
MIN_BOX_SIZE = 5.0

# Label used when a prediction carries no usable class information
FALLBACK_LABEL = "predicted"


class PredictionError(Exception):
    """Raised when a prediction source fails to produce predictions."""


class BBoxPayload(BaseModel):
    """Corner-form box as sent by a detection endpoint."""

    x1: float
    y1: float
    x2: float
    y2: float


class PredictionPayload(BaseModel):
    """
    One prediction of a detection endpoint response.

    Expected shape::

        {"class_id": 0, "class_name": "cat", "confidence": 0.9,
         "bbox": {"x1": 10, "y1": 20, "x2": 110, "y2": 220}}
    """

    bbox: BBoxPayload
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    confidence: float = 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp(value, 0.0, 1.0)


@dataclass
class Prediction:
    """
    A single detection in corner form, in image pixel coordinates.

    Either ``class_name`` or ``class_id`` (or both) may be missing.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    class_name: Optional[str] = None
    class_id: Optional[int] = None
    confidence: float = 0.0

    @classmethod
    def from_payload(cls, payload: Any) -> Optional[Prediction]:
        """
        Validate one untyped prediction from a model response.

        Returns:
            Prediction, or None if the payload does not match PredictionPayload
        """
        try:
            data = PredictionPayload.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid prediction {payload!r}: {e.error_count()} errors")
            return None

        return cls(
            x1=data.bbox.x1, y1=data.bbox.y1, x2=data.bbox.x2, y2=data.bbox.y2,
            class_name=data.class_name or None,
            class_id=data.class_id,
            confidence=data.confidence
        )


def parse_predictions(payload: Any) -> List[Prediction]:
    """
    Validate a model response into predictions.

    Accepts either a bare list of predictions or an envelope of the form
    ``{"success": true, "predictions": [...]}``.

    Raises:
        PredictionError: If the envelope reports failure
    """
    if isinstance(payload, dict):
        if payload.get("success") is False:
            raise PredictionError(payload.get("error") or "Prediction failed")
        payload = payload.get("predictions")

    if not isinstance(payload, list):
        logger.warning(f"Invalid predictions format: {type(payload).__name__}")
        return []

    predictions = []
    for item in payload:
        prediction = Prediction.from_payload(item)
        if prediction is not None:
            predictions.append(prediction)
    return predictions


def resolve_label(prediction: Prediction, classes: Sequence[str]) -> str:
    """
    Pick a label for a prediction.

    Order: explicit class name, class list entry for the class id,
    ``class_<id>``, then ``predicted``.
    """
    if prediction.class_name:
        return prediction.class_name

    if prediction.class_id is not None:
        if 0 <= prediction.class_id < len(classes):
            return classes[prediction.class_id]
        return f"class_{prediction.class_id}"

    return FALLBACK_LABEL


def ingest(
    predictions: Sequence[Prediction],
    img_width: float,
    img_height: float,
    classes: Sequence[str]
) -> List[Box]:
    """
    Convert predictions to pixel-space boxes.

    Corners are clamped into the image so partially visible detections
    are truncated. Width and height are at least 1 pixel, so inverted
    corners collapse to a 1 pixel box. Boxes not larger than MIN_BOX_SIZE
    in both dimensions are dropped.

    Args:
        predictions: Validated predictions
        img_width: Image width in pixels
        img_height: Image height in pixels
        classes: Ordered class list used to resolve class ids

    Returns:
        Boxes carrying the prediction confidence
    """
    boxes: List[Box] = []

    for prediction in predictions:
        left = clamp(prediction.x1, 0.0, img_width)
        top = clamp(prediction.y1, 0.0, img_height)
        right = clamp(prediction.x2, 0.0, img_width)
        bottom = clamp(prediction.y2, 0.0, img_height)

        box = Box(
            x=left,
            y=top,
            width=max(1.0, right - left),
            height=max(1.0, bottom - top),
            label=resolve_label(prediction, classes),
            confidence=prediction.confidence
        )

        if box.is_larger_than(MIN_BOX_SIZE):
            boxes.append(box)

    logger.info(f"Ingested {len(boxes)} of {len(predictions)} predictions")
    return boxes

