"""Prediction sources: a remote detection endpoint and a local YOLO model."""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Any, List, Optional

import requests
import torch

from .prediction import Prediction, PredictionError, parse_predictions

logger = logging.getLogger(__name__)


def image_data_url(image_path: Path) -> str:
    """
    Encode an image file as a base64 data URL.

    Args:
        image_path: Path to the image file

    Returns:
        String of the form ``data:image/jpeg;base64,...``
    """
    image_path = Path(image_path)
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"
    encoded = base64.b64encode(image_path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class EndpointDetector:
    """
    Client for an externally hosted detection model.

    The endpoint receives ``{"image": <data URL>}`` as JSON and answers
    with a list of predictions, either bare or wrapped as
    ``{"success": true, "predictions": [...]}``.
    """

    def __init__(self, url: str, timeout: float = 30.0) -> None:
        """
        Initialize the client.

        Args:
            url: Prediction endpoint URL
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout

    def detect(self, image_path: Path) -> List[Prediction]:
        """
        Request predictions for an image.

        Args:
            image_path: Path to the image file

        Returns:
            Validated predictions

        Raises:
            PredictionError: If the request fails or the response is unusable
        """
        try:
            payload = {"image": image_data_url(image_path)}
        except OSError as e:
            raise PredictionError(f"Failed to load image data: {e}") from e

        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Prediction request to {self.url} failed: {e}")
            raise PredictionError(str(e)) from e
        except ValueError as e:
            logger.error(f"Prediction endpoint returned invalid JSON: {e}")
            raise PredictionError("Invalid response from prediction endpoint") from e

        predictions = parse_predictions(data)
        logger.info(f"Received {len(predictions)} predictions from {self.url}")
        return predictions


class YOLODetector:
    """
    Wrapper for a local Ultralytics YOLO model.

    Produces the same prediction records as the remote endpoint so both
    sources go through the same ingestion.
    """

    def __init__(self, model_path: Optional[str] = None) -> None:
        """
        Initialize the YOLO detector.

        Args:
            model_path: Path to the YOLO model file (.pt)
        """
        self.device = "cuda" if torch.cuda.is_available() else "cpu"
        self.model: Optional[Any] = None
        self.model_path: Optional[str] = None

        if model_path:
            self.load_model(model_path)

    @property
    def is_loaded(self) -> bool:
        """Check if a model is loaded."""
        return self.model is not None

    def load_model(self, model_path: str) -> bool:
        """
        Load a YOLO model from file.

        Args:
            model_path: Path to the model file

        Returns:
            True if model loaded successfully
        """
        try:
            from ultralytics import YOLO

            self.model = YOLO(model_path)
            self.model.to(self.device)
            self.model_path = model_path

            logger.info(f"Loaded YOLO model from {model_path} on {self.device}")
            return True

        except ImportError:
            logger.error("ultralytics package not installed")
            return False
        except Exception as e:
            logger.error(f"Error loading YOLO model: {e}")
            self.model = None
            self.model_path = None
            return False

    def detect(
        self,
        image_path: Path,
        confidence: float = 0.25,
        iou_threshold: float = 0.45
    ) -> List[Prediction]:
        """
        Run object detection on an image.

        Args:
            image_path: Path to the image file
            confidence: Confidence threshold for detections
            iou_threshold: IOU threshold for NMS

        Returns:
            Predictions in image pixel coordinates

        Raises:
            PredictionError: If no model is loaded or inference fails
        """
        if not self.is_loaded:
            raise PredictionError("No model loaded. Call load_model() first.")

        try:
            results = self.model(
                str(image_path),
                conf=confidence,
                iou=iou_threshold,
                verbose=False
            )
        except Exception as e:
            logger.error(f"Detection failed: {e}")
            raise PredictionError(str(e)) from e

        if not results:
            return []

        return self.convert_results(results[0])

    @staticmethod
    def convert_results(result: Any) -> List[Prediction]:
        """
        Convert a single YOLO result to prediction records.

        Args:
            result: YOLO result object with ``boxes`` and ``names``

        Returns:
            List of predictions
        """
        predictions: List[Prediction] = []
        names = getattr(result, "names", None) or {}

        if getattr(result, "boxes", None) is None:
            return predictions

        for box in result.boxes:
            try:
                x1, y1, x2, y2 = box.xyxy[0].tolist()
                class_id = int(box.cls)
                predictions.append(Prediction(
                    x1=x1, y1=y1, x2=x2, y2=y2,
                    class_name=names.get(class_id),
                    class_id=class_id,
                    confidence=float(box.conf)
                ))
            except Exception as e:
                logger.warning(f"Error processing box detection: {e}")

        logger.info(f"Detected {len(predictions)} objects")
        return predictions

    def get_device_info(self) -> str:
        """Get information about the compute device."""
        if self.device == "cuda":
            try:
                return f"CUDA: {torch.cuda.get_device_name(0)}"
            except Exception:
                return "CUDA (unknown device)"
        return "CPU"
