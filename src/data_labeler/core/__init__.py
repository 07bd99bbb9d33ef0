"""Core annotation logic for Data Labeler."""

from .models import Box, Handle, LabelRecord, Tool
from .config import AppConfig, ConfigManager
from .project import Project
from .session import AnnotationSession
from .prediction import Prediction, PredictionError, ingest
from .detector import EndpointDetector, YOLODetector

__all__ = [
    "Box",
    "Handle",
    "LabelRecord",
    "Tool",
    "AppConfig",
    "ConfigManager",
    "Project",
    "AnnotationSession",
    "Prediction",
    "PredictionError",
    "ingest",
    "EndpointDetector",
    "YOLODetector",
]
