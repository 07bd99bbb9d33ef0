"""UI components for Data Labeler."""

from .canvas import AnnotationCanvas
from .main_window import MainWindow

__all__ = [
    "AnnotationCanvas",
    "MainWindow",
]
