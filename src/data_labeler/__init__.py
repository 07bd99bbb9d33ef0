"""
Data Labeler - a desktop tool for drawing YOLO bounding box labels.

Built with PyQt6. Boxes are written through to one label file per image
and can be seeded from a remote detection endpoint or a local YOLO model.
"""

__version__ = "0.1.0"
