"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """Create a QApplication for tests that need it."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])

    yield app


@pytest.fixture
def make_image(qapp):
    """Return a function that writes a blank PNG of a given size."""
    from PyQt6.QtGui import QColor, QImage

    def _make_image(path: Path, width: int, height: int) -> Path:
        image = QImage(width, height, QImage.Format.Format_RGB32)
        image.fill(QColor("white"))
        assert image.save(str(path), "PNG")
        return path

    return _make_image


@pytest.fixture
def project(make_image, tmp_path):
    """A project with three 200x100 images and the default class list."""
    from data_labeler.core.project import Project

    project = Project.create(tmp_path / "demo")
    for name in ("a.png", "b.png", "c.png"):
        make_image(project.annotation_dir / name, 200, 100)
    return project


@pytest.fixture
def session(project):
    """A synchronous session opened on the first image."""
    from data_labeler.core.session import AnnotationSession

    session = AnnotationSession(project)
    session.open()
    return session
