"""Main application window for Data Labeler."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QActionGroup, QImage
from PyQt6.QtWidgets import (
    QComboBox, QDockWidget, QFileDialog, QInputDialog, QLabel, QListWidget,
    QListWidgetItem, QMainWindow, QMessageBox, QPushButton, QStatusBar,
    QToolBar, QVBoxLayout, QWidget
)

from ..core.config import AppConfig, ConfigManager
from ..core.detector import EndpointDetector, YOLODetector
from ..core.models import Tool
from ..core.prediction import PredictionError, ingest
from ..core.project import Project
from ..core.session import AnnotationSession
from ..workers.image_loader import ImageLoadWorker
from .canvas import AnnotationCanvas

logger = logging.getLogger(__name__)

ANNOTATED_MARKER = "✓ "


class MainWindow(QMainWindow):
    """
    Main application window for Data Labeler.

    Hosts the annotation canvas with an image list, a class list and a
    toolbar for tools, navigation and model predictions.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        """Initialize the main window."""
        super().__init__()

        self.config_manager = config_manager or ConfigManager()
        self.project: Optional[Project] = None
        self.session: Optional[AnnotationSession] = None
        self.canvas: Optional[AnnotationCanvas] = None
        self._workers: list[ImageLoadWorker] = []
        self._yolo_detector: Optional[YOLODetector] = None

        self._init_ui()

        if self.config.default_project and Path(self.config.default_project).is_dir():
            self.open_project(Path(self.config.default_project))

    @property
    def config(self) -> AppConfig:
        return self.config_manager.config

    # === UI construction ===

    def _init_ui(self) -> None:
        """Initialize the user interface."""
        self.setWindowTitle("Data Labeler")
        self.setGeometry(100, 100, 1200, 800)

        self.placeholder = QLabel("Open or create a project to start annotating")
        self.placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setCentralWidget(self.placeholder)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.file_label = QLabel()
        self.status_bar.addPermanentWidget(self.file_label)
        self.count_label = QLabel()
        self.status_bar.addPermanentWidget(self.count_label)
        self.device_label = QLabel()
        self.status_bar.addPermanentWidget(self.device_label)

        self._create_dock_widgets()
        self._create_toolbar()
        self._create_menus()

    def _create_dock_widgets(self) -> None:
        images_dock = QDockWidget("Images", self)
        images_dock.setObjectName("ImagesDock")
        self.image_list = QListWidget()
        self.image_list.currentRowChanged.connect(self._on_image_row_changed)
        images_dock.setWidget(self.image_list)
        self.addDockWidget(Qt.DockWidgetArea.LeftDockWidgetArea, images_dock)

        classes_dock = QDockWidget("Classes", self)
        classes_dock.setObjectName("ClassesDock")
        classes_dock.setWidget(self._create_classes_widget())
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, classes_dock)

    def _create_classes_widget(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)

        self.class_list = QListWidget()
        self.class_list.currentTextChanged.connect(self._on_class_selected)
        layout.addWidget(self.class_list)

        add_button = QPushButton("Add Class")
        add_button.clicked.connect(self._add_class)
        layout.addWidget(add_button)

        delete_button = QPushButton("Delete Class")
        delete_button.clicked.connect(self._delete_class)
        layout.addWidget(delete_button)

        layout.addWidget(QLabel("Selected box class:"))
        self.box_class_combo = QComboBox()
        self.box_class_combo.setEnabled(False)
        self.box_class_combo.textActivated.connect(self._change_selected_box_class)
        layout.addWidget(self.box_class_combo)

        delete_box_button = QPushButton("Delete Selected Box")
        delete_box_button.clicked.connect(self._delete_selected_box)
        layout.addWidget(delete_box_button)

        clear_button = QPushButton("Clear Annotations")
        clear_button.clicked.connect(self._clear_annotations)
        layout.addWidget(clear_button)

        return widget

    def _create_toolbar(self) -> None:
        toolbar = QToolBar("Tools")
        toolbar.setObjectName("MainToolBar")
        self.addToolBar(toolbar)

        tools = QActionGroup(self)
        self.draw_action = QAction("Draw", self)
        self.draw_action.setCheckable(True)
        self.draw_action.setChecked(True)
        self.draw_action.triggered.connect(lambda: self._set_tool(Tool.DRAW))
        tools.addAction(self.draw_action)

        self.select_action = QAction("Select", self)
        self.select_action.setCheckable(True)
        self.select_action.triggered.connect(lambda: self._set_tool(Tool.SELECT))
        tools.addAction(self.select_action)
        toolbar.addActions(tools.actions())

        toolbar.addSeparator()

        predict_action = QAction("Predict", self)
        predict_action.triggered.connect(self._predict)
        toolbar.addAction(predict_action)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("File")

        new_action = QAction("New Project...", self)
        new_action.setShortcut("Ctrl+N")
        new_action.triggered.connect(self._create_project)
        file_menu.addAction(new_action)

        open_action = QAction("Open Project...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._open_project_dialog)
        file_menu.addAction(open_action)

        self.recent_menu = file_menu.addMenu("Recent Projects")
        self._update_recent_menu()

        file_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.setShortcut("Ctrl+Q")
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def _update_recent_menu(self) -> None:
        self.recent_menu.clear()
        for path in self.config.recent_projects:
            action = QAction(path, self)
            action.triggered.connect(lambda _, p=path: self.open_project(Path(p)))
            self.recent_menu.addAction(action)
        self.recent_menu.setEnabled(bool(self.config.recent_projects))

    # === Project handling ===

    def _create_project(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "Select Project Location")
        if directory:
            self.open_project(Project.create(Path(directory)).root)

    def _open_project_dialog(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "Open Project")
        if directory:
            self.open_project(Path(directory))

    def open_project(self, root: Path) -> None:
        """Open a project and load its first image."""
        project = Project(root)
        if not project.annotation_dir.is_dir():
            QMessageBox.warning(self, "Invalid Project", f"No annotation folder in {root}")
            return

        if self.session is not None:
            self.session.deleteLater()

        self.project = project
        self.session = AnnotationSession(project, async_loading=self.config.async_loading, parent=self)
        self.canvas = AnnotationCanvas(self.session)
        self.canvas.show_filled = self.config.show_filled
        self.canvas.line_thickness = self.config.line_thickness
        self.canvas.font_size = self.config.font_size
        self.setCentralWidget(self.canvas)

        self.session.load_requested.connect(self._start_load)
        self.session.image_changed.connect(self._on_image_changed)
        self.session.classes_changed.connect(self._update_class_list)
        self.session.selection_changed.connect(self._on_selection_changed)
        self.session.annotation_status_changed.connect(self._update_image_item)

        self.config.add_recent_project(str(root))
        self.config_manager.update(default_project=str(root))
        self._update_recent_menu()
        self.setWindowTitle(f"Data Labeler - {project.name}")

        self.session.open()
        self._populate_image_list()
        self.canvas.setFocus()

    def _populate_image_list(self) -> None:
        self.image_list.blockSignals(True)
        self.image_list.clear()
        for name, annotated in zip(self.session.image_ids, self.session.annotated):
            self.image_list.addItem(QListWidgetItem(self._item_text(name, annotated)))
        self.image_list.setCurrentRow(self.session.current_index)
        self.image_list.blockSignals(False)
        self._update_counts()

    @staticmethod
    def _item_text(name: str, annotated: bool) -> str:
        return f"{ANNOTATED_MARKER}{name}" if annotated else name

    def _update_image_item(self, index: int, annotated: bool) -> None:
        item = self.image_list.item(index)
        if item is not None:
            item.setText(self._item_text(self.session.image_ids[index], annotated))
        self._update_counts()

    def _update_counts(self) -> None:
        if self.session:
            self.count_label.setText(
                f"{self.session.annotated_count()}/{len(self.session.image_ids)} annotated"
            )

    # === Image loading ===

    def _on_image_row_changed(self, row: int) -> None:
        if self.session and row >= 0 and row != self.session.current_index:
            self.session.load_image(row)

    def _start_load(self, generation: int, index: int) -> None:
        """Start a worker for a load requested by the session."""
        worker = ImageLoadWorker(self.project, generation, index, self.session.image_ids[index])
        worker.loaded.connect(partial(self._on_image_loaded, self.session))
        worker.failed.connect(partial(self._on_image_failed, self.session))
        worker.finished.connect(lambda w=worker: self._workers.remove(w))
        self._workers.append(worker)
        worker.start()

    def _on_image_loaded(
        self,
        session: AnnotationSession,
        generation: int,
        index: int,
        image: QImage,
        label_text
    ) -> None:
        if session is not self.session:
            logger.debug(f"Dropping image {index} loaded for a closed project")
            return
        if self.session.apply_load(generation, index, image.width(), image.height(), label_text):
            self.canvas.set_image(image)

    def _on_image_failed(
        self,
        session: AnnotationSession,
        generation: int,
        index: int,
        message: str
    ) -> None:
        if session is self.session and generation == self.session.generation:
            self.canvas.set_image(None)
            self.status_bar.showMessage(message, 5000)

    def _on_image_changed(self, index: int) -> None:
        if not self.session.async_loading:
            image_id = self.session.image_ids[index]
            image = QImage(str(self.project.image_path(image_id)))
            self.canvas.set_image(None if image.isNull() else image)

        self.image_list.blockSignals(True)
        self.image_list.setCurrentRow(index)
        self.image_list.blockSignals(False)
        self.file_label.setText(self.session.image_ids[index])

    # === Classes ===

    def _update_class_list(self, classes: list) -> None:
        self.class_list.blockSignals(True)
        self.class_list.clear()
        self.class_list.addItems(classes)
        if self.session.selected_class in classes:
            self.class_list.setCurrentRow(classes.index(self.session.selected_class))
        self.class_list.blockSignals(False)

        self.box_class_combo.clear()
        self.box_class_combo.addItems(classes)

    def _on_class_selected(self, name: str) -> None:
        if self.session and name:
            self.session.set_selected_class(name)

    def _add_class(self) -> None:
        if not self.session:
            return
        name, ok = QInputDialog.getText(self, "Add Class", "Enter new class name:")
        if ok and not self.session.add_class(name):
            self.status_bar.showMessage(f"Class not added: {name!r}", 3000)

    def _delete_class(self) -> None:
        item = self.class_list.currentItem()
        if not self.session or item is None:
            return

        name = item.text()
        confirm = QMessageBox.question(
            self, "Confirm Deletion",
            f"Delete class '{name}' and its boxes on this image?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if confirm == QMessageBox.StandardButton.Yes:
            self.session.delete_class(name)

    # === Boxes ===

    def _set_tool(self, tool: Tool) -> None:
        if self.session:
            self.session.set_tool(tool)

    def _on_selection_changed(self, index) -> None:
        box = self.session.selected_box
        self.box_class_combo.setEnabled(box is not None)
        if box is not None:
            self.box_class_combo.setCurrentText(box.label)

    def _change_selected_box_class(self, label: str) -> None:
        if self.session:
            self.session.set_selected_box_class(label)

    def _delete_selected_box(self) -> None:
        if not self.session or self.session.selected_index is None:
            return
        confirm = QMessageBox.question(
            self, "Confirm Deletion", "Are you sure you want to delete this annotation?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if confirm == QMessageBox.StandardButton.Yes:
            self.session.delete_selected_box()

    def _clear_annotations(self) -> None:
        if not self.session or not self.session.has_image:
            return
        confirm = QMessageBox.question(
            self, "Confirm Deletion",
            "Are you sure you want to delete all annotations for this image?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if confirm == QMessageBox.StandardButton.Yes:
            self.session.clear_boxes()

    # === Predictions ===

    def _predict(self) -> None:
        """Ask the configured model for boxes on the current image."""
        if not self.session or not self.session.has_image:
            QMessageBox.warning(self, "Predict", "Please open a project and load an image first.")
            return

        image_path = self.project.image_path(self.session.image_id)
        try:
            if self.config.endpoint_url:
                detector = EndpointDetector(self.config.endpoint_url, self.config.endpoint_timeout)
                predictions = detector.detect(image_path)
            elif self.config.yolo_model_path:
                if self._yolo_detector is None:
                    self._yolo_detector = YOLODetector(self.config.yolo_model_path)
                    self.device_label.setText(self._yolo_detector.get_device_info())
                predictions = self._yolo_detector.detect(
                    image_path, confidence=self.config.confidence_threshold
                )
            else:
                QMessageBox.warning(self, "Predict", "No prediction endpoint or model configured.")
                return
        except PredictionError as e:
            QMessageBox.critical(self, "Prediction Failed", f"Error making prediction: {e}")
            return

        width, height = self.session.image_size
        boxes = ingest(predictions, width, height, self.session.classes)
        self.session.add_predictions(boxes)
        self.status_bar.showMessage(f"Added {len(boxes)} predicted annotations", 5000)

    def closeEvent(self, event) -> None:
        for worker in list(self._workers):
            worker.wait()
        self.config_manager.save()
        super().closeEvent(event)
