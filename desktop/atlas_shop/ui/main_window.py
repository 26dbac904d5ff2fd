"""
Main content area for Atlas Shop.

A single page with two panels side by side:
    - ModelView:  drop zone for the model, model summary, Export button
    - ExportView: the export queue showing live export progress

The app layer (app.py) owns the loaded document and the export worker;
these widgets only display state and emit requests.
"""

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton
from PySide6.QtCore import Signal

from atlas_shop.core.scene import NodeKind, SceneDocument
from atlas_shop.ui.drop_zone import DropZone
from atlas_shop.ui.export_queue import ExportQueue


def describe_document(name: str, document: SceneDocument) -> str:
    """One-line summary of a loaded document for the model info label."""
    nodes = list(document.selected.walk())
    skinned = sum(1 for node in nodes if node.kind is NodeKind.SKINNED)
    triangles = sum(len(node.geometry.faces) for node in nodes if node.geometry is not None)
    clips = len(document.animations)
    return (
        f"{name}    Meshes: {skinned:,}    Triangles: {triangles:,}    "
        f"Animations: {clips}"
    )


class ModelView(QWidget):
    """
    Model import and export trigger.

    Signal flow:
        1. User drops a model → DropZone emits model_dropped(path)
        2. ModelView re-emits it as open_requested(path) for the app to load
        3. App calls set_model(...) with a summary, enabling Export
        4. User clicks Export → export_requested() for the app to open the dialog
    """

    open_requested = Signal(str)
    export_requested = Signal()

    def __init__(self):
        super().__init__()
        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 32, 32, 32)
        layout.setSpacing(20)

        header = QLabel("Model")
        header.setObjectName("section_title")
        layout.addWidget(header)

        self.drop_zone = DropZone()
        self.drop_zone.model_dropped.connect(self.open_requested.emit)
        layout.addWidget(self.drop_zone)

        self._model_info = QLabel("")
        self._model_info.setObjectName("model_info")
        self._model_info.setWordWrap(True)
        layout.addWidget(self._model_info)

        self._export_btn = QPushButton("Export Spritesheet...")
        self._export_btn.setObjectName("export_button")
        self._export_btn.setEnabled(False)
        self._export_btn.setFixedHeight(44)
        self._export_btn.clicked.connect(self.export_requested.emit)
        layout.addWidget(self._export_btn)

        layout.addStretch()

    def set_model(self, summary: str):
        self._model_info.setText(summary)
        self._export_btn.setEnabled(True)

    def set_busy(self, busy: bool):
        """Disable Export (and model changes) while an export is running."""
        self._export_btn.setEnabled(not busy and bool(self._model_info.text()))
        self.drop_zone.setEnabled(not busy)


class ExportView(QWidget):
    """Hosts the export queue."""

    def __init__(self):
        super().__init__()
        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 32, 32, 32)
        layout.setSpacing(20)

        header = QLabel("Export")
        header.setObjectName("section_title")
        layout.addWidget(header)

        self.queue = ExportQueue()
        layout.addWidget(self.queue)


class MainContent(QWidget):
    """Lays out the Model and Export views side by side."""

    def __init__(self):
        super().__init__()
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.model_view = ModelView()
        self.export_view = ExportView()
        layout.addWidget(self.model_view, 1)
        layout.addWidget(self.export_view, 1)
