"""
Drag-and-drop model import widget for Atlas Shop.

The DropZone is the primary input mechanism of the Model view. Users drag
a model file (glTF/GLB, OBJ, PLY, STL, OFF) from their file system into
this widget, or click it to pick one with a file dialog.

It uses Qt's drag-and-drop event system:
    - dragEnterEvent: Validates that the dragged data contains file URLs
    - dragLeaveEvent: Resets visual state when the drag leaves the zone
    - dropEvent: Picks the first supported model file and emits its path
"""

from pathlib import Path

from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel, QFileDialog
from PySide6.QtCore import Qt, Signal

from atlas_shop.core.pipeline import SUPPORTED_MODEL_EXTENSIONS


def first_model_path(paths: list[str]) -> str | None:
    """
    Return the first path that is a file with a supported model extension.

    Only one model is open at a time, so extra dropped files are ignored.
    """
    for raw_path in paths:
        p = Path(raw_path)
        if p.is_file() and p.suffix.lower() in SUPPORTED_MODEL_EXTENSIONS:
            return str(p)
    return None


class DropZone(QWidget):
    # Emitted with the absolute path of a dropped or chosen model file.
    model_dropped = Signal(str)

    def __init__(self):
        super().__init__()
        # Object name enables QSS styling (dashed border, hover effects).
        self.setObjectName("drop_zone")
        self.setAcceptDrops(True)
        self.setMinimumHeight(220)

        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(12)

        icon = QLabel("+")
        icon.setObjectName("drop_icon")
        icon.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(icon)

        title = QLabel("Drop a model here, or click to browse")
        title.setObjectName("drop_title")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)

        extensions = ", ".join(sorted(ext[1:].upper() for ext in SUPPORTED_MODEL_EXTENSIONS))
        subtitle = QLabel(f"Supports {extensions}")
        subtitle.setObjectName("drop_subtitle")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(subtitle)

    def mousePressEvent(self, event):
        """Open a file dialog as an alternative to drag-and-drop."""
        patterns = " ".join(f"*{ext}" for ext in sorted(SUPPORTED_MODEL_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Model", "", f"Models ({patterns})"
        )
        if path:
            self.model_dropped.emit(path)

    def dragEnterEvent(self, event):
        """Accept the drag if it contains file URLs (from the OS file manager)."""
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
            self.setStyleSheet("")

    def dragLeaveEvent(self, event):
        """Reset visual state when the drag leaves the drop zone."""
        self.setStyleSheet("")

    def dropEvent(self, event):
        """Emit the first supported model among the dropped files."""
        raw_paths = [url.toLocalFile() for url in event.mimeData().urls()]
        path = first_model_path(raw_paths)
        if path:
            self.model_dropped.emit(path)
