"""
Export Options dialog for Atlas Shop.

Collects the settings for one spritesheet export:
    - Animation — which clip of the selected object to sample
    - Camera    — which camera of the document to render from
    - Cell Size — width × height of one frame, in pixels
    - FPS       — sampling rate

Defaults come from pipeline.py (150 × 150 at 30 fps) and the camera picker
starts on the camera the editor is looking through. The spin boxes enforce
a minimum of 1, so the dialog can only produce a valid ExportConfig; the
exporter still validates it again before rendering.
"""

from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QFormLayout, QHBoxLayout, QComboBox, QSpinBox,
    QWidget, QLabel,
)

from atlas_shop.core.config import ExportConfig
from atlas_shop.core.pipeline import DEFAULT_CELL_HEIGHT, DEFAULT_CELL_WIDTH, DEFAULT_FPS
from atlas_shop.core.scene import SceneDocument

# Upper bounds keep a typo from asking for a multi-gigabyte atlas.
MAX_CELL_SIZE = 4096
MAX_FPS = 240


class ExportOptionsDialog(QDialog):

    def __init__(self, document: SceneDocument, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Export Options")
        self.setModal(True)

        form = QFormLayout(self)
        form.setSpacing(12)

        self._animation_combo = QComboBox()
        self._animation_combo.setObjectName("animation_combo")
        for clip in document.animations:
            self._animation_combo.addItem(clip.name)
        form.addRow("Animation", self._animation_combo)

        self._camera_combo = QComboBox()
        self._camera_combo.setObjectName("camera_combo")
        for name in document.cameras:
            self._camera_combo.addItem(name)
        preferred = document.preferred_camera()
        if preferred is not None:
            self._camera_combo.setCurrentText(preferred)
        form.addRow("Camera", self._camera_combo)

        # Width and height side by side on one row, like the editor.
        size_row = QWidget()
        size_layout = QHBoxLayout(size_row)
        size_layout.setContentsMargins(0, 0, 0, 0)
        self._width_spin = self._make_spin(DEFAULT_CELL_WIDTH, MAX_CELL_SIZE)
        self._height_spin = self._make_spin(DEFAULT_CELL_HEIGHT, MAX_CELL_SIZE)
        size_layout.addWidget(self._width_spin)
        size_layout.addWidget(QLabel("x"))
        size_layout.addWidget(self._height_spin)
        form.addRow("Cell Size", size_row)

        self._fps_spin = self._make_spin(DEFAULT_FPS, MAX_FPS)
        form.addRow("FPS", self._fps_spin)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.button(QDialogButtonBox.StandardButton.Ok).setText("Export")
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        form.addRow(buttons)

        # Nothing to export without a clip and a camera.
        if not document.animations or not document.cameras:
            buttons.button(QDialogButtonBox.StandardButton.Ok).setEnabled(False)

    @staticmethod
    def _make_spin(value: int, maximum: int) -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(1, maximum)
        spin.setValue(value)
        spin.setFixedWidth(100)
        return spin

    def config(self) -> ExportConfig:
        """The settings currently shown in the dialog."""
        return ExportConfig(
            animation_name=self._animation_combo.currentText(),
            camera_name=self._camera_combo.currentText(),
            cell_width=self._width_spin.value(),
            cell_height=self._height_spin.value(),
            fps=self._fps_spin.value(),
        )
