"""
Main application window for Atlas Shop.

This module defines the top-level QMainWindow and is the orchestration hub
for the app:
    1. ModelView emits open_requested(path) when a model is dropped
    2. This module loads it into a SceneDocument
    3. Export opens the Export Options dialog, then starts an ExportWorker
    4. Worker signals drive the ExportQueue and the status bar
    5. When the worker finishes, a save dialog delivers atlas.zip

The charcoal + crimson dark theme is applied globally here via QSS, which
styles every child widget in the window (see ui/styles.py).
"""

from pathlib import Path

from PySide6.QtWidgets import QMainWindow, QStatusBar, QFileDialog, QMessageBox, QDialog

from atlas_shop.core.archive import deliver_archive
from atlas_shop.core.loader import load_document
from atlas_shop.core.pipeline import STATE_DISPLAY_NAMES
from atlas_shop.core.scene import SceneDocument
from atlas_shop.core.worker import ExportWorker
from atlas_shop.ui.export_dialog import ExportOptionsDialog
from atlas_shop.ui.main_window import MainContent, describe_document
from atlas_shop.ui.styles import DARK_THEME


class AtlasShopApp(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Atlas Shop")
        self.setMinimumSize(960, 600)
        self.resize(1180, 720)

        self.setStyleSheet(DARK_THEME)

        self.main_content = MainContent()
        self.setCentralWidget(self.main_content)

        status_bar = QStatusBar()
        status_bar.showMessage("Ready")
        self.setStatusBar(status_bar)

        model_view = self.main_content.model_view
        model_view.open_requested.connect(self._open_model)
        model_view.export_requested.connect(self._start_export)

        queue = self.main_content.export_view.queue
        queue.cancel_requested.connect(self._cancel_export)

        # QThread must be stored as an instance attribute or it gets destroyed
        # when the local variable goes out of scope.
        self._worker: ExportWorker | None = None
        self._document: SceneDocument | None = None

    def _open_model(self, path: str):
        """Load a model file and show its summary."""
        try:
            document = load_document(Path(path))
        except Exception as e:
            self.statusBar().showMessage(f"Could not open {Path(path).name}: {e}")
            QMessageBox.critical(self, "Open Failed", str(e))
            return

        self._document = document
        self.main_content.model_view.set_model(describe_document(Path(path).name, document))
        self.main_content.export_view.queue.reset()
        self.statusBar().showMessage(f"Opened {path}")

    def _start_export(self):
        """
        Collect export options, then run the export on a background thread.

        The worker runs the dual-pass export so the UI stays responsive. All
        communication back to the UI happens via Qt signals, which are
        automatically marshaled to the main thread.
        """
        if self._document is None or self._worker is not None:
            return

        dialog = ExportOptionsDialog(self._document, self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return

        self._worker = ExportWorker(self._document, dialog.config())
        queue = self.main_content.export_view.queue
        queue.start_export()
        self.main_content.model_view.set_busy(True)

        # --- Connect worker signals to the export queue ---
        self._worker.state_changed.connect(queue.set_state)
        self._worker.progress.connect(queue.set_progress)
        self._worker.error.connect(queue.set_error)

        # --- Connect worker signals to the status bar ---
        self._worker.state_changed.connect(
            lambda state: self.statusBar().showMessage(
                STATE_DISPLAY_NAMES.get(state, state)
            )
        )
        self._worker.progress.connect(
            lambda _state, message: self.statusBar().showMessage(message)
        )

        # --- Completion ---
        self._worker.export_finished.connect(self._on_export_finished)
        self._worker.error.connect(self._on_export_error)

        self._worker.start()

    def _cancel_export(self):
        """Cancel the running export. Takes effect before the next frame."""
        if self._worker is not None:
            self._worker.cancel()
            self.statusBar().showMessage("Cancelling...")

    def _on_export_finished(self, artifact):
        """Offer the finished archive for saving."""
        self._release_worker()
        layout = artifact.layout
        self.main_content.export_view.queue.set_finished(
            f"{layout.frame_count} frames, "
            f"{layout.atlas_size[0]}x{layout.atlas_size[1]} atlases"
        )

        dest_path, _ = QFileDialog.getSaveFileName(
            self, "Save Spritesheet", artifact.filename, "Zip Archives (*.zip)"
        )
        if not dest_path:
            self.statusBar().showMessage("Export complete (not saved)")
            return

        if not dest_path.lower().endswith(".zip"):
            dest_path += ".zip"

        try:
            output_path = deliver_archive(artifact.archive, Path(dest_path))
        except OSError as e:
            self.statusBar().showMessage(f"Save failed: {e}")
            QMessageBox.critical(self, "Save Failed", str(e))
            return

        entries = ", ".join(artifact.entry_names)
        self.statusBar().showMessage(f"Saved {entries} to: {output_path}")

    def _on_export_error(self, state: str, message: str):
        """Report a failed export. Nothing is offered for saving."""
        self._release_worker()
        self.statusBar().showMessage(f"Export failed: {message}")
        QMessageBox.critical(self, "Export Failed", message)

    def _release_worker(self):
        if self._worker is not None:
            self._worker.wait()
            self._worker = None
        self.main_content.model_view.set_busy(False)
