"""
Background export worker for Atlas Shop.

This module provides the QThread subclass that runs one spritesheet export
on a background thread, keeping the UI responsive while two full passes of
frames are rasterized.

The export itself is a coroutine (see exporter.py). The worker gives it a
private event loop with asyncio.run() inside QThread.run(), so the UI
thread's Qt event loop and the export's asyncio loop never share a thread.

Communication back to the UI happens entirely through Qt signals. Signals
emitted from this thread are queued to receivers on the main thread, so:
    - The worker never touches any widget directly
    - Slot methods in the UI always execute on the main thread
    - No explicit mutex or QMetaObject.invokeMethod is needed
"""

import asyncio

from PySide6.QtCore import QThread, Signal

from atlas_shop.core.config import ExportConfig
from atlas_shop.core.exporter import SpritesheetExport
from atlas_shop.core.renderer import SceneFrameRenderer, SoftwareRenderer
from atlas_shop.core.sampler import CancellationToken
from atlas_shop.core.scene import SceneDocument


def error_message(error: BaseException) -> str:
    """
    Text shown to the user for a failed export.

    Includes the exception notes, so a failed material restore that
    happened while handling the original error is reported as well.
    """
    return "\n".join([str(error), *getattr(error, "__notes__", ())])


class ExportWorker(QThread):
    """
    Runs one dual-pass export on a background thread.

    Signals:
        state_changed(str)      — Emitted on every export state transition.
        progress(str, str)      — (state, message) status updates within a state.
        error(str, str)         — (state, error_message) when the export fails.
        export_finished(object) — The ExportArtifact, once archived.
    """

    state_changed = Signal(str)
    progress = Signal(str, str)
    error = Signal(str, str)
    export_finished = Signal(object)

    def __init__(self, document: SceneDocument, config: ExportConfig):
        super().__init__()
        self._document = document
        self._config = config

        # Shared with the export; cancel() may be called from the UI thread.
        self._cancel = CancellationToken()
        self._state = ""

    def cancel(self):
        """Request cancellation. Takes effect before the next frame."""
        self._cancel.cancel()

    def run(self):
        """
        Execute the export.

        This method runs on the BACKGROUND THREAD — never access Qt widgets
        from here. Any exception ends the export and is reported through the
        error signal with the state the export was in.
        """
        try:
            clip, camera = self._config.resolve(self._document)

            frame_renderer = SceneFrameRenderer(
                SoftwareRenderer(),
                self._document.scene,
                animated_root=self._document.selected,
            )
            export = SpritesheetExport(
                self._document.selected,
                clip,
                camera,
                self._config.cell_size,
                self._config.fps,
                frame_renderer,
                on_state=self._on_state,
                on_progress=self._on_progress,
                cancel=self._cancel,
            )
            artifact = asyncio.run(export.run())

        except Exception as e:
            self.error.emit(self._state, error_message(e))
            return

        self.export_finished.emit(artifact)

    def _on_state(self, state: str):
        self._state = state
        self.state_changed.emit(state)

    def _on_progress(self, message: str):
        self.progress.emit(self._state, message)
