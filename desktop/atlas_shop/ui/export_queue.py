"""
Export queue widget for Atlas Shop.

Displays the real-time state of a running spritesheet export. Every state
after Idle gets its own row with a status indicator, the state name, and a
message showing what's currently happening (e.g. "Turntable: frame 12/60").

The queue toggles between two states:
    - Empty state: Shows a placeholder message when no export is running
    - Active state: Shows state rows with live progress updates

Public methods (called by the app via signal connections):
    start_export()          — Switch to active state, reset all rows
    set_state(state)        — An export state was entered
    set_progress(state, msg)— Update the message of the running row
    set_error(state, msg)   — Mark the running row as failed
    set_finished(message)   — Show completion banner
    reset()                 — Return to empty state

Signals:
    cancel_requested        — Emitted when the user clicks Cancel
"""

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton
from PySide6.QtCore import Qt, Signal

from atlas_shop.core.pipeline import ExportState, STATE_ORDER, STATE_DISPLAY_NAMES


class StateRow(QWidget):
    """
    A single row in the export queue representing one export state.

    A row is "running" while the export works toward its state and "done"
    once the state is entered.
    """

    ICON_PENDING = "○"   # ○ hollow circle
    ICON_RUNNING = "●"   # ● filled circle
    ICON_DONE = "✓"      # ✓ checkmark
    ICON_ERROR = "✗"     # ✗ cross mark

    def __init__(self, state_key: str):
        super().__init__()
        self.setObjectName("state_row")
        self._state_key = state_key

        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(12)

        self._icon = QLabel(self.ICON_PENDING)
        self._icon.setObjectName("state_status_pending")
        self._icon.setFixedWidth(20)
        self._icon.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._icon)

        self._name = QLabel(STATE_DISPLAY_NAMES.get(state_key, state_key))
        self._name.setObjectName("state_name")
        self._name.setFixedWidth(180)
        layout.addWidget(self._name)

        self._message = QLabel("")
        self._message.setObjectName("state_message")
        layout.addWidget(self._message, 1)

    def _set_icon(self, icon: str, object_name: str):
        self._icon.setText(icon)
        self._icon.setObjectName(object_name)
        # Force QSS re-evaluation after changing the object name.
        self._icon.setStyleSheet("")

    def set_pending(self):
        self._set_icon(self.ICON_PENDING, "state_status_pending")
        self._message.setText("")
        self._message.setStyleSheet("")

    def set_running(self):
        self._set_icon(self.ICON_RUNNING, "state_status_running")
        self._message.setText("Running...")

    def set_done(self):
        self._set_icon(self.ICON_DONE, "state_status_done")
        self._message.setText("")

    def set_error(self, message: str):
        self._set_icon(self.ICON_ERROR, "state_status_error")
        self._message.setText(message)
        self._message.setStyleSheet("color: #dc3545;")

    def set_message(self, message: str):
        self._message.setText(message)


class ExportQueue(QWidget):
    """
    Container widget that displays export progress or an empty state.

    Rows follow STATE_ORDER. Because the exporter reports states as they are
    entered, the row after the last entered state is the one being worked on.
    """

    cancel_requested = Signal()

    def __init__(self):
        super().__init__()
        self.setObjectName("queue_panel")
        self.setMaximumWidth(520)

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(8)

        self._empty_msg = QLabel("No export running. Open a model to get started.")
        self._empty_msg.setObjectName("queue_empty")
        self._empty_msg.setWordWrap(True)
        self._layout.addWidget(self._empty_msg)

        self._states_container = QWidget()
        states_layout = QVBoxLayout(self._states_container)
        states_layout.setContentsMargins(0, 8, 0, 0)
        states_layout.setSpacing(2)

        self._rows: dict[str, StateRow] = {}
        for state_key in STATE_ORDER[1:]:
            row = StateRow(state_key)
            self._rows[state_key] = row
            states_layout.addWidget(row)

        self._cancel_btn = QPushButton("Cancel")
        self._cancel_btn.setObjectName("cancel_button")
        self._cancel_btn.clicked.connect(self.cancel_requested.emit)
        states_layout.addWidget(self._cancel_btn, 0, Qt.AlignmentFlag.AlignRight)

        self._layout.addWidget(self._states_container)
        self._states_container.hide()

        self._finished_label = QLabel("")
        self._finished_label.setObjectName("export_complete")
        self._finished_label.setStyleSheet(
            "color: #28a745; font-size: 14px; font-weight: 600; padding: 8px 0;"
        )
        self._finished_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._finished_label.setWordWrap(True)
        self._finished_label.hide()
        self._layout.addWidget(self._finished_label)

        self._layout.addStretch()

        self._running: str | None = None

    def start_export(self):
        """Switch from empty state to active state and reset all rows."""
        self._empty_msg.hide()
        self._finished_label.hide()
        self._states_container.show()
        self._cancel_btn.setEnabled(True)

        for row in self._rows.values():
            row.set_pending()
        self._mark_running(STATE_ORDER[1])

    def set_state(self, state: str):
        """
        Mark state as reached.

        A state reached out of order (Restored after a failed pass) means the
        running row failed; the failure message arrives with set_error().
        """
        if state not in self._rows:
            return
        if state != self._running and self._running is not None:
            self._rows[self._running].set_error("Failed")
        self._rows[state].set_done()

        following = STATE_ORDER.index(state) + 1
        if state == self._running and following < len(STATE_ORDER):
            self._mark_running(STATE_ORDER[following])
        else:
            self._running = None

        if state == ExportState.DONE:
            self._cancel_btn.setEnabled(False)

    def set_progress(self, state: str, message: str):
        """Update the status message of the row being worked on."""
        if self._running is not None:
            self._rows[self._running].set_message(message)

    def set_error(self, state: str, message: str):
        """Show the failure on the running row, or below the rows."""
        self._cancel_btn.setEnabled(False)
        if self._running is not None:
            self._rows[self._running].set_error(message)
            self._running = None
        else:
            self._finished_label.setStyleSheet(
                "color: #dc3545; font-size: 14px; font-weight: 600; padding: 8px 0;"
            )
            self._finished_label.setText(message)
            self._finished_label.show()

    def set_finished(self, message: str):
        """Show the completion banner below the state rows."""
        self._finished_label.setStyleSheet(
            "color: #28a745; font-size: 14px; font-weight: 600; padding: 8px 0;"
        )
        self._finished_label.setText(message)
        self._finished_label.show()

    def reset(self):
        """Return the queue to its empty state."""
        self._states_container.hide()
        self._finished_label.hide()
        self._empty_msg.show()
        self._running = None
        for row in self._rows.values():
            row.set_pending()

    def _mark_running(self, state: str):
        self._running = state
        self._rows[state].set_running()
