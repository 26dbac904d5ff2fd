"""
Global QSS (Qt Style Sheets) theme for Atlas Shop.

All visual styling is centralized here rather than scattered across
individual widgets, so the UI code stays focused on layout and behavior.

Color palette:
    - Background:     #2d2d2d (charcoal gray — main canvas)
    - Surface:        #252525 (darker gray — cards, panels, dialogs)
    - Elevated:       #333333 (lighter gray — hover states)
    - Border:         #3a3a3a (subtle dividers and outlines)
    - Primary text:   #e0e0e0
    - Secondary text: #d4d4d4 (headings, state names)
    - Muted text:     #999999 (placeholders, status messages)
    - Accent:         #dc3545 (crimson — running states, highlights)
    - Deep surface:   #1e1e1e (status bar)
"""

DARK_THEME = """
/* ===== Base Styles ===== */
QMainWindow, QDialog {
    background-color: #2d2d2d;
}

QWidget {
    color: #e0e0e0;
    font-family: "Helvetica Neue", "Segoe UI", "Arial", sans-serif;
    font-size: 13px;
}

/* ===== Drop Zone ===== */
/* Dashed border signals "drop here". */
QWidget#drop_zone {
    background-color: #252525;
    border: 2px dashed #3a3a3a;
    border-radius: 16px;
}

QWidget#drop_zone:hover {
    border-color: #dc3545;
    background-color: #333333;
}

QLabel#drop_title {
    color: #d4d4d4;
    font-size: 18px;
    font-weight: 600;
}

QLabel#drop_subtitle {
    color: #999999;
    font-size: 13px;
}

QLabel#drop_icon {
    color: #dc3545;
    font-size: 48px;
}

/* ===== Export Queue ===== */
QWidget#queue_panel {
    background-color: #252525;
    border-radius: 12px;
}

QLabel#section_title {
    color: #d4d4d4;
    font-size: 16px;
    font-weight: 600;
}

QLabel#queue_empty {
    color: #999999;
    font-size: 13px;
}

QWidget#state_row {
    background-color: transparent;
}

QLabel#state_name {
    color: #d4d4d4;
    font-size: 13px;
}

QLabel#state_status_pending {
    color: #4a5568;
    font-size: 16px;
}

QLabel#state_status_running {
    color: #dc3545;
    font-size: 16px;
}

QLabel#state_status_done {
    color: #28a745;
    font-size: 16px;
}

QLabel#state_status_error {
    color: #dc3545;
    font-size: 16px;
    font-weight: 600;
}

QLabel#state_message {
    color: #999999;
    font-size: 12px;
}

/* ===== Status Bar ===== */
QStatusBar {
    background-color: #1e1e1e;
    color: #dc3545;
    font-size: 12px;
    padding: 4px 12px;
}

/* ===== Buttons ===== */
/* One outlined style for every action button. */
QPushButton#export_button, QPushButton#cancel_button, QDialogButtonBox QPushButton {
    background-color: transparent;
    color: #d4d4d4;
    border: 1px solid #555555;
    border-radius: 8px;
    font-size: 13px;
    padding: 8px 20px;
}

QPushButton#export_button:hover, QPushButton#cancel_button:hover,
QDialogButtonBox QPushButton:hover {
    background-color: #3a3a3a;
    border-color: #dc3545;
    color: #ffffff;
}

QPushButton#export_button:pressed, QPushButton#cancel_button:pressed,
QDialogButtonBox QPushButton:pressed {
    background-color: #a71d2a;
}

QPushButton#export_button:disabled, QPushButton#cancel_button:disabled {
    color: #555555;
    border-color: #3a3a3a;
}

/* Model summary below the drop zone. */
QLabel#model_info {
    color: #d4d4d4;
    font-size: 14px;
    padding: 12px 0;
}

/* ===== Export Options Dialog ===== */
QComboBox, QSpinBox {
    background-color: #252525;
    color: #e0e0e0;
    border: 1px solid #3a3a3a;
    border-radius: 6px;
    padding: 6px 10px;
    min-width: 100px;
}

QComboBox:hover, QSpinBox:hover {
    border-color: #dc3545;
}

QComboBox::drop-down {
    border: none;
    width: 24px;
}

QComboBox QAbstractItemView {
    background-color: #252525;
    color: #e0e0e0;
    selection-background-color: #dc3545;
    border: 1px solid #3a3a3a;
}
"""
