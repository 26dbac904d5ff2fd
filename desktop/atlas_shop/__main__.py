"""
Application entry point for Atlas Shop.

This module is invoked when the package is run directly via:
    python -m atlas_shop

It creates the Qt application instance, instantiates the main window,
and starts the event loop.
"""

import sys
from PySide6.QtWidgets import QApplication
from atlas_shop.app import AtlasShopApp


def main():
    # sys.argv is passed so Qt can process any command-line arguments it
    # recognizes (e.g., --style, --platform).
    app = QApplication(sys.argv)

    window = AtlasShopApp()
    window.show()

    # Blocks until the window is closed; the process returns Qt's exit code.
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
