"""
Development runner with automatic restart on file changes.

This script watches the atlas_shop/ source directory for any file
modifications and automatically restarts the application when changes
are detected — save a file, see the result immediately.

Uses the `watchfiles` library (a fast Rust-based file watcher) instead
of polling-based alternatives.

Usage:
    cd desktop
    python scripts/dev.py

To stop: Ctrl+C in the terminal.
"""

import sys
import subprocess
from pathlib import Path
from watchfiles import run_process


def run_app():
    """Launch Atlas Shop as a subprocess.

    A fresh Python process per restart sidesteps Qt's application
    singleton: QApplication can only be instantiated once per process.
    """
    subprocess.run(
        [sys.executable, "-m", "atlas_shop"],
        cwd=Path(__file__).resolve().parent.parent,
    )


if __name__ == "__main__":
    src_dir = Path(__file__).resolve().parent.parent / "atlas_shop"
    print(f"Watching {src_dir} for changes...")
    print("The app will auto-restart when you save a file.\n")

    run_process(
        src_dir,
        target=run_app,
        callback=lambda changes: print(f"\nFiles changed: {[str(c[1]) for c in changes]}"),
    )
