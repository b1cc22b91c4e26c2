"""
Application entry point for the SEM particle detector GUI.

Initializes logging and the Qt application, then opens the main window.
The vision library starts loading in the background immediately.
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from PySide6.QtWidgets import QApplication
from sem_detector.core import VisionLoader, is_supported_file
from sem_detector.gui.main_window import MainWindow
from sem_detector.logging_config import setup_logging


def main() -> None:
    """Start the detector GUI."""
    ap = argparse.ArgumentParser(description="SEM particle detector")
    ap.add_argument("image", nargs="?", help="image to open on start")
    ap.add_argument("--vision-timeout", type=float, default=10.0,
                    help="seconds before detection is force-enabled")
    ap.add_argument("--log-file", default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    args, qt_args = ap.parse_known_args()

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    app = QApplication([sys.argv[0], *qt_args])
    window = MainWindow(vision=VisionLoader(timeout=args.vision_timeout))
    window.show()
    if args.image and is_supported_file(args.image):
        window._open_path(Path(args.image))
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
