"""PySide6 front end: main window, interactive canvas, detection worker."""
