"""
Logging setup shared by the CLI and the GUI.

One console handler, plus an optional file handler; calling it again
only adjusts the level.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

_LOGGING_INITIALIZED = False

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[Union[str, Path]] = None) -> None:
    """Configure the `sem_detector` logger hierarchy."""
    global _LOGGING_INITIALIZED
    root = logging.getLogger("sem_detector")
    root.setLevel(level)
    if _LOGGING_INITIALIZED:
        return

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    root.propagate = False
    _LOGGING_INITIALIZED = True
