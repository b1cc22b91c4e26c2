from __future__ import annotations
import numpy as np
from PySide6.QtCore import QObject, Signal
from ..core import DetectionAdapter, DetectionParams, VisionLoader


class DetectionWorker(QObject):
    """Runs one detection off the GUI thread; results are applied by the receiver."""
    finished = Signal(object)
    failed = Signal(object)

    def __init__(self, img: np.ndarray, params: DetectionParams, vision: VisionLoader) -> None:
        super().__init__()
        self.img = img
        self.P = params
        self.vision = vision

    def run(self) -> None:
        try:
            adapter = DetectionAdapter(self.vision.capability())
            particles = adapter.detect(self.img, self.P)
            self.finished.emit(particles)
        except Exception as e:
            self.failed.emit(str(e))
