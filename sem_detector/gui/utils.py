"""
Utility helpers for the detector GUI.

Includes:
- NumericItem: sortable numeric table item
- np_to_qimage / np_to_qpix: NumPy (gray/BGR) -> Qt image
"""

from __future__ import annotations
import numpy as np
from PySide6.QtWidgets import QTableWidgetItem
from PySide6.QtGui import QImage, QPixmap


class NumericItem(QTableWidgetItem):
    """Numeric table item that sorts by value, not by text."""
    def __init__(self, value, fmt: str = "{:.3f}") -> None:
        if isinstance(value, (int, np.integer)):
            super().__init__(str(int(value)))
            self._num = float(value)
        elif isinstance(value, (float, np.floating)):
            super().__init__(fmt.format(float(value)))
            self._num = float(value)
        else:
            super().__init__(str(value))
            self._num = None

    def __lt__(self, other: QTableWidgetItem) -> bool:
        if isinstance(other, QTableWidgetItem) and self.column() == other.column():
            a = self._num
            b = getattr(other, "_num", None)
            if a is not None and b is not None:
                return a < b
        return super().__lt__(other)


def np_to_qimage(img: np.ndarray) -> QImage:
    """Convert a uint8 gray or BGR array to a detached QImage."""
    img = np.ascontiguousarray(img)
    if img.ndim == 2:
        h, w = img.shape
        qimg = QImage(img.data, w, h, w, QImage.Format_Grayscale8)
    else:
        h, w, _ = img.shape
        rgb = np.ascontiguousarray(img[:, :, 2::-1])
        qimg = QImage(rgb.data, w, h, 3 * w, QImage.Format_RGB888)
    return qimg.copy()


def np_to_qpix(img: np.ndarray) -> QPixmap:
    return QPixmap.fromImage(np_to_qimage(img))
