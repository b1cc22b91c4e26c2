from __future__ import annotations
from typing import Dict
import numpy as np
from PySide6.QtWidgets import QWidget, QVBoxLayout
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure


class HistogramWidget(QWidget):
    """
    Physical-diameter histogram with D10/D50/D90 markers.
    Shows "No data" when the set is empty or uncalibrated.
    """

    def __init__(self, parent=None, *, dpi: int = 100):
        super().__init__(parent)
        self.fig = Figure(figsize=(4, 3), dpi=dpi)
        self.canvas = FigureCanvas(self.fig)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.canvas)

    @staticmethod
    def _bins(x: np.ndarray, max_bins: int = 40) -> int:
        n = x.size
        if n < 2:
            return 1
        return max(1, min(max_bins, int(np.sqrt(n))))

    def plot(self, d_vals: np.ndarray, st: Dict[str, float], unit: str) -> None:
        self.fig.clear()
        ax = self.fig.add_subplot(111)

        d_vals = np.asarray(d_vals, float)
        if d_vals.size and np.any(d_vals > 0):
            ax.hist(d_vals, bins=self._bins(d_vals))
            for name in ("D10", "D50", "D90"):
                v = float(st.get(name, 0.0))
                if v > 0:
                    ax.axvline(v, linestyle="--", linewidth=1.2, label=f"{name}={v:.2f} {unit}")
            ax.set_xlabel(f"Particle diameter ({unit})")
            ax.set_ylabel("Count")
            ax.grid(True, alpha=0.25)
            ax.legend(fontsize="small")
        else:
            ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)

        self.fig.tight_layout()
        self.canvas.draw()
