"""
Diameter statistics.

Computes basic PSD stats (D10/50/90, mean, std, min, max) from the
physical diameters of the current particle set.
"""

from __future__ import annotations
from typing import Dict, Iterable

import numpy as np

from .particle import Particle


def physical_diameters(particles: Iterable[Particle], ratio: float) -> np.ndarray:
    """Diameters scaled by `ratio`, recomputed on every call."""
    return np.array([p.diameter * ratio for p in particles], float)


def stats_from_diams(d: np.ndarray) -> Dict[str, float | int]:
    """Return basic PSD statistics for an array of diameters."""
    return {
        "particles": int(d.size),
        "D10": float(np.percentile(d, 10)) if d.size else 0.0,
        "D50": float(np.percentile(d, 50)) if d.size else 0.0,
        "D90": float(np.percentile(d, 90)) if d.size else 0.0,
        "mean": float(np.mean(d)) if d.size else 0.0,
        "std": float(np.std(d)) if d.size else 0.0,
        "min": float(np.min(d)) if d.size else 0.0,
        "max": float(np.max(d)) if d.size else 0.0,
    }
