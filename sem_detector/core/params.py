"""
Detection and editor parameter data structures.

Defines the user-configurable detection parameters (with their
allowed ranges) and the interactive editor's tuning knobs.
"""

from __future__ import annotations
from dataclasses import dataclass, replace

# Allowed ranges: (min, max)
MIN_RADIUS_RANGE = (1, 50)
MAX_RADIUS_RANGE = (10, 100)
CIRCLE_THRESHOLD_RANGE = (1, 100)
MIN_AREA_RANGE = (0, 500)

EDGE_THRESHOLD = 100


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


@dataclass
class DetectionParams:
    """Parameters for circle detection and the post-detection area filter."""

    # Radius search window (px)
    min_radius: int = 9
    max_radius: int = 38

    # Accumulator threshold: lower finds more (and weaker) circles
    circle_threshold: int = 27

    # Post-filter on round(pi*r^2), applied after detection (px^2)
    min_area: int = 30

    # Upper Canny threshold of the edge pre-pass; fixed
    edge_threshold: int = EDGE_THRESHOLD

    def clamped(self) -> "DetectionParams":
        """Return a copy forced into the allowed ranges."""
        return replace(
            self,
            min_radius=int(_clamp(self.min_radius, *MIN_RADIUS_RANGE)),
            max_radius=int(_clamp(self.max_radius, *MAX_RADIUS_RANGE)),
            circle_threshold=int(_clamp(self.circle_threshold, *CIRCLE_THRESHOLD_RANGE)),
            min_area=int(_clamp(self.min_area, *MIN_AREA_RANGE)),
            edge_threshold=EDGE_THRESHOLD,
        )


@dataclass
class EditorSettings:
    """Tuning for pan/zoom gestures and manual particle creation."""

    pan_sensitivity: float = 0.5
    zoom_sensitivity: float = 0.05
    min_zoom: float = 1.0
    max_zoom: float = 10.0

    # New particles
    default_radius: float = 20.0
    id_step: int = 10
