"""
Circle detection adapter.

The heavy lifting (grayscale, Gaussian blur, Hough gradient transform) is
done by the vision capability handed in at construction. This module only
orchestrates the calls, then:
- rounds centres/radii to whole pixels
- drops candidates with area below `min_area`
- numbers survivors 1..N in the order the transform returned them
"""

from __future__ import annotations
import logging
from types import ModuleType
from typing import List, Tuple

import numpy as np

from .params import DetectionParams
from .particle import Particle

logger = logging.getLogger(__name__)

Circle = Tuple[float, float, float]


def to_gray(cv: ModuleType, img: np.ndarray) -> np.ndarray:
    """Convert BGR/BGRA to single-channel gray; gray input is copied."""
    if img.ndim == 3 and img.shape[2] == 4:
        return cv.cvtColor(img, cv.COLOR_BGRA2GRAY)
    if img.ndim == 3 and img.shape[2] == 3:
        return cv.cvtColor(img, cv.COLOR_BGR2GRAY)
    if img.ndim == 3:
        return np.ascontiguousarray(img[:, :, 0])
    return img.copy()


def find_circles(cv: ModuleType, img: np.ndarray, params: DetectionParams) -> List[Circle]:
    """Raw (x, y, r) candidates from the Hough gradient transform."""
    gray = to_gray(cv, img)
    if gray.dtype != np.uint8:
        gray = cv.normalize(gray, None, 0, 255, cv.NORM_MINMAX).astype(np.uint8)
    blurred = cv.GaussianBlur(gray, (5, 5), 0)
    circles = cv.HoughCircles(
        blurred, cv.HOUGH_GRADIENT,
        1,                              # dp
        params.min_radius * 0.5,        # minDist
        param1=params.edge_threshold,
        param2=params.circle_threshold,
        minRadius=int(params.min_radius),
        maxRadius=int(params.max_radius),
    )
    if circles is None:
        return []
    return [(float(x), float(y), float(r)) for x, y, r in np.asarray(circles).reshape(-1, 3)]


class DetectionAdapter:
    """Turns raw circle candidates into numbered, area-filtered particles."""

    def __init__(self, vision: ModuleType) -> None:
        self.vision = vision

    def candidates(self, img: np.ndarray, params: DetectionParams) -> List[Circle]:
        return find_circles(self.vision, img, params)

    def detect(self, img: np.ndarray, params: DetectionParams) -> List[Particle]:
        params = params.clamped()
        raw = self.candidates(img, params)
        particles: List[Particle] = []
        for x, y, r in raw:
            p = Particle(id=0, x=float(round(x)), y=float(round(y)), radius=float(round(r)))
            if p.area < params.min_area:
                continue
            particles.append(p)
        for i, p in enumerate(particles):
            p.id = i + 1
        logger.info("detected %d circles, %d kept after min_area=%d",
                    len(raw), len(particles), params.min_area)
        return particles
