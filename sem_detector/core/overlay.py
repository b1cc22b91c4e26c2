"""
Static overlay rendering of particles onto an image copy.

Used for saved overlays and the CLI; the interactive canvas draws
its own overlay with QPainter.
"""

from __future__ import annotations
from types import ModuleType
from typing import Iterable, Optional, Tuple

import numpy as np

from .particle import Particle

Color = Tuple[int, int, int]

GREEN: Color = (0, 255, 0)
ORANGE: Color = (0, 165, 255)


def _as_bgr(cv: ModuleType, img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return cv.cvtColor(img, cv.COLOR_GRAY2BGR)
    if img.shape[2] == 4:
        return cv.cvtColor(img, cv.COLOR_BGRA2BGR)
    return img.copy()


def draw_particles(
    cv: ModuleType,
    img: np.ndarray,
    particles: Iterable[Particle],
    color: Color = GREEN,
    label: str = "diameter",
    selected_id: Optional[int] = None,
) -> np.ndarray:
    """
    Draw outline, centre dot and a label for each particle.

    `label` is "diameter" ("<d>px") or "id". Particles centred outside
    the image are skipped. Returns a new BGR image.
    """
    out = _as_bgr(cv, img)
    h, w = out.shape[:2]
    for p in particles:
        if not (0 <= p.x < w and 0 <= p.y < h):
            continue
        c = ORANGE if p.id == selected_id else color
        center = (int(round(p.x)), int(round(p.y)))
        r = int(round(p.radius))
        cv.circle(out, center, r, c, 2)
        cv.circle(out, center, 2, c, -1)

        if label == "id":
            text, dx = f"{p.id}", 10
        else:
            text, dx = f"{p.diameter:g}px", 20
        org = (max(center[0] - dx, 0), max(center[1] - r - 5, 15))
        cv.putText(out, text, org, cv.FONT_HERSHEY_SIMPLEX, 0.5, c, 1)
    return out


def draw_particles_with_ids(cv: ModuleType, img: np.ndarray, particles: Iterable[Particle],
                            color: Color = GREEN, selected_id: Optional[int] = None) -> np.ndarray:
    return draw_particles(cv, img, particles, color=color, label="id", selected_id=selected_id)
