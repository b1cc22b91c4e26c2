"""
View/image coordinate transforms.

View space is the on-screen canvas; image space is the unscaled image.
  img = (view - pan) / zoom
  view = img * zoom + pan
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

# Zoom values this close to 1 count as unzoomed (accumulated wheel steps drift)
ZOOM_EPS = 1e-9


@dataclass
class ViewTransform:
    """Zoom factor and pan offset (view-space pixels)."""
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    @property
    def is_identity(self) -> bool:
        return self.zoom == 1.0 and self.pan_x == 0.0 and self.pan_y == 0.0

    @property
    def is_zoomed(self) -> bool:
        return self.zoom > 1.0 + ZOOM_EPS


def to_image_space(px: float, py: float, t: ViewTransform) -> Tuple[float, float]:
    """Map a view-space pointer position to image space."""
    return (px - t.pan_x) / t.zoom, (py - t.pan_y) / t.zoom


def to_view_space(ix: float, iy: float, t: ViewTransform) -> Tuple[float, float]:
    """Inverse of `to_image_space`."""
    return ix * t.zoom + t.pan_x, iy * t.zoom + t.pan_y


def zoom_at_cursor(
    t: ViewTransform,
    new_zoom: float,
    mx: float,
    my: float,
    min_zoom: float = 1.0,
    max_zoom: float = 10.0,
) -> ViewTransform:
    """
    Change zoom while keeping the image point under (mx, my) fixed.

    The new zoom is clamped to [min_zoom, max_zoom]; landing on 1 (within ZOOM_EPS)
    resets zoom and pan exactly. Mutates and returns `t`.
    """
    new_zoom = max(min_zoom, min(max_zoom, float(new_zoom)))
    if abs(new_zoom - 1.0) < ZOOM_EPS:
        t.reset()
        return t
    ix, iy = to_image_space(mx, my, t)
    t.zoom = new_zoom
    t.pan_x = mx - ix * new_zoom
    t.pan_y = my - iy * new_zoom
    return t


def center_on_point(t: ViewTransform, ix: float, iy: float,
                    view_w: float, view_h: float) -> ViewTransform:
    """Pan so that image point (ix, iy) sits at the viewport centre."""
    t.pan_x = view_w / 2.0 - ix * t.zoom
    t.pan_y = view_h / 2.0 - iy * t.zoom
    return t
