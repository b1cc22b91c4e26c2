"""
Particle record.

Radius is the only stored size; diameter and area are derived on access
so they can never drift out of sync with it.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

MIN_RADIUS = 5.0


@dataclass
class Particle:
    """A detected or user-created circular region in image space."""

    id: int
    x: float
    y: float
    radius: float

    @property
    def diameter(self) -> float:
        return 2.0 * self.radius

    @property
    def area(self) -> int:
        return int(round(math.pi * self.radius * self.radius))

    def set_radius(self, radius: float) -> None:
        """Set radius, clamped to MIN_RADIUS."""
        self.radius = max(MIN_RADIUS, float(radius))

    def move_to(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(x - self.x, y - self.y)
