"""
Pointer hit-testing against particles (image space).

The inner core of a particle (at least EDGE_BAND inside the rim, or no
further than half the radius from the centre) is an "interior" hit (move).
Otherwise a point within EDGE_BAND of the boundary is an "edge" hit (resize).
The half-radius core keeps small particles movable.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .particle import Particle

EDGE_BAND = 10.0


class HitRegion(Enum):
    EDGE = "edge"
    INTERIOR = "interior"


@dataclass(frozen=True)
class Hit:
    particle: Particle
    region: HitRegion


def classify(ix: float, iy: float, p: Particle, edge_band: float = EDGE_BAND) -> Optional[HitRegion]:
    """Classify a point against one particle; None on miss."""
    d = p.distance_to(ix, iy)
    if d < p.radius and (d <= p.radius - edge_band or d <= p.radius / 2.0):
        return HitRegion.INTERIOR
    if abs(d - p.radius) < edge_band:
        return HitRegion.EDGE
    return None


def hit_test(
    ix: float,
    iy: float,
    particles: Iterable[Particle],
    selected_id: Optional[int] = None,
    edge_band: float = EDGE_BAND,
) -> Optional[Hit]:
    """
    Return the first particle hit by (ix, iy).

    The selected particle is tried first; after that iteration order wins.
    Overlaps are not resolved by distance.
    """
    particles = list(particles)
    if selected_id is not None:
        for p in particles:
            if p.id == selected_id:
                region = classify(ix, iy, p, edge_band)
                if region is not None:
                    return Hit(p, region)
                break
    for p in particles:
        if p.id == selected_id:
            continue
        region = classify(ix, iy, p, edge_band)
        if region is not None:
            return Hit(p, region)
    return None
