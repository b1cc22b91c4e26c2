"""
Particle store with a working copy and a committed copy.

- Edits (add/remove/move/resize/nudge) apply to the working set only
- commit() replaces the committed set wholesale; discard() drops edits
- Ids are never reused within a session
"""

from __future__ import annotations
import copy
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from .particle import Particle

logger = logging.getLogger(__name__)

ID_STEP = 10


class ParticleStore:
    """Single owner of the particle set and the current selection."""

    def __init__(self, id_step: int = ID_STEP) -> None:
        self.id_step = int(id_step)
        self._committed: List[Particle] = []
        self._working: List[Particle] = []
        self._high_water: int = 0
        self.selected_id: Optional[int] = None

    # ---- views ----
    @property
    def particles(self) -> List[Particle]:
        """Working set (live edits)."""
        return self._working

    @property
    def committed(self) -> List[Particle]:
        return self._committed

    @property
    def selected(self) -> Optional[Particle]:
        if self.selected_id is None:
            return None
        return self.find_by_id(self.selected_id)

    @property
    def is_dirty(self) -> bool:
        return self._working != self._committed

    def __len__(self) -> int:
        return len(self._working)

    def __iter__(self):
        return iter(self._working)

    # ---- whole-set operations ----
    def replace_all(self, particles: Iterable[Particle]) -> None:
        """Load a fresh set (e.g. from detection) into both copies."""
        self._working = [copy.copy(p) for p in particles]
        self._committed = copy.deepcopy(self._working)
        self._high_water = max((p.id for p in self._working), default=0)
        self.selected_id = None

    def clear(self) -> None:
        self.replace_all([])

    def begin_edit(self) -> None:
        self._working = copy.deepcopy(self._committed)

    def commit(self) -> None:
        self._committed = copy.deepcopy(self._working)
        logger.debug("committed %d particles", len(self._committed))

    def discard(self) -> None:
        self._working = copy.deepcopy(self._committed)
        if self.selected_id is not None and self.find_by_id(self.selected_id) is None:
            self.selected_id = None
        logger.debug("discarded edits, %d particles", len(self._working))

    # ---- single-particle operations ----
    def next_id(self) -> int:
        top = max((p.id for p in self._working), default=0)
        return max(top, self._high_water) + self.id_step

    def add(self, x: float, y: float, radius: float) -> Particle:
        """Append a new particle with a freshly minted id."""
        p = Particle(id=self.next_id(), x=float(x), y=float(y), radius=0.0)
        p.set_radius(radius)
        self._working.append(p)
        self._high_water = p.id
        logger.debug("added particle %d at (%.1f, %.1f) r=%.1f", p.id, p.x, p.y, p.radius)
        return p

    def add_default(self, image_size: Tuple[int, int], radius: float = 20.0) -> Particle:
        """Add a particle at the centre of an image of size (w, h)."""
        w, h = image_size
        return self.add(w / 2.0, h / 2.0, radius)

    def remove(self, particle_id: int) -> bool:
        for i, p in enumerate(self._working):
            if p.id == particle_id:
                del self._working[i]
                if self.selected_id == particle_id:
                    self.selected_id = None
                logger.debug("removed particle %d", particle_id)
                return True
        return False

    def find_by_id(self, particle_id: int) -> Optional[Particle]:
        for p in self._working:
            if p.id == particle_id:
                return p
        return None

    def update(self, particle_id: int, mutator: Callable[[Particle], None]) -> Optional[Particle]:
        """Apply `mutator` to a particle; returns it, or None if absent."""
        p = self.find_by_id(particle_id)
        if p is None:
            return None
        mutator(p)
        return p

    def move(self, particle_id: int, x: float, y: float) -> Optional[Particle]:
        return self.update(particle_id, lambda p: p.move_to(x, y))

    def resize(self, particle_id: int, radius: float) -> Optional[Particle]:
        return self.update(particle_id, lambda p: p.set_radius(radius))

    def nudge_diameter(self, particle_id: int, delta: float) -> Optional[Particle]:
        """Grow/shrink diameter by `delta` pixels (radius still clamped)."""
        return self.update(particle_id, lambda p: p.set_radius((p.diameter + delta) / 2.0))

    def nudge_position(self, particle_id: int, dx: float, dy: float) -> Optional[Particle]:
        return self.update(particle_id, lambda p: p.move_to(p.x + dx, p.y + dy))

    # ---- selection ----
    def select(self, particle_id: Optional[int]) -> Optional[Particle]:
        if particle_id is None:
            self.selected_id = None
            return None
        p = self.find_by_id(particle_id)
        self.selected_id = p.id if p is not None else None
        return p

    def deselect(self) -> None:
        self.selected_id = None
