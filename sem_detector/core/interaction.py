"""
Pointer-driven editing of the particle store.

States: IDLE, PANNING, MOVING, RESIZING.
Modes:  VIEW (detect-only), EDIT, PAN.

All handlers take view-space coordinates, convert them to image space
and mutate the store synchronously; registered redraw listeners are
called after every change so the overlay always sees a consistent set.
Out-of-range input is clamped, never rejected.
"""

from __future__ import annotations
import logging
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from .hit_test import HitRegion, hit_test
from .params import EditorSettings
from .particle import Particle
from .store import ParticleStore
from .transform import ViewTransform, center_on_point, to_image_space, zoom_at_cursor

logger = logging.getLogger(__name__)

RedrawListener = Callable[[], None]


class InteractionState(Enum):
    IDLE = auto()
    PANNING = auto()
    MOVING = auto()
    RESIZING = auto()

    def __str__(self) -> str:
        return self.name


class InteractionMode(Enum):
    VIEW = auto()
    EDIT = auto()
    PAN = auto()


class InteractionController:
    """Maps pointer/wheel events plus the current mode onto store and view changes."""

    def __init__(
        self,
        store: Optional[ParticleStore] = None,
        settings: Optional[EditorSettings] = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.store = store or ParticleStore(id_step=self.settings.id_step)
        self.transform = ViewTransform()
        self.state = InteractionState.IDLE
        self.mode = InteractionMode.VIEW
        self.editing = False
        self.image_size: Tuple[int, int] = (0, 0)
        self.view_size: Tuple[int, int] = (0, 0)
        self._last: Tuple[float, float] = (0.0, 0.0)
        self._listeners: List[RedrawListener] = []

    # ---- observers ----
    def add_redraw_listener(self, cb: RedrawListener) -> None:
        self._listeners.append(cb)

    def _changed(self) -> None:
        for cb in self._listeners:
            cb()

    # ---- session setup ----
    def set_image_size(self, w: int, h: int) -> None:
        self.image_size = (int(w), int(h))

    def set_view_size(self, w: int, h: int) -> None:
        self.view_size = (int(w), int(h))

    def load_particles(self, particles: List[Particle]) -> None:
        """Replace the set with fresh detection output; pending edits are dropped."""
        if self.editing:
            self.store.discard()
            self.editing = False
        self.mode = InteractionMode.VIEW
        self.state = InteractionState.IDLE
        self.store.replace_all(particles)
        self._changed()

    def reset_view(self) -> None:
        self.transform.reset()
        self._changed()

    # ---- modes ----
    def set_mode(self, mode: InteractionMode) -> None:
        if mode is InteractionMode.EDIT:
            self.set_edit_mode(True)
            return
        if mode is InteractionMode.VIEW and self.editing:
            self.set_edit_mode(False)
            return
        self.mode = mode
        self.state = InteractionState.IDLE

    def set_edit_mode(self, on: bool, commit: bool = True) -> None:
        """Enter/leave editing; leaving commits by default, else discards."""
        if on:
            if not self.editing:
                self.store.begin_edit()
                self.editing = True
            self.mode = InteractionMode.EDIT
        elif not on and self.editing:
            if commit:
                self.store.commit()
            else:
                self.store.discard()
            self.editing = False
            self.mode = InteractionMode.VIEW
            self.store.deselect()
        self.state = InteractionState.IDLE
        self._changed()

    def _ensure_editing(self) -> None:
        if not self.editing:
            self.set_edit_mode(True)

    # ---- pointer events ----
    def pointer_down(self, vx: float, vy: float) -> InteractionState:
        self._last = (vx, vy)
        if self.mode is InteractionMode.PAN:
            self.state = InteractionState.PANNING
            return self.state

        if self.mode is InteractionMode.EDIT:
            ix, iy = to_image_space(vx, vy, self.transform)
            hit = hit_test(ix, iy, self.store.particles, self.store.selected_id)
            if hit is not None:
                self.store.select(hit.particle.id)
                self.state = (InteractionState.RESIZING if hit.region is HitRegion.EDGE
                              else InteractionState.MOVING)
                self._changed()
                return self.state
        elif self.transform.is_zoomed:
            self.state = InteractionState.PANNING
            return self.state

        self.state = InteractionState.IDLE
        if self.store.selected_id is not None:
            self.store.deselect()
            self._changed()
        return self.state

    def pointer_move(self, vx: float, vy: float) -> InteractionState:
        lx, ly = self._last
        self._last = (vx, vy)

        if self.state is InteractionState.PANNING:
            k = self.settings.pan_sensitivity
            self.transform.pan_x += (vx - lx) * k
            self.transform.pan_y += (vy - ly) * k
            self._changed()
        elif self.state in (InteractionState.MOVING, InteractionState.RESIZING):
            sel = self.store.selected
            if sel is None:
                self.state = InteractionState.IDLE
                return self.state
            ix, iy = to_image_space(vx, vy, self.transform)
            if self.state is InteractionState.MOVING:
                self.store.move(sel.id, ix, iy)
            else:
                self.store.resize(sel.id, sel.distance_to(ix, iy))
            self._changed()
        return self.state

    def pointer_up(self) -> InteractionState:
        self.state = InteractionState.IDLE
        return self.state

    def pointer_leave(self) -> InteractionState:
        """Leaving the canvas ends a pan; a move/resize drag stays armed."""
        if self.state is InteractionState.PANNING:
            self.state = InteractionState.IDLE
        return self.state

    def wheel(self, vx: float, vy: float, steps: float) -> float:
        """Zoom by `steps` * zoom_sensitivity around the cursor; >0 zooms in."""
        if self.state is InteractionState.RESIZING or steps == 0:
            return self.transform.zoom
        s = self.settings
        new_zoom = self.transform.zoom + steps * s.zoom_sensitivity
        zoom_at_cursor(self.transform, new_zoom, vx, vy, s.min_zoom, s.max_zoom)
        self._changed()
        return self.transform.zoom

    def set_zoom(self, zoom: float, anchor: Optional[Tuple[float, float]] = None) -> float:
        """Absolute zoom (slider); anchored at the viewport centre by default."""
        if anchor is None:
            anchor = (self.view_size[0] / 2.0, self.view_size[1] / 2.0)
        s = self.settings
        zoom_at_cursor(self.transform, zoom, anchor[0], anchor[1], s.min_zoom, s.max_zoom)
        self._changed()
        return self.transform.zoom

    # ---- particle commands ----
    def jump_to_particle(self, particle_id: int) -> Optional[Particle]:
        """
        Select a particle by id; when zoomed in, also pan so it sits at the
        viewport centre. At zoom 1 the view never leaves the origin.
        """
        p = self.store.select(particle_id)
        if p is None:
            logger.info("particle %s not found", particle_id)
            return None
        if self.transform.is_zoomed:
            w, h = self.view_size if self.view_size != (0, 0) else self.image_size
            center_on_point(self.transform, p.x, p.y, w, h)
        self._changed()
        return p

    def add_particle(self) -> Particle:
        """Add a default-sized particle at the image centre and select it."""
        self._ensure_editing()
        p = self.store.add_default(self.image_size, self.settings.default_radius)
        self.store.select(p.id)
        self._changed()
        return p

    def delete_selected(self) -> bool:
        sel = self.store.selected_id
        if sel is None:
            return False
        self._ensure_editing()
        removed = self.store.remove(sel)
        self.state = InteractionState.IDLE
        self._changed()
        return removed

    def deselect(self) -> None:
        self.store.deselect()
        self._changed()

    def nudge_selected_diameter(self, delta: float) -> Optional[Particle]:
        sel = self.store.selected_id
        if sel is None:
            return None
        self._ensure_editing()
        p = self.store.nudge_diameter(sel, delta)
        self._changed()
        return p

    def nudge_selected_position(self, dx: float, dy: float) -> Optional[Particle]:
        sel = self.store.selected_id
        if sel is None:
            return None
        self._ensure_editing()
        p = self.store.nudge_position(sel, dx, dy)
        self._changed()
        return p
