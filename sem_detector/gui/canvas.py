"""
Interactive particle canvas.

Features:
- Draws the image through the controller's zoom/pan transform
- Particle outlines, centre dots, id labels, selection handle
- Forwards mouse/wheel/key input to InteractionController
"""

from __future__ import annotations
from typing import Optional

import numpy as np
from PySide6.QtCore import Qt, QPointF, QRectF, Signal
from PySide6.QtGui import QColor, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QSizePolicy, QWidget

from ..core import InteractionController, InteractionMode, InteractionState
from .utils import np_to_qpix

COLOR_PARTICLE = QColor(0, 255, 0)
COLOR_SELECTED = QColor(255, 165, 0)


class ParticleCanvas(QWidget):
    """Canvas sized to the image; zoom/pan happen inside it."""
    sig_changed = Signal()  # any store/view change (for tables & stats)

    def __init__(self, controller: InteractionController, parent=None) -> None:
        super().__init__(parent)
        self.ctl = controller
        self._pix: Optional[QPixmap] = None
        self.show_labels = True

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        self.ctl.add_redraw_listener(self._on_changed)

    def _on_changed(self) -> None:
        self.update()
        self.sig_changed.emit()

    def set_image(self, img: np.ndarray) -> None:
        self._pix = np_to_qpix(img)
        w, h = self._pix.width(), self._pix.height()
        self.setFixedSize(w, h)
        self.ctl.set_image_size(w, h)
        self.ctl.set_view_size(w, h)
        self.ctl.reset_view()

    def has_image(self) -> bool:
        return self._pix is not None

    # --- painting ---
    def paintEvent(self, e) -> None:
        p = QPainter(self)
        p.fillRect(self.rect(), QColor(40, 40, 40))
        if self._pix is None:
            p.end()
            return
        t = self.ctl.transform
        p.setRenderHint(QPainter.SmoothPixmapTransform, t.zoom < 3.0)
        p.translate(t.pan_x, t.pan_y)
        p.scale(t.zoom, t.zoom)
        p.drawPixmap(0, 0, self._pix)

        p.setRenderHint(QPainter.Antialiasing, True)
        sel_id = self.ctl.store.selected_id
        for part in self.ctl.store.particles:
            color = COLOR_SELECTED if part.id == sel_id else COLOR_PARTICLE
            pen = QPen(color, 2.0 / t.zoom)
            p.setPen(pen)
            p.setBrush(Qt.NoBrush)
            c = QPointF(part.x, part.y)
            p.drawEllipse(c, part.radius, part.radius)
            p.setBrush(color)
            p.drawEllipse(c, 2.0 / t.zoom, 2.0 / t.zoom)
            if self.show_labels:
                f = p.font()
                f.setPointSizeF(max(4.0, 9.0 / t.zoom))
                p.setFont(f)
                p.drawText(QPointF(part.x - 10, part.y - part.radius - 5), str(part.id))
            if part.id == sel_id and self.ctl.editing:
                # resize handle on the right-hand edge
                hs = 4.0 / t.zoom
                p.drawRect(QRectF(part.x + part.radius - hs, part.y - hs, 2 * hs, 2 * hs))
        p.end()

    # --- Qt events ---
    def mousePressEvent(self, e) -> None:
        if e.button() == Qt.LeftButton and self._pix is not None:
            pos = e.position()
            self.ctl.pointer_down(pos.x(), pos.y())
            self._update_cursor()
        super().mousePressEvent(e)

    def mouseMoveEvent(self, e) -> None:
        if self._pix is not None:
            pos = e.position()
            self.ctl.pointer_move(pos.x(), pos.y())
        super().mouseMoveEvent(e)

    def mouseReleaseEvent(self, e) -> None:
        if e.button() == Qt.LeftButton:
            self.ctl.pointer_up()
            self._update_cursor()
        super().mouseReleaseEvent(e)

    def leaveEvent(self, e) -> None:
        self.ctl.pointer_leave()
        self._update_cursor()
        super().leaveEvent(e)

    def wheelEvent(self, e) -> None:
        if self._pix is None:
            return
        steps = e.angleDelta().y() / 120.0
        pos = e.position()
        self.ctl.wheel(pos.x(), pos.y(), steps)
        e.accept()

    def keyPressEvent(self, e) -> None:
        k = e.key()
        if k in (Qt.Key_Delete, Qt.Key_Backspace):
            self.ctl.delete_selected()
        elif k == Qt.Key_Escape:
            self.ctl.deselect()
        elif k in (Qt.Key_Plus, Qt.Key_Equal):
            self.ctl.nudge_selected_diameter(+1)
        elif k == Qt.Key_Minus:
            self.ctl.nudge_selected_diameter(-1)
        elif k == Qt.Key_Left:
            self.ctl.nudge_selected_position(-1, 0)
        elif k == Qt.Key_Right:
            self.ctl.nudge_selected_position(+1, 0)
        elif k == Qt.Key_Up:
            self.ctl.nudge_selected_position(0, -1)
        elif k == Qt.Key_Down:
            self.ctl.nudge_selected_position(0, +1)
        else:
            super().keyPressEvent(e)
            return
        e.accept()

    def _update_cursor(self) -> None:
        st = self.ctl.state
        if st is InteractionState.PANNING:
            self.setCursor(Qt.ClosedHandCursor)
        elif st is InteractionState.RESIZING:
            self.setCursor(Qt.SizeFDiagCursor)
        elif st is InteractionState.MOVING:
            self.setCursor(Qt.SizeAllCursor)
        elif self.ctl.mode is InteractionMode.PAN:
            self.setCursor(Qt.OpenHandCursor)
        else:
            self.unsetCursor()
