"""
Main window of the SEM particle detector.

Left: detection / scale / view controls. Centre: interactive canvas.
Right: particle table, PSD stats and histogram.
"""

from __future__ import annotations
import logging
import time
from pathlib import Path
from typing import Optional

import numpy as np
from PySide6.QtCore import Qt, QThread, QTimer
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QAbstractItemView, QApplication, QComboBox, QDoubleSpinBox, QFileDialog, QFormLayout,
    QGroupBox, QHBoxLayout, QHeaderView, QLabel, QLineEdit, QMessageBox, QPushButton,
    QScrollArea, QSlider, QSpinBox, QSplitter, QTableWidget, QTableWidgetItem, QVBoxLayout,
    QWidget,
)

from ..core import (
    DetectionParams, EditorSettings, ImageDecodeError, InteractionController, InteractionMode,
    ScaleCalibration, VisionLoader, VisionStatus, VisionUnavailableError, draw_particles,
    imread_image, physical_diameters, scale_from_metadata, stats_from_diams, write_csv,
)
from ..core.params import (
    CIRCLE_THRESHOLD_RANGE, MAX_RADIUS_RANGE, MIN_AREA_RANGE, MIN_RADIUS_RANGE,
)
from .canvas import ParticleCanvas
from .mpl_widget import HistogramWidget
from .utils import NumericItem
from .worker import DetectionWorker

logger = logging.getLogger(__name__)

ZOOM_SLIDER_STEPS = 10  # slider ticks per 1.0 zoom

VISION_MESSAGES = {
    VisionStatus.PENDING: "Loading OpenCV…",
    VisionStatus.INITIALIZING: "Initializing OpenCV…",
    VisionStatus.READY: "OpenCV ready.",
    VisionStatus.FAILED: "Failed to load OpenCV.",
    VisionStatus.FORCED: "Continuing without confirmed OpenCV; detection may fail.",
}


class MainWindow(QWidget):
    SUPPORTED_FILTER = "Images (*.tif *.tiff *.png *.jpg *.jpeg *.bmp)"

    def __init__(self, vision: Optional[VisionLoader] = None, settings: Optional[EditorSettings] = None):
        super().__init__()
        self.setWindowTitle("SEM Particle Detector")
        self.resize(1500, 900)

        # State
        self.image_path: Path | None = None
        self.img: np.ndarray | None = None
        self.settings = settings or EditorSettings()
        self.ctl = InteractionController(settings=self.settings)
        self.vision = vision or VisionLoader()
        self._vision_started = time.monotonic()
        self._thread: QThread | None = None
        self._worker: DetectionWorker | None = None

        self.build_ui()
        self.add_actions()

        self.canvas.sig_changed.connect(self._schedule_results_refresh)
        self._refresh_timer = QTimer(self)
        self._refresh_timer.setSingleShot(True)
        self._refresh_timer.setInterval(150)
        self._refresh_timer.timeout.connect(self.refresh_results)

        self.vision.start()
        self._vision_timer = QTimer(self)
        self._vision_timer.setInterval(250)
        self._vision_timer.timeout.connect(self.poll_vision)
        self._vision_timer.start()
        self.poll_vision()

    # ---------------- UI ----------------
    def build_ui(self):
        # --- top bar ---
        topbar = QHBoxLayout()
        self.btn_open = QPushButton("Open image…")
        self.btn_run = QPushButton("Detect particles")
        self.btn_edit = QPushButton("Edit mode"); self.btn_edit.setCheckable(True)
        self.btn_pan = QPushButton("Pan mode"); self.btn_pan.setCheckable(True)
        self.btn_add = QPushButton("Add")
        self.btn_delete = QPushButton("Delete")
        self.btn_deselect = QPushButton("Deselect")
        self.btn_discard = QPushButton("Discard edits")
        self.btn_export_csv = QPushButton("Export CSV")
        self.btn_save_overlay = QPushButton("Save overlay")
        self.ed_find = QLineEdit(); self.ed_find.setPlaceholderText("Particle ID"); self.ed_find.setMaximumWidth(100)
        self.btn_find = QPushButton("Go")

        for w in [self.btn_open, self.btn_run, self.btn_edit, self.btn_pan, self.btn_add, self.btn_delete,
                  self.btn_deselect, self.btn_discard, self.btn_export_csv, self.btn_save_overlay]:
            topbar.addWidget(w)
        topbar.addStretch(1)
        topbar.addWidget(QLabel("Find:")); topbar.addWidget(self.ed_find); topbar.addWidget(self.btn_find)

        self.btn_open.clicked.connect(self.open_image)
        self.btn_run.clicked.connect(self.run_detection)
        self.btn_edit.toggled.connect(self.on_toggle_edit)
        self.btn_pan.toggled.connect(self.on_toggle_pan)
        self.btn_add.clicked.connect(self.ctl.add_particle)
        self.btn_delete.clicked.connect(self.ctl.delete_selected)
        self.btn_deselect.clicked.connect(self.ctl.deselect)
        self.btn_discard.clicked.connect(self.on_discard_edits)
        self.btn_export_csv.clicked.connect(self.export_csv)
        self.btn_save_overlay.clicked.connect(self.save_overlay)
        self.btn_find.clicked.connect(self.find_particle)
        self.ed_find.returnPressed.connect(self.find_particle)

        # --- vision status banner ---
        self.banner = QWidget()
        bl = QHBoxLayout(self.banner); bl.setContentsMargins(6, 4, 6, 4)
        self.banner.setStyleSheet("background:#fff3cd; color:#856404;")
        self.lbl_vision = QLabel("OpenCV Status: loading")
        self.btn_force = QPushButton("Continue anyway")
        self.btn_force.clicked.connect(self.on_force_vision)
        bl.addWidget(self.lbl_vision); bl.addStretch(1); bl.addWidget(self.btn_force)

        # --- left panel: parameters ---
        P = DetectionParams()
        self.sb_min_r = self._spin(*MIN_RADIUS_RANGE, P.min_radius)
        self.sb_max_r = self._spin(*MAX_RADIUS_RANGE, P.max_radius)
        self.sb_thr = self._spin(*CIRCLE_THRESHOLD_RANGE, P.circle_threshold)
        self.sb_min_area = self._spin(*MIN_AREA_RANGE, P.min_area)

        gb_det = QGroupBox("Detection")
        fl = QFormLayout(gb_det)
        fl.addRow("Min radius (px)", self.sb_min_r)
        fl.addRow("Max radius (px)", self.sb_max_r)
        fl.addRow("Threshold", self.sb_thr)
        fl.addRow("Min area (px²)", self.sb_min_area)

        cal = ScaleCalibration()
        self.sb_known_px = QDoubleSpinBox(); self.sb_known_px.setRange(0.0, 1e6); self.sb_known_px.setDecimals(2)
        self.sb_known_px.setValue(cal.known_pixels)
        self.sb_known_phys = QDoubleSpinBox(); self.sb_known_phys.setRange(0.0, 1e6); self.sb_known_phys.setDecimals(4)
        self.sb_known_phys.setValue(cal.known_physical)
        self.cb_unit = QComboBox(); self.cb_unit.addItems(["nm", "µm", "mm"]); self.cb_unit.setCurrentText(cal.unit)
        self._unit = cal.unit
        self.btn_meta = QPushButton("Read scale from metadata")
        self.lbl_ratio = QLabel()

        gb_scale = QGroupBox("Scale calibration")
        fs = QFormLayout(gb_scale)
        fs.addRow("Known span (px)", self.sb_known_px)
        fs.addRow("Known span (unit)", self.sb_known_phys)
        fs.addRow("Unit", self.cb_unit)
        fs.addRow(self.btn_meta)
        fs.addRow(self.lbl_ratio)
        for w in (self.sb_known_px, self.sb_known_phys):
            w.valueChanged.connect(self.on_scale_changed)
        self.cb_unit.currentTextChanged.connect(self.on_unit_changed)
        self.btn_meta.clicked.connect(self.read_scale_meta)

        s = self.settings
        self.sl_zoom = QSlider(Qt.Horizontal)
        self.sl_zoom.setRange(int(s.min_zoom * ZOOM_SLIDER_STEPS), int(s.max_zoom * ZOOM_SLIDER_STEPS))
        self.sl_zoom.valueChanged.connect(self.on_zoom_slider)
        self.lbl_zoom = QLabel("1.0×")
        self.sl_pan_sens = QSlider(Qt.Horizontal); self.sl_pan_sens.setRange(1, 20)
        self.sl_pan_sens.setValue(int(round(s.pan_sensitivity * 10)))
        self.sl_pan_sens.valueChanged.connect(lambda v: setattr(self.settings, "pan_sensitivity", v / 10.0))
        self.sl_zoom_sens = QSlider(Qt.Horizontal); self.sl_zoom_sens.setRange(1, 50)
        self.sl_zoom_sens.setValue(int(round(s.zoom_sensitivity * 100)))
        self.sl_zoom_sens.valueChanged.connect(lambda v: setattr(self.settings, "zoom_sensitivity", v / 100.0))
        self.btn_reset_view = QPushButton("Reset view")
        self.btn_reset_view.clicked.connect(self.ctl.reset_view)

        gb_view = QGroupBox("View")
        fv = QFormLayout(gb_view)
        zrow = QHBoxLayout(); zrow.addWidget(self.sl_zoom); zrow.addWidget(self.lbl_zoom)
        fv.addRow("Zoom", zrow)
        fv.addRow("Pan sensitivity", self.sl_pan_sens)
        fv.addRow("Zoom sensitivity", self.sl_zoom_sens)
        fv.addRow(self.btn_reset_view)

        left = QWidget(); ll = QVBoxLayout(left)
        ll.addWidget(gb_det); ll.addWidget(gb_scale); ll.addWidget(gb_view); ll.addStretch(1)
        left.setMaximumWidth(320)

        # --- centre: canvas ---
        self.canvas = ParticleCanvas(self.ctl)
        self.scroll = QScrollArea(); self.scroll.setWidget(self.canvas)
        self.scroll.setAlignment(Qt.AlignCenter)

        # --- right: results ---
        self.lbl_count = QLabel("Particles: 0")
        self.table = QTableWidget(0, 5)
        self.table.setSortingEnabled(True)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        self.table.cellClicked.connect(self.on_table_clicked)
        self.lbl_stats = QLabel(); self.lbl_stats.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self.hist = HistogramWidget()

        right = QWidget(); rl = QVBoxLayout(right)
        rl.addWidget(self.lbl_count); rl.addWidget(self.table, 3); rl.addWidget(self.lbl_stats); rl.addWidget(self.hist, 2)

        split = QSplitter(Qt.Horizontal)
        split.addWidget(left); split.addWidget(self.scroll); split.addWidget(right)
        split.setStretchFactor(1, 3); split.setStretchFactor(2, 2)

        root = QVBoxLayout(self)
        root.addLayout(topbar)
        root.addWidget(self.banner)
        root.addWidget(split, 1)

        self._update_ratio_label()
        self._update_table_headers()
        self.update_controls()

    @staticmethod
    def _spin(lo: int, hi: int, val: int) -> QSpinBox:
        s = QSpinBox(); s.setRange(lo, hi); s.setValue(val)
        return s

    def add_actions(self):
        for seq, slot in [
            (QKeySequence.Open, self.open_image),
            (QKeySequence("Ctrl+R"), self.run_detection),
            (QKeySequence("Ctrl+E"), lambda: self.btn_edit.toggle()),
            (QKeySequence("Ctrl+F"), lambda: self.ed_find.setFocus()),
            (QKeySequence("Ctrl+S"), self.export_csv),
            (QKeySequence("Ctrl+0"), self.ctl.reset_view),
        ]:
            a = QAction(self); a.setShortcut(seq); a.triggered.connect(slot)
            self.addAction(a)

    # ---------- Vision loader ----------
    def poll_vision(self):
        st = self.vision.status
        loading = st in (VisionStatus.PENDING, VisionStatus.INITIALIZING)
        if loading and time.monotonic() - self._vision_started > self.vision.timeout:
            st = self.vision.force()
            loading = False
        self.lbl_vision.setText(f"OpenCV Status: {st} — {VISION_MESSAGES[st]}")
        self.banner.setVisible(st is not VisionStatus.READY)
        self.btn_force.setVisible(not self.vision.is_usable)
        if not loading:
            self._vision_timer.stop()
        self.update_controls()

    def on_force_vision(self):
        self.vision.force()
        self.poll_vision()

    # ---------- Controls ----------
    def update_controls(self):
        busy = self._thread is not None
        has_img = self.img is not None
        has_particles = len(self.ctl.store) > 0
        self.btn_run.setEnabled(has_img and not busy and self.vision.is_usable)
        self.btn_run.setText("Processing…" if busy else "Detect particles")
        for w in (self.btn_edit, self.btn_pan, self.btn_add, self.btn_reset_view, self.sl_zoom):
            w.setEnabled(has_img and not busy)
        for w in (self.btn_delete, self.btn_deselect):
            w.setEnabled(self.ctl.store.selected_id is not None)
        self.btn_discard.setEnabled(self.ctl.editing)
        for w in (self.btn_export_csv, self.btn_save_overlay, self.btn_find):
            w.setEnabled(has_particles and not busy)

    def current_params(self) -> DetectionParams:
        return DetectionParams(
            min_radius=self.sb_min_r.value(), max_radius=self.sb_max_r.value(),
            circle_threshold=self.sb_thr.value(), min_area=self.sb_min_area.value(),
        )

    def calibration(self) -> ScaleCalibration:
        return ScaleCalibration(self.sb_known_px.value(), self.sb_known_phys.value(), self.cb_unit.currentText())

    # ---------- File open ----------
    def _open_path(self, p: Path):
        try:
            img = imread_image(p)
        except ImageDecodeError as e:
            QMessageBox.critical(self, "Error", f"Failed to read image:\n{e}")
            return
        self.image_path = p
        self.img = img
        self.ctl.load_particles([])
        self._sync_mode_buttons()
        self.canvas.set_image(img)

        um_per_px = scale_from_metadata(p)
        if um_per_px:
            cal = ScaleCalibration.from_um_per_px(um_per_px, self.cb_unit.currentText())
            self._set_calibration(cal)
            logger.info("scale from metadata: %.6f µm/px", um_per_px)
        self.setWindowTitle(f"SEM Particle Detector — {p.name}")
        self.refresh_results()

    def open_image(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open SEM image", "", self.SUPPORTED_FILTER)
        if not path:
            return
        self._open_path(Path(path))

    # ---------- Scale ----------
    def _set_calibration(self, cal: ScaleCalibration):
        for w in (self.sb_known_px, self.sb_known_phys):
            w.blockSignals(True)
        self.sb_known_px.setValue(cal.known_pixels)
        self.sb_known_phys.setValue(cal.known_physical)
        for w in (self.sb_known_px, self.sb_known_phys):
            w.blockSignals(False)
        self.on_scale_changed()

    def read_scale_meta(self):
        if not self.image_path:
            QMessageBox.information(self, "Info", "Open an image first."); return
        val = scale_from_metadata(self.image_path)
        if val is None or val <= 0:
            QMessageBox.warning(self, "Meta", "No usable TIFF metadata found.")
            return
        self._set_calibration(ScaleCalibration.from_um_per_px(val, self.cb_unit.currentText()))

    def on_scale_changed(self, *_):
        self._update_ratio_label()
        self.refresh_results()

    def on_unit_changed(self, unit: str):
        # keep the physical span, expressed in the new unit
        old = ScaleCalibration(self.sb_known_px.value(), self.sb_known_phys.value(), self._unit)
        self._unit = unit
        self._set_calibration(old.in_unit(unit))
        self._update_table_headers()

    def _update_ratio_label(self):
        cal = self.calibration()
        self.lbl_ratio.setText(f"Scale ratio: {cal.ratio:.4f} {cal.unit}/pixel")

    def _update_table_headers(self):
        unit = self.cb_unit.currentText()
        self.table.setHorizontalHeaderLabels(["ID", "Position", "Diameter (px)", f"Diameter ({unit})", "Area (px²)"])

    # ---------- Modes ----------
    def on_toggle_edit(self, on: bool):
        self.ctl.set_edit_mode(on, commit=True)
        if self.btn_pan.isChecked():
            self.btn_pan.setChecked(False)
        self.canvas.setFocus()

    def on_toggle_pan(self, on: bool):
        if on:
            self.ctl.set_mode(InteractionMode.PAN)
        else:
            self.ctl.set_mode(InteractionMode.EDIT if self.ctl.editing else InteractionMode.VIEW)
        self.canvas._update_cursor()

    def on_discard_edits(self):
        self.ctl.set_edit_mode(False, commit=False)
        self._sync_mode_buttons()

    def _sync_mode_buttons(self):
        """Mirror the controller mode on the toggle buttons without re-triggering them."""
        for btn, on in ((self.btn_edit, self.ctl.editing),
                        (self.btn_pan, self.ctl.mode is InteractionMode.PAN)):
            btn.blockSignals(True); btn.setChecked(on); btn.blockSignals(False)
        self.canvas._update_cursor()

    def on_zoom_slider(self, v: int):
        z = v / ZOOM_SLIDER_STEPS
        if abs(z - self.ctl.transform.zoom) > 1e-6:
            self.ctl.set_zoom(z)

    # ---------- Run ----------
    def run_detection(self):
        if self.img is None:
            QMessageBox.information(self, "Info", "Open an image first."); return
        if self._thread and self._thread.isRunning():
            return
        try:
            self.vision.capability()
        except VisionUnavailableError as e:
            QMessageBox.warning(self, "OpenCV", str(e)); return

        self._thread = QThread(self)
        self._worker = DetectionWorker(self.img.copy(), self.current_params(), self.vision)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.finished.connect(self.on_worker_finished); self._worker.failed.connect(self.on_worker_failed)
        self._worker.finished.connect(self._thread.quit); self._worker.failed.connect(self._thread.quit)
        self._thread.finished.connect(self._on_thread_finished); self._thread.finished.connect(self._worker.deleteLater)
        self.update_controls()
        QApplication.processEvents()
        self._thread.start()

    def _on_thread_finished(self):
        self._worker = None; self._thread = None
        self.update_controls()

    def on_worker_finished(self, particles):
        self.ctl.load_particles(particles)
        self._sync_mode_buttons()
        self.refresh_results()

    def on_worker_failed(self, msg: str):
        QMessageBox.critical(self, "Error", f"Error processing image:\n{msg}")

    # ---------- Results ----------
    def _schedule_results_refresh(self):
        self._sync_zoom_slider()
        self.update_controls()
        self._refresh_timer.start()

    def _sync_zoom_slider(self):
        self.sl_zoom.blockSignals(True)
        self.sl_zoom.setValue(int(round(self.ctl.transform.zoom * ZOOM_SLIDER_STEPS)))
        self.sl_zoom.blockSignals(False)
        self.lbl_zoom.setText(f"{self.ctl.transform.zoom:.2f}×")

    def refresh_results(self):
        particles = list(self.ctl.store.particles)
        cal = self.calibration()
        ratio = cal.ratio

        self.lbl_count.setText(f"Particles: {len(particles)}" + (" (editing)" if self.ctl.editing else ""))
        self.table.setSortingEnabled(False)
        self.table.setRowCount(len(particles))
        for row, p in enumerate(particles):
            id_item = NumericItem(p.id)
            id_item.setData(Qt.UserRole, p.id)
            self.table.setItem(row, 0, id_item)
            self.table.setItem(row, 1, QTableWidgetItem(f"({p.x:g}, {p.y:g})"))
            self.table.setItem(row, 2, NumericItem(p.diameter, "{:g}"))
            self.table.setItem(row, 3, NumericItem(p.diameter * ratio, "{:.3f}"))
            self.table.setItem(row, 4, NumericItem(p.area))
        self.table.setSortingEnabled(True)

        d = physical_diameters(particles, ratio)
        st = stats_from_diams(d)
        if d.size and ratio > 0:
            self.lbl_stats.setText(
                f"D10 {st['D10']:.3f}  D50 {st['D50']:.3f}  D90 {st['D90']:.3f} {cal.unit}\n"
                f"mean {st['mean']:.3f} ± {st['std']:.3f}  (min {st['min']:.3f}, max {st['max']:.3f})"
            )
        else:
            self.lbl_stats.setText("")
        self.hist.plot(d, st, cal.unit)
        self.update_controls()

    def on_table_clicked(self, row: int, _col: int):
        item = self.table.item(row, 0)
        if item is None:
            return
        self.ctl.jump_to_particle(int(item.data(Qt.UserRole)))

    # ---------- Find by id ----------
    def find_particle(self):
        txt = self.ed_find.text().strip()
        if not txt:
            return
        try:
            pid = int(txt)
        except ValueError:
            QMessageBox.information(self, "Find", "Enter a numeric particle ID."); return
        if self.ctl.jump_to_particle(pid) is None:
            QMessageBox.information(self, "Find", f"Particle {pid} not found.")
        self.canvas.setFocus()

    # ---------- Export ----------
    def export_csv(self):
        particles = list(self.ctl.store.particles)
        if not particles:
            QMessageBox.information(self, "CSV", "Run detection first."); return
        path, _ = QFileDialog.getSaveFileName(self, "Save particle CSV", "particle_data.csv", "CSV (*.csv)")
        if not path:
            return
        cal = self.calibration()
        try:
            write_csv(path, particles, cal.ratio, cal.unit)
            QMessageBox.information(self, "CSV", f"Saved:\n{path}")
        except OSError as e:
            QMessageBox.critical(self, "CSV", f"Failed to save: {e}")

    def save_overlay(self):
        if self.img is None or not len(self.ctl.store):
            QMessageBox.information(self, "Overlay", "Run detection first."); return
        path, _ = QFileDialog.getSaveFileName(self, "Save overlay image", "overlay.png",
                                              "PNG (*.png);;JPEG (*.jpg *.jpeg)")
        if not path:
            return
        p = Path(path)
        if p.suffix.lower() == "":
            p = p.with_suffix(".png")
        try:
            cv = self.vision.capability()
        except VisionUnavailableError as e:
            QMessageBox.warning(self, "Overlay", str(e)); return
        out = draw_particles(cv, self.img, self.ctl.store.particles, label="id")
        if cv.imwrite(str(p), out):
            QMessageBox.information(self, "Overlay", f"Saved:\n{p}")
        else:
            QMessageBox.critical(self, "Overlay",
                                 "Failed to save the overlay image.\nEnsure the folder is writable and extension is valid (.png/.jpg).")

    def closeEvent(self, e):
        if self._thread is not None and self._thread.isRunning():
            self._thread.quit()
            self._thread.wait()
        # uncommitted edits die with the session
        if self.ctl.editing:
            self.ctl.set_edit_mode(False, commit=False)
        super().closeEvent(e)
