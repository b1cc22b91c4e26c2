"""
Scale calibration utilities.

Provides:
- Scale ratio (physical units per pixel) from a known span
- Parsing of scale-bar text such as "500um" or "20nm"
- Length conversion between nm, µm and mm
"""

from __future__ import annotations
import math
import re
from dataclasses import dataclass

# Length of one unit expressed in µm
_UNIT_UM = {"nm": 1e-3, "um": 1.0, "µm": 1.0, "mm": 1e3}


def scale_ratio(known_pixels: float, known_physical: float) -> float:
    """Return physical units per pixel, or 0 if either input is non-positive or not finite."""
    if not (math.isfinite(known_pixels) and math.isfinite(known_physical)):
        return 0.0
    if known_pixels <= 0 or known_physical <= 0:
        return 0.0
    return known_physical / known_pixels


def parse_number(text: str) -> float:
    """Parse user input to float; anything non-numeric becomes 0."""
    try:
        return float(str(text).strip().replace(",", "."))
    except ValueError:
        return 0.0


def convert_length(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a length between nm, µm (um) and mm."""
    try:
        return value * _UNIT_UM[from_unit] / _UNIT_UM[to_unit]
    except KeyError as e:
        raise ValueError(f"Unsupported unit: {e.args[0]}") from None


def parse_scale_text(scale_text: str) -> float:
    """Parse scale-bar text ("500um", "1mm", "20nm") to a value in µm."""
    s = scale_text.strip().lower().replace(" ", "")
    m = re.match(r"([0-9\.]+)(nm|um|µm|mm)$", s)
    if not m:
        raise ValueError("Bad scale text. Examples: 500um, 1mm, 20nm")
    return convert_length(float(m.group(1)), m.group(2), "µm")


@dataclass
class ScaleCalibration:
    """A known span: `known_pixels` px correspond to `known_physical` units."""

    known_pixels: float = 307.0
    known_physical: float = 80.0
    unit: str = "µm"

    @property
    def ratio(self) -> float:
        return scale_ratio(self.known_pixels, self.known_physical)

    def to_physical(self, pixels: float) -> float:
        return pixels * self.ratio

    def in_unit(self, unit: str) -> "ScaleCalibration":
        """Same calibration with the physical span expressed in `unit`."""
        return ScaleCalibration(
            known_pixels=self.known_pixels,
            known_physical=convert_length(self.known_physical, self.unit, unit),
            unit=unit,
        )

    @classmethod
    def from_um_per_px(cls, um_per_px: float, unit: str = "µm") -> "ScaleCalibration":
        """Build a calibration from a metadata scale (µm/px)."""
        cal = cls(known_pixels=1.0, known_physical=float(um_per_px), unit="µm")
        return cal if unit == "µm" else cal.in_unit(unit)
