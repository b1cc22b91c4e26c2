"""
CSV export of the particle table.

Column order and precision are fixed for spreadsheet consumers:
  ID, X, Y, Diameter(px), Diameter(<unit>), Area(px²)
Physical diameter is computed here from the ratio, never stored.
"""

from __future__ import annotations
import csv
import io
import logging
from pathlib import Path
from typing import Iterable, List, Union

from .particle import Particle

logger = logging.getLogger(__name__)

PHYSICAL_DECIMALS = 3


def _fmt(v: float) -> str:
    """Integral values without decimals, others with two."""
    return str(int(v)) if float(v).is_integer() else f"{v:.2f}"


def export_header(unit: str = "µm") -> List[str]:
    return ["ID", "X", "Y", "Diameter(px)", f"Diameter({unit})", "Area(px²)"]


def export_rows(particles: Iterable[Particle], ratio: float) -> List[List[str]]:
    """One record per particle, in store order."""
    rows = []
    for p in particles:
        rows.append([
            str(p.id),
            _fmt(p.x),
            _fmt(p.y),
            _fmt(p.diameter),
            f"{p.diameter * ratio:.{PHYSICAL_DECIMALS}f}",
            str(p.area),
        ])
    return rows


def format_csv(particles: Iterable[Particle], ratio: float, unit: str = "µm") -> str:
    """Return the whole CSV document as text."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(export_header(unit))
    writer.writerows(export_rows(particles, ratio))
    return buf.getvalue()


def write_csv(path: Union[str, Path], particles: Iterable[Particle], ratio: float, unit: str = "µm") -> None:
    """Write the particle table to a UTF-8 CSV file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(export_header(unit))
        writer.writerows(export_rows(particles, ratio))
    logger.info("exported particles to %s", path)
