"""
Image I/O and metadata utilities.

Provides image loading (first page only for multi-page TIFF, 16-bit
normalised to 8-bit) and extraction of SEM scale (µm/px) from TIFF metadata.
"""

from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)

SUPPORTED_EXTS = {".tif", ".tiff", ".png", ".jpg", ".jpeg", ".bmp"}

PathLike = Union[str, Path]


def _normalize_to_u8(arr: np.ndarray) -> np.ndarray:
    """Min-max stretch any integer/float array to uint8."""
    arr = arr.astype(np.float64)
    lo, hi = float(arr.min()), float(arr.max())
    if hi <= lo:
        return np.zeros(arr.shape, np.uint8)
    return np.round((arr - lo) * (255.0 / (hi - lo))).astype(np.uint8)


def imread_image(path: PathLike) -> np.ndarray:
    """
    Read an image as uint8: (H, W) gray or (H, W, 3) BGR.

    Only the first page of a multi-page TIFF is used.
    Raises ImageDecodeError for unreadable input.
    """
    try:
        with Image.open(path) as pil:
            pil.seek(0)
            if pil.mode in ("I;16", "I;16B", "I;16L", "I", "F"):
                arr = _normalize_to_u8(np.array(pil))
            elif pil.mode in ("L", "1", "P", "LA"):
                arr = np.array(pil.convert("L"))
            else:
                rgb = np.array(pil.convert("RGB"))
                arr = np.ascontiguousarray(rgb[:, :, ::-1])  # RGB -> BGR
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.error("failed to decode %s: %s", path, e)
        raise ImageDecodeError(f"Failed to read image {path}: {e}") from e

    if arr.ndim == 3 and arr.shape[2] == 3 and np.array_equal(arr[:, :, 0], arr[:, :, 1]) \
            and np.array_equal(arr[:, :, 1], arr[:, :, 2]):
        arr = np.ascontiguousarray(arr[:, :, 0])
    if arr.size == 0:
        raise ImageDecodeError(f"Image {path} is empty")
    return arr


def dump_tiff_metadata_text(image_path: PathLike) -> str:
    """Return TIFF metadata as concatenated text for regex parsing."""
    try:
        pil = Image.open(image_path)
    except (OSError, UnidentifiedImageError) as e:
        return f"[ERROR opening TIFF: {e}]"

    out = []
    with pil:
        for tag, val in getattr(pil, "tag_v2", {}).items():
            if isinstance(val, bytes):
                s = val.decode(errors="ignore")
            elif isinstance(val, (list, tuple)):
                s = " ".join([v.decode(errors="ignore") if isinstance(v, bytes) else str(v) for v in val])
            else:
                s = str(val)
            out.append(f"[{tag}] {s}")

        for k, v in (pil.info or {}).items():
            if isinstance(v, bytes):
                v = v.decode(errors="ignore")
            out.append(f"[{k}] {v}")

    return "\n".join(out)


def parse_um_per_px_from_text(txt: str) -> Optional[float]:
    """Extract µm/px scale from TIFF metadata text."""
    if not txt:
        return None

    # Direct PixelWidth field (in meters)
    m = re.search(r"PixelWidth\s*=\s*([0-9eE\.\-\+]+)", txt)
    if m:
        try:
            px_m = float(m.group(1))
            if px_m > 0:
                return px_m * 1e6
        except ValueError:
            pass

    # Derived from horizontal field width and resolution
    m_hfw = re.search(r"(HorFieldsize|HFW)\s*=\s*([0-9eE\.\-\+]+)", txt)
    m_rx = re.search(r"(ResolutionX|Resolutionx)\s*=\s*([0-9]+)", txt)
    if m_hfw and m_rx:
        try:
            hfw_m = float(m_hfw.group(2))
            resx = int(m_rx.group(2))
            if hfw_m > 0 and resx > 0:
                return (hfw_m * 1e6) / float(resx)
        except ValueError:
            pass
    return None


def scale_from_metadata(image_path: PathLike) -> Optional[float]:
    """Read a TIFF file and return scale (µm/px) parsed from metadata."""
    return parse_um_per_px_from_text(dump_tiff_metadata_text(image_path))


def is_supported_file(p: PathLike) -> bool:
    return Path(p).suffix.lower() in SUPPORTED_EXTS
