"""
Exception types raised by the detector core.

Calibration and edit-state problems are never raised: they are
clamped or collapse to a zero scale ratio instead.
"""

from __future__ import annotations


class SemDetectorError(Exception):
    """Base class for all detector errors."""


class ImageDecodeError(SemDetectorError):
    """The input file could not be decoded into a pixel buffer."""


class VisionUnavailableError(SemDetectorError):
    """The computer-vision capability is not loaded (or failed to load)."""
