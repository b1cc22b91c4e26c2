"""SEM particle detector: circle detection, interactive correction, calibrated export."""

__version__ = "0.1.0"
