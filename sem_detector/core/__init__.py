# Public API of the core package (re-export)
from .errors import (
    SemDetectorError,
    ImageDecodeError,
    VisionUnavailableError,
)
from .particle import Particle, MIN_RADIUS
from .transform import (
    ViewTransform,
    to_image_space,
    to_view_space,
    zoom_at_cursor,
    center_on_point,
)
from .hit_test import EDGE_BAND, HitRegion, Hit, hit_test
from .store import ParticleStore
from .interaction import InteractionState, InteractionMode, InteractionController
from .scale import (
    scale_ratio,
    parse_number,
    parse_scale_text,
    convert_length,
    ScaleCalibration,
)
from .vision import VisionStatus, VisionLoader
from .detect import DetectionAdapter, find_circles
from .io_utils import (
    imread_image,
    dump_tiff_metadata_text,
    parse_um_per_px_from_text,
    scale_from_metadata,
    is_supported_file,
)
from .export import export_header, export_rows, format_csv, write_csv
from .overlay import draw_particles, draw_particles_with_ids
from .measure import physical_diameters, stats_from_diams
from .params import DetectionParams, EditorSettings

__all__ = [
    # errors
    "SemDetectorError", "ImageDecodeError", "VisionUnavailableError",
    # particles & editing
    "Particle", "MIN_RADIUS", "ParticleStore",
    "ViewTransform", "to_image_space", "to_view_space", "zoom_at_cursor", "center_on_point",
    "EDGE_BAND", "HitRegion", "Hit", "hit_test",
    "InteractionState", "InteractionMode", "InteractionController",
    # scale
    "scale_ratio", "parse_number", "parse_scale_text", "convert_length", "ScaleCalibration",
    # detection
    "VisionStatus", "VisionLoader", "DetectionAdapter", "find_circles",
    # io / meta
    "imread_image", "dump_tiff_metadata_text", "parse_um_per_px_from_text", "scale_from_metadata",
    "is_supported_file",
    # export & rendering
    "export_header", "export_rows", "format_csv", "write_csv",
    "draw_particles", "draw_particles_with_ids",
    # stats
    "physical_diameters", "stats_from_diams",
    # params
    "DetectionParams", "EditorSettings",
]
