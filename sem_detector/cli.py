"""
Command-line particle detection.

  sem-detect image.tif --min-radius 9 --max-radius 38 --threshold 27 \
      --known-pixels 307 --known-physical 80 --out results

Scale priority:
  1) --known-pixels/--known-physical (or --scale-text + --scale-pixels)
  2) TIFF metadata: PixelWidth (m/px) or HFW/ResolutionX -> µm/px
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from sem_detector.core import (
    DetectionAdapter, DetectionParams, ScaleCalibration, VisionLoader, VisionStatus,
    ImageDecodeError, VisionUnavailableError, imread_image, scale_from_metadata,
    parse_scale_text, physical_diameters, stats_from_diams, write_csv, draw_particles,
)
from sem_detector.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Detect circular particles in an SEM image")
    ap.add_argument("image")

    # detection
    d = DetectionParams()
    ap.add_argument("--min-radius", type=int, default=d.min_radius, help="px, 1..50")
    ap.add_argument("--max-radius", type=int, default=d.max_radius, help="px, 10..100")
    ap.add_argument("--threshold", type=int, default=d.circle_threshold,
                    help="circle detection strictness, 1..100")
    ap.add_argument("--min-area", type=int, default=d.min_area, help="px², 0..500 (post-filter)")

    # scale
    ap.add_argument("--known-pixels", type=float, default=None, help="length of the known span (px)")
    ap.add_argument("--known-physical", type=float, default=None, help="length of the known span (unit)")
    ap.add_argument("--scale-text", type=str, default=None,
                    help='scale bar text, e.g. "500um", "1mm", "20nm" (needs --scale-pixels)')
    ap.add_argument("--scale-pixels", type=float, default=None, help="scale bar length (px)")
    ap.add_argument("--unit", default="µm", choices=["nm", "µm", "mm"], help="output unit")

    # output
    ap.add_argument("--out", default="results")
    ap.add_argument("--label", default="diameter", choices=["diameter", "id"], help="overlay label")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def resolve_calibration(args: argparse.Namespace, image_path: Path) -> ScaleCalibration:
    """Pick the calibration from CLI options, falling back to TIFF metadata."""
    if args.known_pixels is not None and args.known_physical is not None:
        return ScaleCalibration(args.known_pixels, args.known_physical, args.unit)
    if args.scale_text and args.scale_pixels:
        bar_um = parse_scale_text(args.scale_text)
        return ScaleCalibration(args.scale_pixels, bar_um, "µm").in_unit(args.unit)
    um_per_px = scale_from_metadata(image_path)
    if um_per_px:
        logger.info("scale %.6f µm/px from TIFF metadata", um_per_px)
        return ScaleCalibration.from_um_per_px(um_per_px, args.unit)
    logger.warning("no scale given; physical diameters will be 0")
    return ScaleCalibration(0.0, 0.0, args.unit)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    p = Path(args.image)
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        img = imread_image(p)
    except ImageDecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    loader = VisionLoader()
    if loader.wait() is not VisionStatus.READY:
        logger.warning("vision status: %s", loader.status)
    try:
        cv = loader.capability()
    except VisionUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3

    params = DetectionParams(
        min_radius=args.min_radius, max_radius=args.max_radius,
        circle_threshold=args.threshold, min_area=args.min_area,
    )
    particles = DetectionAdapter(cv).detect(img, params)
    cal = resolve_calibration(args, p)

    csv_path = out_dir / f"particles_{p.stem}.csv"
    write_csv(csv_path, particles, cal.ratio, cal.unit)

    overlay = draw_particles(cv, img, particles, label=args.label)
    overlay_path = out_dir / f"annotated_{p.stem}.png"
    cv.imwrite(str(overlay_path), overlay)

    print("=== RESULTS ===")
    print(f"Image    : {p}")
    print(f"Overlay  : {overlay_path}")
    print(f"CSV      : {csv_path}")
    print(f"Scale    : {cal.ratio:.6f} {cal.unit}/px")
    print(f"Particles: {len(particles)}")

    diams = physical_diameters(particles, cal.ratio)
    if diams.size and np.any(diams > 0):
        st = stats_from_diams(diams)
        for k in ["D10", "D50", "D90", "mean", "std", "min", "max"]:
            print(f"{k:>9}: {st[k]:.3f} {cal.unit}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
