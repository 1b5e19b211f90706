"""Spacer detection used to calibrate the extraction settings.

Two independent signals are produced from a narrow vertical strip that
straddles the boundary between two frames:

- spacers: bright blank regions whose bounding-box area matches a reference
  area, giving the y-extents an operator can use as ROI bounds
- separator rows: y positions of long horizontal edges, a coarser signal
  meant for visual inspection only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import cv2
import numpy as np

from .contours import approximate_contours, filter_long_contours, find_contours
from .exceptions import DegenerateGeometryError, InsufficientSpacersError
from .filters import EdgeOrientation, apply_directional_filter
from .models import Roi, SeparatorConfig, Spacer, SpacerPair
from .preprocess import crop_gray_roi, resize_to_width

if TYPE_CHECKING:
    from .visualizer import DebugVisualizer

logger = logging.getLogger(__name__)


@dataclass
class CalibrationResult:
    """Everything the calibration run found, for the operator to review."""

    ratio: float
    strip: Roi
    candidates: list[Spacer] = field(default_factory=list)
    spacers: SpacerPair | None = None
    separator_rows: list[int] = field(default_factory=list)


def make_strip_roi(img_shape: tuple[int, ...], strip_x: int, strip_width: int) -> Roi:
    """Build a full-height strip ROI.

    Raises:
        DegenerateGeometryError: If the strip is not inside the image
    """
    img_h, img_w = img_shape[:2]
    strip = Roi(strip_x, 0, strip_width, img_h)
    if not strip.fits_within(img_w, img_h):
        raise DegenerateGeometryError(
            f"strip x={strip_x} w={strip_width} is not inside {img_w}x{img_h} image"
        )
    return strip


def isolate_bright_regions(gray: np.ndarray, threshold: int) -> np.ndarray:
    """Binarize so blank (bright) regions become 255."""
    _, mask = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
    return mask


def spacer_area_bounds(spacer_area: int, ratio: float, tolerance: int) -> tuple[float, float]:
    """Return the inclusive (min, max) area a spacer box may have."""
    expected = spacer_area * ratio
    margin = tolerance * ratio
    return expected - margin, expected + margin


def find_spacers(img: np.ndarray, config: SeparatorConfig, ratio: float = 1.0) -> list[Spacer]:
    """Find area-matched bright boxes in the strip.

    Args:
        img: Image the strip coordinates refer to
        config: Separator configuration
        ratio: Resize ratio applied to the image, scales the reference area

    Returns:
        Matching spacers in image coordinates, lowest (largest y) first
    """
    strip = make_strip_roi(img.shape, config.strip_x, config.strip_width)
    mask = isolate_bright_regions(crop_gray_roi(img, strip), config.bright_threshold)
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    min_area, max_area = spacer_area_bounds(config.spacer_area, ratio, config.area_tolerance)
    spacers = []
    for contour in contours:
        x, y, w, h = cv2.boundingRect(contour)
        if min_area <= w * h <= max_area:
            spacers.append(Spacer(strip.x + x, strip.y + y, w, h))

    spacers.sort(key=lambda s: s.y, reverse=True)
    logger.debug(
        "%d bright regions, %d within area %.1f-%.1f",
        len(contours),
        len(spacers),
        min_area,
        max_area,
    )
    return spacers


def locate_spacers(img: np.ndarray, config: SeparatorConfig, ratio: float = 1.0) -> SpacerPair:
    """Return the bottom and top spacers of the strip.

    Raises:
        InsufficientSpacersError: If fewer than two spacers match
    """
    spacers = find_spacers(img, config, ratio)
    if len(spacers) < 2:
        raise InsufficientSpacersError(len(spacers))
    return SpacerPair(bottom=spacers[0], top=spacers[1])


def find_separator_edges(img: np.ndarray, config: SeparatorConfig) -> list[int]:
    """Return y positions of long horizontal edges in the strip.

    Each long contour contributes the top of its polygon approximation's
    bounding box, in image coordinates, sorted top to bottom.
    """
    strip = make_strip_roi(img.shape, config.strip_x, config.strip_width)
    dx, dy = EdgeOrientation.HORIZONTAL.derivative
    edges = apply_directional_filter(crop_gray_roi(img, strip), dx, dy, config.edge_threshold)

    long_contours = filter_long_contours(find_contours(edges), config.min_edge_length)
    rows = []
    for approx in approximate_contours(long_contours):
        _, y, _, _ = cv2.boundingRect(approx)
        rows.append(strip.y + y)
    return sorted(rows)


def calibrate(
    img: np.ndarray,
    config: SeparatorConfig,
    visualizer: DebugVisualizer | None = None,
) -> CalibrationResult:
    """Run both separator signals over an image.

    A missing spacer pair is reported through ``spacers=None`` rather than
    raised, since the result is reviewed by a person.
    """
    config.validate()
    working, ratio = resize_to_width(img, config.resized_image_width)
    strip = make_strip_roi(working.shape, config.strip_x, config.strip_width)

    candidates = find_spacers(working, config, ratio)
    spacers = None
    if len(candidates) >= 2:
        spacers = SpacerPair(bottom=candidates[0], top=candidates[1])
    else:
        logger.warning("Only %d spacer(s) matched the reference area", len(candidates))

    rows = find_separator_edges(working, config)

    if visualizer:
        visualizer.save_spacers(working, strip, candidates)
        visualizer.save_separator_rows(working, strip, rows)

    return CalibrationResult(
        ratio=ratio,
        strip=strip,
        candidates=candidates,
        spacers=spacers,
        separator_rows=rows,
    )
