"""Frame assembly and the single-pass extraction pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from .contours import locate_horizontal_bounds
from .exceptions import DegenerateGeometryError
from .filters import EdgeOrientation, apply_branch
from .models import (
    DetectionResult,
    ExtractionConfig,
    FrameRect,
    HorizontalBounds,
    Roi,
    VerticalBounds,
    make_roi,
)
from .preprocess import crop_gray_roi, prepare_branch, resize_to_width
from .sprockets import locate_vertical_bounds

if TYPE_CHECKING:
    from .visualizer import DebugVisualizer

logger = logging.getLogger(__name__)


def build_frame_rect(
    roi: Roi, vertical: VerticalBounds, horizontal: HorizontalBounds
) -> FrameRect:
    """Combine ROI-relative bounds into a rectangle in image coordinates."""
    return FrameRect(
        x=horizontal.left,
        y=roi.y + vertical.top,
        width=horizontal.right - horizontal.left,
        height=vertical.bottom - vertical.top,
    )


def validate_frame_rect(rect: FrameRect, img_shape: tuple[int, ...]) -> None:
    """Check a rectangle is non-empty and lies inside the image.

    Raises:
        DegenerateGeometryError: If the rectangle is empty or out of bounds
    """
    img_h, img_w = img_shape[:2]
    if rect.width <= 0 or rect.height <= 0:
        raise DegenerateGeometryError(f"non-positive size {rect.width}x{rect.height}")
    if not rect.fits_within(img_w, img_h):
        raise DegenerateGeometryError(
            f"rectangle (x={rect.x}, y={rect.y}, w={rect.width}, h={rect.height}) "
            f"extends outside {img_w}x{img_h} image"
        )


def crop_frame(img: np.ndarray, rect: FrameRect) -> np.ndarray:
    """Copy the rectangle's pixels into a new buffer.

    Args:
        img: Source image as numpy array
        rect: Frame rectangle in the image's coordinates

    Returns:
        Cropped image of exactly rect.height x rect.width pixels

    Raises:
        DegenerateGeometryError: If the rectangle is empty or out of bounds
    """
    validate_frame_rect(rect, img.shape)
    return img[rect.y : rect.bottom, rect.x : rect.right].copy()


def detect_frame(
    img: np.ndarray,
    config: ExtractionConfig,
    visualizer: DebugVisualizer | None = None,
) -> DetectionResult:
    """Detect and extract one frame from a scanned strip.

    Args:
        img: Decoded source image (grayscale or BGR); never modified
        config: Extraction configuration
        visualizer: Optional debug visualizer to save intermediate images

    Returns:
        DetectionResult with the frame rectangle, the cropped frame and the
        intermediate edge maps

    Raises:
        InsufficientSprocketsError: Sprocket scan found no usable holes
        InsufficientEdgesError: Too few long vertical edges
        NoRightEdgeCandidateError: No vertical edge left of the search column
        DegenerateGeometryError: ROI or frame rectangle is empty or out of bounds
    """
    config.validate()

    # Step 1: Working copy at the configured width, ROI of it in grayscale
    working, scale = resize_to_width(img, config.resized_image_width)
    roi = make_roi(working.shape, config.roi_top, config.roi_height)
    gray_roi = crop_gray_roi(working, roi)
    logger.debug(
        "Working image %dx%d (scale %.4f), ROI y=%d h=%d",
        working.shape[1],
        working.shape[0],
        scale,
        roi.y,
        roi.height,
    )

    if visualizer:
        visualizer.save_roi(working, roi)

    # Step 2: Two independently prepared filter branches
    sprocket_edges = apply_branch(
        prepare_branch(gray_roi, config.sprocket_filter),
        EdgeOrientation.HORIZONTAL,
        config.sprocket_filter,
    )
    vertical_edges = apply_branch(
        prepare_branch(gray_roi, config.edge_filter),
        EdgeOrientation.VERTICAL,
        config.edge_filter,
    )

    if visualizer:
        visualizer.save_edges("sprocket_edges", sprocket_edges)
        visualizer.save_edges("vertical_edges", vertical_edges)

    # Step 3: Vertical bounds from the sprocket holes
    vertical = locate_vertical_bounds(sprocket_edges, config)
    logger.debug(
        "Vertical bounds (%s policy): top=%d bottom=%d",
        "single-edge" if config.uses_fixed_height else "paired",
        vertical.top,
        vertical.bottom,
    )
    if visualizer:
        visualizer.save_sprocket_scan(gray_roi, config.search_column, vertical)

    # Step 4: Horizontal bounds from long vertical contours
    horizontal, approximations = locate_horizontal_bounds(vertical_edges, config)
    logger.debug(
        "Horizontal bounds (%s policy): left=%d right=%d",
        "nearest-right" if config.uses_fixed_width else "dual-edge",
        horizontal.left,
        horizontal.right,
    )
    if visualizer:
        visualizer.save_contours(vertical_edges, approximations, horizontal)

    # Step 5: Assemble and crop
    rect = build_frame_rect(roi, vertical, horizontal)
    validate_frame_rect(rect, working.shape)

    if config.full_resolution_crop and scale != 1.0:
        rect = rect.scaled(1.0 / scale)
        source = img
    else:
        source = working
    crop = crop_frame(source, rect)

    if visualizer:
        visualizer.save_frame_rect(source, rect)

    logger.debug("Frame rect %s", rect.as_tuple())
    return DetectionResult(
        frame_rect=rect,
        crop=crop,
        roi=roi,
        scale=scale,
        sprocket_edges=sprocket_edges,
        vertical_edges=vertical_edges,
        vertical_bounds=vertical,
        horizontal_bounds=horizontal,
        approximations=approximations,
    )
