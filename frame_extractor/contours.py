"""Vertical contour analysis for the frame's left and right bounds."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import cv2
import numpy as np

from .exceptions import InsufficientEdgesError, NoRightEdgeCandidateError
from .models import ExtractionConfig, HorizontalBounds

logger = logging.getLogger(__name__)

EPSILON_FACTOR = 0.01


def find_contours(edges: np.ndarray) -> list[np.ndarray]:
    """Trace all contours in an edge map without hierarchy.

    Contours keep every boundary point, so a contour's length is its
    point count.
    """
    contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)
    return list(contours)


def filter_long_contours(contours: Sequence[np.ndarray], min_length: int) -> list[np.ndarray]:
    """Keep contours with strictly more than ``min_length`` points."""
    return [c for c in contours if len(c) > min_length]


def approximation_epsilon(contours: Sequence[np.ndarray]) -> float:
    """Return the polygon tolerance shared by all contours.

    Derived from the first contour's bounding-box height only.
    """
    # TODO: try a per-contour epsilon once there are scans where the first
    # contour's height is unrepresentative
    _, _, _, height = cv2.boundingRect(contours[0])
    return height * EPSILON_FACTOR


def approximate_contours(contours: Sequence[np.ndarray]) -> list[np.ndarray]:
    """Reduce each contour to a polygon approximation."""
    if not contours:
        return []
    epsilon = approximation_epsilon(contours)
    return [cv2.approxPolyDP(c, epsilon, True) for c in contours]


def first_point_x(approx: np.ndarray) -> int:
    """Return the x-coordinate of an approximation's first point."""
    return int(np.asarray(approx).reshape(-1, 2)[0, 0])


def locate_dual_edges(approximations: Sequence[np.ndarray]) -> HorizontalBounds:
    """Take the two first long edges as the frame's left and right bounds.

    The smaller x of the two becomes the left bound, so the result does not
    depend on the order contours were discovered in.

    Raises:
        InsufficientEdgesError: If fewer than 2 approximations are given
    """
    if len(approximations) < 2:
        raise InsufficientEdgesError(len(approximations), 2)

    x1 = first_point_x(approximations[0])
    x2 = first_point_x(approximations[1])
    return HorizontalBounds(left=min(x1, x2), right=max(x1, x2))


def nearest_right_edge(xs: Sequence[int], column: int) -> int | None:
    """Return the largest x strictly less than column, or None."""
    candidates = [x for x in xs if x < column]
    if not candidates:
        return None
    return max(candidates)


def locate_right_edge_fixed_width(
    approximations: Sequence[np.ndarray], column: int, frame_width: int
) -> HorizontalBounds:
    """Anchor on the rightmost edge left of the search column.

    Raises:
        NoRightEdgeCandidateError: If no edge lies left of the column
    """
    xs = [first_point_x(approx) for approx in approximations]
    right = nearest_right_edge(xs, column)
    logger.debug("Edge candidates %s, search column %d -> right %s", xs, column, right)
    if right is None:
        raise NoRightEdgeCandidateError(column)
    return HorizontalBounds(left=right - frame_width, right=right)


def locate_horizontal_bounds(
    edges: np.ndarray, config: ExtractionConfig
) -> tuple[HorizontalBounds, list[np.ndarray]]:
    """Locate the frame's left/right bounds with the policy the config selects.

    Args:
        edges: Binary edge map (vertical edges)
        config: Extraction configuration

    Returns:
        Tuple of (bounds, polygon approximations of the long contours)
    """
    contours = find_contours(edges)
    long_contours = filter_long_contours(contours, config.min_vertical_edge_length)
    logger.debug(
        "%d contours, %d longer than %d points",
        len(contours),
        len(long_contours),
        config.min_vertical_edge_length,
    )
    if not long_contours:
        raise InsufficientEdgesError(0, 1 if config.uses_fixed_width else 2)

    approximations = approximate_contours(long_contours)
    if config.uses_fixed_width:
        bounds = locate_right_edge_fixed_width(
            approximations, config.search_column, config.frame_width
        )
    else:
        bounds = locate_dual_edges(approximations)
    return bounds, approximations
