"""Sprocket hole scan for the frame's top and bottom bounds."""

from __future__ import annotations

import logging

import numpy as np

from .exceptions import InsufficientSprocketsError
from .models import EdgeRun, ExtractionConfig, Sprocket, VerticalBounds

logger = logging.getLogger(__name__)


def find_edge_runs(edges: np.ndarray, column: int, start_row: int = 1) -> list[EdgeRun]:
    """Scan one column of an edge map top to bottom for runs of lit pixels.

    A run starts at a rising edge: row ``r`` is lit and row ``r - 1`` is not.
    Scanning begins at ``start_row``. With ``start_row=1`` row 0 is never a
    rising edge; with ``start_row=0`` a lit row 0 counts as one, as if the
    row above the ROI were dark.

    Args:
        edges: Binary edge map (horizontal edges)
        column: Column index to scan
        start_row: First row that may be reported as a rising edge (0 or 1)

    Returns:
        Runs ordered top to bottom
    """
    img_h, img_w = edges.shape[:2]
    if not (0 <= column < img_w):
        raise ValueError(f"Search column {column} outside edge map of width {img_w}")

    lit = edges[:, column] > 0
    runs = []
    start = None
    for row in range(start_row, img_h):
        previous_lit = lit[row - 1] if row > 0 else False
        if lit[row] and not previous_lit:
            start = row
        elif not lit[row] and previous_lit and start is not None:
            runs.append(EdgeRun(start, row - 1))
            start = None
    if start is not None:
        runs.append(EdgeRun(start, img_h - 1))
    return runs


def find_rising_edges(edges: np.ndarray, column: int, start_row: int = 1) -> list[int]:
    """Return the rising-edge rows found at a column."""
    return [run.start for run in find_edge_runs(edges, column, start_row)]


def pair_sprockets(runs: list[EdgeRun], distance: int) -> list[Sprocket]:
    """Group consecutive edge runs into sprocket holes.

    Two consecutive runs form a sprocket when their rising edges are less
    than ``distance`` rows apart. A paired run is consumed and cannot start
    the next sprocket. The sprocket spans from the first row of the upper
    edge to the last row of the lower edge. Three edges closer together
    than ``distance`` give one sprocket, not two.
    """
    sprockets = []
    i = 0
    while i < len(runs) - 1:
        prev, curr = runs[i], runs[i + 1]
        if abs(curr.start - prev.start) < distance:
            sprockets.append(Sprocket(prev.start, curr.end))
            i += 2
        else:
            i += 1
    return sprockets


def locate_paired(
    edges: np.ndarray, column: int, distance: int, start_row: int = 1
) -> VerticalBounds:
    """Find top/bottom from the first and last paired sprocket holes.

    Raises:
        InsufficientSprocketsError: If fewer than 2 edges or no pair is found
    """
    runs = find_edge_runs(edges, column, start_row)
    edge_rows = [run.start for run in runs]
    if len(runs) < 2:
        raise InsufficientSprocketsError(column, len(runs))

    sprockets = pair_sprockets(runs, distance)
    logger.debug("Edge rows at column %d: %s -> sprockets %s", column, edge_rows, sprockets)
    if not sprockets:
        raise InsufficientSprocketsError(
            column, len(runs), f"no edges closer than {distance} rows"
        )

    return VerticalBounds(sprockets[0].top, sprockets[-1].bottom, sprockets, edge_rows)


def locate_single_edge(
    edges: np.ndarray, column: int, frame_height: int, start_row: int = 1
) -> VerticalBounds:
    """Take the first rising edge as top and add a fixed frame height.

    Raises:
        InsufficientSprocketsError: If no rising edge is found
    """
    edge_rows = find_rising_edges(edges, column, start_row)
    if not edge_rows:
        raise InsufficientSprocketsError(column, 0)

    top = edge_rows[0]
    logger.debug("First rising edge at column %d: row %d", column, top)
    return VerticalBounds(top, top + frame_height, [], edge_rows)


def locate_vertical_bounds(edges: np.ndarray, config: ExtractionConfig) -> VerticalBounds:
    """Locate the frame's top/bottom with the policy the config selects."""
    if config.uses_fixed_height:
        return locate_single_edge(
            edges, config.search_column, config.frame_height, config.scan_start_row
        )
    return locate_paired(
        edges,
        config.search_column,
        config.distance_between_sprockets,
        config.scan_start_row,
    )
