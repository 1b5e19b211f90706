"""Shared fixtures: synthetic film strips drawn with numpy."""

import cv2
import numpy as np
import pytest

from frame_extractor.models import BranchConfig, ExtractionConfig, SeparatorConfig

BACKGROUND = 60
FRAME_LEVEL = 180
HOLE_LEVEL = 255

# Frame occupies rows 20..379 and columns 100..399
FRAME_TOP, FRAME_BOTTOM = 20, 380
FRAME_LEFT, FRAME_RIGHT = 100, 400

# Sprocket holes occupy columns 540..569
HOLE_LEFT, HOLE_RIGHT = 540, 570
HOLES = [(40, 70), (300, 330)]
SEARCH_COLUMN = 555


def draw_strip() -> np.ndarray:
    """Return a 400x600 grayscale strip with one frame and two sprocket holes."""
    gray = np.full((400, 600), BACKGROUND, dtype=np.uint8)
    gray[FRAME_TOP:FRAME_BOTTOM, FRAME_LEFT:FRAME_RIGHT] = FRAME_LEVEL
    for top, bottom in HOLES:
        gray[top:bottom, HOLE_LEFT:HOLE_RIGHT] = HOLE_LEVEL
    return gray


def make_edge_column(height: int, width: int, column: int, bands: list[tuple[int, int]]):
    """Return an edge map with inclusive row bands lit at one column."""
    edges = np.zeros((height, width), dtype=np.uint8)
    for start, end in bands:
        edges[start : end + 1, column] = 255
    return edges


@pytest.fixture
def strip_gray():
    return draw_strip()


@pytest.fixture
def strip_bgr():
    return cv2.cvtColor(draw_strip(), cv2.COLOR_GRAY2BGR)


@pytest.fixture
def config():
    return ExtractionConfig(
        search_column=SEARCH_COLUMN,
        distance_between_sprockets=32,
        min_vertical_edge_length=150,
        sprocket_filter=BranchConfig(threshold=100),
        edge_filter=BranchConfig(threshold=60, equalize=True),
    )


@pytest.fixture
def spacer_image():
    """Return a 400x200 strip with two 30x20 spacers and one larger bright block."""
    gray = np.full((400, 200), 40, dtype=np.uint8)
    gray[50:70, 80:110] = 230
    gray[150:200, 80:110] = 230
    gray[250:270, 80:110] = 230
    return gray


@pytest.fixture
def separator_config():
    return SeparatorConfig(
        strip_x=70,
        strip_width=50,
        spacer_area=600,
        area_tolerance=50,
        bright_threshold=200,
        edge_threshold=100,
        min_edge_length=40,
    )
