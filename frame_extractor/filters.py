"""Directional edge filter used by both detection branches."""

from __future__ import annotations

from enum import Enum

import cv2
import numpy as np

from .models import BranchConfig

SOBEL_KERNEL_SIZE = 3
DILATE_KERNEL_SIZE = 3


class EdgeOrientation(Enum):
    """Orientation of the edges a branch accentuates."""

    HORIZONTAL = "horizontal"  # Sprocket top/bottom, spacer boundaries
    VERTICAL = "vertical"  # Frame left/right

    @property
    def derivative(self) -> tuple[int, int]:
        """Return the (dx, dy) derivative orders for this orientation."""
        if self == EdgeOrientation.HORIZONTAL:
            return 0, 1
        return 1, 0


def apply_directional_filter(
    gray: np.ndarray,
    dx: int,
    dy: int,
    threshold: int,
    dilate: bool = False,
    ksize: int = SOBEL_KERNEL_SIZE,
) -> np.ndarray:
    """Apply a directional Sobel gradient and binarize it.

    Args:
        gray: Input grayscale image
        dx: Derivative order in x (non-zero for vertical edges)
        dy: Derivative order in y (non-zero for horizontal edges)
        threshold: Gradient magnitude above which a pixel is an edge
        dilate: Dilate the gradient before thresholding to close small gaps
        ksize: Sobel kernel size

    Returns:
        Binary edge map (0 or 255), same size as the input
    """
    if (dx == 0) == (dy == 0):
        raise ValueError(f"Exactly one of dx/dy must be non-zero, got dx={dx}, dy={dy}")

    gradient = cv2.Sobel(gray, cv2.CV_64F, dx, dy, ksize=ksize)
    gradient = cv2.convertScaleAbs(gradient)

    if dilate:
        kernel = cv2.getStructuringElement(
            cv2.MORPH_RECT, (DILATE_KERNEL_SIZE, DILATE_KERNEL_SIZE)
        )
        gradient = cv2.dilate(gradient, kernel, iterations=1)

    _, binary = cv2.threshold(gradient, threshold, 255, cv2.THRESH_BINARY)
    return binary


def apply_branch(
    gray: np.ndarray, orientation: EdgeOrientation, branch: BranchConfig
) -> np.ndarray:
    """Filter a buffer with the settings of one detection branch."""
    dx, dy = orientation.derivative
    return apply_directional_filter(gray, dx, dy, branch.threshold, dilate=branch.dilate)
