"""Grayscale preparation of the scanned strip before edge filtering."""

from __future__ import annotations

import cv2
import numpy as np

from .models import BranchConfig, Roi


def resize_to_width(img: np.ndarray, target_width: int | None) -> tuple[np.ndarray, float]:
    """Resize image to a target width, preserving aspect ratio.

    Args:
        img: Input image
        target_width: Desired width in pixels, or None to keep the original size

    Returns:
        Tuple of (new resized image, scale factor target/original)
    """
    orig_h, orig_w = img.shape[:2]
    if target_width is None or target_width == orig_w:
        return img.copy(), 1.0

    scale = target_width / orig_w
    target_height = max(1, int(orig_h * scale))
    resized = cv2.resize(img, (target_width, target_height), interpolation=cv2.INTER_AREA)
    return resized, scale


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """Convert image to single-channel grayscale (always a new buffer)."""
    if img.ndim == 2:
        return img.copy()
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    if img.shape[2] == 1:
        return img[:, :, 0].copy()
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def crop_gray_roi(img: np.ndarray, roi: Roi) -> np.ndarray:
    """Return the grayscale pixels of a ROI as a new buffer."""
    return to_grayscale(roi.slice(img))


def equalize(gray: np.ndarray) -> np.ndarray:
    """Histogram-equalize a private copy of a grayscale buffer."""
    return cv2.equalizeHist(gray.copy())


def prepare_branch(gray_roi: np.ndarray, branch: BranchConfig) -> np.ndarray:
    """Return the buffer one filter branch works on.

    Each branch gets its own copy so equalizing one never changes the
    contrast the other branch sees.
    """
    if branch.equalize:
        return equalize(gray_roi)
    return gray_roi.copy()
