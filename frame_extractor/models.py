"""Data models for frame extraction."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import numpy as np

from .exceptions import DegenerateGeometryError


@dataclass(frozen=True)
class Roi:
    """Axis-aligned region of interest in source-image coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def fits_within(self, img_w: int, img_h: int) -> bool:
        """Check the region is non-empty and fully inside the image."""
        return (
            self.width > 0
            and self.height > 0
            and self.x >= 0
            and self.y >= 0
            and self.right <= img_w
            and self.bottom <= img_h
        )

    def slice(self, img: np.ndarray) -> np.ndarray:
        """Return a copy of the region's pixels."""
        return img[self.y : self.bottom, self.x : self.right].copy()


def make_roi(img_shape: tuple[int, ...], top: int, height: int | None = None) -> Roi:
    """Build a full-width ROI starting at row ``top``.

    Args:
        img_shape: Shape of the image the ROI refers to
        top: First row of the ROI
        height: Number of rows, or None to extend to the image bottom

    Returns:
        Roi spanning the whole image width

    Raises:
        DegenerateGeometryError: If the ROI is empty or not inside the image
    """
    img_h, img_w = img_shape[:2]
    if height is None:
        height = img_h - top
    roi = Roi(0, top, img_w, height)
    if not roi.fits_within(img_w, img_h):
        raise DegenerateGeometryError(
            f"ROI (x={roi.x}, y={roi.y}, w={roi.width}, h={roi.height}) "
            f"is not inside {img_w}x{img_h} image"
        )
    return roi


@dataclass(frozen=True)
class EdgeRun:
    """Consecutive lit rows in one column of an edge map."""

    start: int
    end: int


@dataclass(frozen=True)
class Sprocket:
    """Vertical extent of one fully visible sprocket hole (ROI-relative rows)."""

    top: int
    bottom: int

    def __post_init__(self):
        if self.top >= self.bottom:
            raise ValueError(f"Sprocket top ({self.top}) must be < bottom ({self.bottom})")

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass
class VerticalBounds:
    """Top/bottom frame bounds found by the sprocket scan (ROI-relative)."""

    top: int
    bottom: int
    sprockets: list[Sprocket] = field(default_factory=list)
    edge_rows: list[int] = field(default_factory=list)


@dataclass
class HorizontalBounds:
    """Left/right frame bounds found from vertical contours."""

    left: int
    right: int


@dataclass(frozen=True)
class FrameRect:
    """Final frame rectangle in source-image coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def fits_within(self, img_w: int, img_h: int) -> bool:
        """Check the rectangle is non-empty and fully inside the image."""
        return (
            self.width > 0
            and self.height > 0
            and self.x >= 0
            and self.y >= 0
            and self.right <= img_w
            and self.bottom <= img_h
        )

    def scaled(self, factor: float) -> FrameRect:
        """Return the rectangle with all coordinates multiplied by factor."""
        x = int(round(self.x * factor))
        y = int(round(self.y * factor))
        right = int(round(self.right * factor))
        bottom = int(round(self.bottom * factor))
        return FrameRect(x, y, right - x, bottom - y)

    def as_bounds(self) -> list[int]:
        """Return rectangle as [left, right, top, bottom] positions."""
        return [self.x, self.right, self.y, self.bottom]

    def as_tuple(self) -> tuple[int, int, int, int]:
        """Return rectangle as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class Spacer:
    """Bounding box of a blank region between two frames."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def top(self) -> int:
        return self.y

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class SpacerPair:
    """The lower (bottom) and upper (top) spacers found in a calibration strip."""

    bottom: Spacer
    top: Spacer


@dataclass
class DetectionResult:
    """Output of a single extraction run plus its intermediate artefacts."""

    frame_rect: FrameRect
    crop: np.ndarray
    roi: Roi
    scale: float
    sprocket_edges: np.ndarray
    vertical_edges: np.ndarray
    vertical_bounds: VerticalBounds
    horizontal_bounds: HorizontalBounds
    approximations: list[np.ndarray] = field(default_factory=list)

    @property
    def sprockets(self) -> list[Sprocket]:
        return self.vertical_bounds.sprockets


# =============================================================================
# Configuration Classes
# =============================================================================


@dataclass(frozen=True)
class BranchConfig:
    """Parameters for one directional edge filter branch."""

    threshold: int = 100
    dilate: bool = False
    equalize: bool = False

    def validate(self, name: str = "branch") -> None:
        """Validate parameter ranges."""
        if not (0 <= self.threshold <= 255):
            raise ValueError(f"{name}.threshold must be 0-255, got {self.threshold}")


def _check_positive(name: str, value: int | None, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if value is None or value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")


def _build(cls, data: dict[str, Any], nested: dict[str, type] | None = None):
    """Create a frozen config dataclass from a dict, rejecting unknown keys."""
    nested = nested or {}
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} option(s): {', '.join(sorted(unknown))}")

    kwargs = {}
    for key, value in data.items():
        if key in nested and isinstance(value, dict):
            value = _build(nested[key], value)
        kwargs[key] = value
    return cls(**kwargs)


class _JsonConfigMixin:
    """JSON helpers shared by the configuration records."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str):
        """Parse configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_file(cls, path: str | Path):
        """Load configuration from JSON file."""
        with open(path) as f:
            return cls.from_json(f.read())

    @classmethod
    def default_json(cls) -> str:
        """Return default configuration as formatted JSON string."""
        return cls().to_json()

    def with_overrides(self, **overrides):
        """Return a validated copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        config = replace(self, **changes)
        config.validate()
        return config


@dataclass(frozen=True)
class ExtractionConfig(_JsonConfigMixin):
    """Complete configuration for one frame extraction run.

    Leaving ``frame_width`` unset selects the dual-edge policy for the
    horizontal bounds; leaving ``frame_height`` unset selects the paired
    sprocket policy for the vertical bounds.
    """

    resized_image_width: int | None = None
    roi_top: int = 0
    roi_height: int | None = None
    search_column: int = 0
    distance_between_sprockets: int = 32
    min_vertical_edge_length: int = 150
    frame_width: int | None = None
    frame_height: int | None = None
    scan_start_row: int = 1
    full_resolution_crop: bool = True
    sprocket_filter: BranchConfig = field(default_factory=lambda: BranchConfig(threshold=100))
    edge_filter: BranchConfig = field(
        default_factory=lambda: BranchConfig(threshold=60, equalize=True)
    )

    @property
    def uses_fixed_width(self) -> bool:
        return self.frame_width is not None

    @property
    def uses_fixed_height(self) -> bool:
        return self.frame_height is not None

    def validate(self) -> None:
        """Validate the configuration."""
        _check_positive("resized_image_width", self.resized_image_width, allow_none=True)
        _check_positive("roi_height", self.roi_height, allow_none=True)
        _check_positive("distance_between_sprockets", self.distance_between_sprockets)
        _check_positive("frame_width", self.frame_width, allow_none=True)
        _check_positive("frame_height", self.frame_height, allow_none=True)
        if self.roi_top < 0:
            raise ValueError(f"roi_top must be >= 0, got {self.roi_top}")
        if self.search_column < 0:
            raise ValueError(f"search_column must be >= 0, got {self.search_column}")
        if self.min_vertical_edge_length < 0:
            raise ValueError(
                f"min_vertical_edge_length must be >= 0, got {self.min_vertical_edge_length}"
            )
        if self.scan_start_row not in (0, 1):
            raise ValueError(f"scan_start_row must be 0 or 1, got {self.scan_start_row}")
        self.sprocket_filter.validate("sprocket_filter")
        self.edge_filter.validate("edge_filter")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractionConfig:
        """Create ExtractionConfig from dictionary."""
        config = _build(
            cls, data, {"sprocket_filter": BranchConfig, "edge_filter": BranchConfig}
        )
        config.validate()
        return config


@dataclass(frozen=True)
class SeparatorConfig(_JsonConfigMixin):
    """Configuration for locating the blank spacers between frames."""

    strip_x: int = 0
    strip_width: int = 40
    spacer_area: int = 1000
    area_tolerance: int = 50
    bright_threshold: int = 200
    edge_threshold: int = 100
    min_edge_length: int = 40
    resized_image_width: int | None = None

    def validate(self) -> None:
        """Validate the configuration."""
        if self.strip_x < 0:
            raise ValueError(f"strip_x must be >= 0, got {self.strip_x}")
        _check_positive("strip_width", self.strip_width)
        _check_positive("spacer_area", self.spacer_area)
        _check_positive("resized_image_width", self.resized_image_width, allow_none=True)
        if self.area_tolerance < 0:
            raise ValueError(f"area_tolerance must be >= 0, got {self.area_tolerance}")
        if self.min_edge_length < 0:
            raise ValueError(f"min_edge_length must be >= 0, got {self.min_edge_length}")
        # An edge spanning the strip traces about 2 * strip_width points
        if self.min_edge_length >= 2 * self.strip_width:
            raise ValueError(
                f"min_edge_length ({self.min_edge_length}) must be < 2 * strip_width "
                f"({2 * self.strip_width}) or no separator edge can pass"
            )
        for name in ("bright_threshold", "edge_threshold"):
            value = getattr(self, name)
            if not (0 <= value <= 255):
                raise ValueError(f"{name} must be 0-255, got {value}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SeparatorConfig:
        """Create SeparatorConfig from dictionary."""
        config = _build(cls, data)
        config.validate()
        return config
