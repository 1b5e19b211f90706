"""Custom exceptions for frame extraction."""


class FrameDetectionError(Exception):
    """Base exception for frame detection errors."""

    kind = "frame_detection_error"

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message


class ImageReadError(FrameDetectionError):
    """Failed to read input image."""

    kind = "image_read_error"

    def __init__(self, path: str):
        super().__init__(
            f"Could not read image: {path}",
            "Could not read image file. The file may be corrupted or in an unsupported format.",
        )


class InsufficientSprocketsError(FrameDetectionError):
    """Not enough sprocket edges found at the search column."""

    kind = "insufficient_sprockets"

    def __init__(self, column: int, edge_count: int, detail: str = ""):
        msg = f"Insufficient sprocket edges at column {column} ({edge_count} found)"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(
            msg,
            "Could not find the sprocket holes. Check the search column and ROI settings.",
        )
        self.column = column
        self.edge_count = edge_count


class InsufficientEdgesError(FrameDetectionError):
    """Too few long vertical contours survived the length filter."""

    kind = "insufficient_edges"

    def __init__(self, found: int, required: int):
        super().__init__(
            f"Insufficient vertical edges: {found} found, {required} required",
            "Could not detect the frame's vertical edges. Try lowering the edge threshold "
            "or the minimum edge length.",
        )
        self.found = found
        self.required = required


class NoRightEdgeCandidateError(FrameDetectionError):
    """No vertical edge lies to the left of the search column."""

    kind = "no_right_edge_candidate"

    def __init__(self, column: int):
        super().__init__(
            f"No right edge candidate left of column {column}",
            "Could not find the frame's right edge. Check the search column setting.",
        )
        self.column = column


class DegenerateGeometryError(FrameDetectionError):
    """Computed region is empty or falls outside the image."""

    kind = "degenerate_geometry"

    def __init__(self, detail: str = ""):
        msg = f"Degenerate frame geometry: {detail}" if detail else "Degenerate frame geometry"
        super().__init__(
            msg,
            "Detected frame region is invalid. The image may require different settings.",
        )


class InsufficientSpacersError(FrameDetectionError):
    """Fewer than two spacer regions matched the reference area."""

    kind = "insufficient_spacers"

    def __init__(self, found: int):
        super().__init__(
            f"Insufficient spacers: {found} found, 2 required",
            "Could not find the blank spacers between frames. Check the strip position "
            "and reference spacer area.",
        )
        self.found = found
