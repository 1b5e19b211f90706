"""Sprocket-guided frame extraction for scanned film strips."""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy import to avoid loading cv2 for CLI subcommands that don't need it."""
    if name in ("crop_frame", "detect_frame"):
        from .detection import crop_frame, detect_frame
        return {"crop_frame": crop_frame, "detect_frame": detect_frame}[name]
    if name in ("calibrate", "locate_spacers"):
        from .separation import calibrate, locate_spacers
        return {"calibrate": calibrate, "locate_spacers": locate_spacers}[name]
    if name in ("ExtractionConfig", "FrameRect", "SeparatorConfig"):
        from .models import ExtractionConfig, FrameRect, SeparatorConfig
        return {
            "ExtractionConfig": ExtractionConfig,
            "FrameRect": FrameRect,
            "SeparatorConfig": SeparatorConfig,
        }[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "detect_frame",
    "crop_frame",
    "calibrate",
    "locate_spacers",
    "ExtractionConfig",
    "SeparatorConfig",
    "FrameRect",
]
