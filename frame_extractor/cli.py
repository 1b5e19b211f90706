"""Command-line interface for frame extraction."""

import argparse
import logging
import sys
from pathlib import Path

DEFAULT_DELIM = "_"

logger = logging.getLogger(__name__)


def write_error(output_path: str | None, message: str) -> None:
    """Write error message next to the requested output for callers to read."""
    if output_path:
        error_path = output_path + ".err"
        with open(error_path, "w") as f:
            f.write(message)


def detect_delim(filename: str) -> str | None:
    """Detect delimiter from filename by finding most common separator."""
    stem = Path(filename).stem
    for delim in ["_", "-", "."]:
        if delim in stem:
            return delim
    return None


def build_output_filename(input_path: str, prefix: str, suffix: str, delim: str) -> str:
    p = Path(input_path)
    parts = []
    if prefix:
        parts.append(prefix)
    parts.append(p.stem)
    if suffix:
        parts.append(suffix)
    return str(p.with_stem(delim.join(parts)))


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def load_config(config_cls, config_arg: str | None):
    """Load a configuration record from a JSON file path or inline JSON.

    Args:
        config_cls: ExtractionConfig or SeparatorConfig
        config_arg: Either inline JSON string or path to .json file

    Returns:
        Validated configuration (defaults if config_arg is empty)
    """
    if not config_arg:
        config = config_cls()
        config.validate()
        return config

    config_path = Path(config_arg)
    if config_path.exists() and config_path.suffix == ".json":
        return config_cls.from_file(config_path)

    try:
        return config_cls.from_json(config_arg)
    except Exception as e:
        raise ValueError(f"Invalid --config: {e}") from e


def read_image(path: str):
    import cv2

    from .exceptions import ImageReadError

    img = cv2.imread(path)
    if img is None:
        raise ImageReadError(path)
    return img


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Input image file")
    parser.add_argument(
        "-c",
        "--config",
        help="JSON configuration (inline JSON string or path to .json file)",
    )
    parser.add_argument(
        "--resize-width",
        type=int,
        help="Width the scan is resized to before detection",
    )
    parser.add_argument(
        "--debug-dir",
        help="Directory to save debug visualization images",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every stage")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")


def add_detect_arguments(parser: argparse.ArgumentParser) -> None:
    """Add frame extraction arguments to a parser."""
    add_common_arguments(parser)
    parser.add_argument("-o", "--output", help="Output filename")
    parser.add_argument("--prefix", default="", help="Prefix for output filename")
    parser.add_argument("--suffix", default="frame", help="Suffix for output filename")
    parser.add_argument(
        "--delim",
        help="Delimiter between prefix/name/suffix (auto-detected from filename if not set)",
    )
    parser.add_argument(
        "--default-delim",
        default=DEFAULT_DELIM,
        help=f"Default delimiter if not detected (default: '{DEFAULT_DELIM}')",
    )
    parser.add_argument("--roi-top", type=int, help="First row of the region searched")
    parser.add_argument("--roi-height", type=int, help="Height of the region searched")
    parser.add_argument(
        "--search-column",
        type=int,
        help="Column scanned for sprocket holes (ROI coordinates)",
    )
    parser.add_argument(
        "--frame-width",
        type=int,
        help="Calibrated frame width; anchors on the nearest right edge",
    )
    parser.add_argument(
        "--frame-height",
        type=int,
        help="Calibrated frame height; uses the first sprocket edge only",
    )
    parser.add_argument(
        "--coords",
        action="store_true",
        help="Output the frame rectangle (x y width height) instead of the cropped image",
    )


def add_calibrate_arguments(parser: argparse.ArgumentParser) -> None:
    """Add spacer calibration arguments to a parser."""
    add_common_arguments(parser)
    parser.add_argument("--strip-x", type=int, help="Left column of the calibration strip")
    parser.add_argument("--strip-width", type=int, help="Width of the calibration strip")
    parser.add_argument("--spacer-area", type=int, help="Reference spacer area in pixels")


def run_detect(args: argparse.Namespace) -> None:
    """Run frame extraction on an image."""
    import cv2

    from .detection import detect_frame
    from .exceptions import FrameDetectionError
    from .models import ExtractionConfig

    configure_logging(args.verbose, args.quiet)

    # Determine error output path (used if --output is set)
    error_output = args.output if args.output else None

    try:
        config = load_config(ExtractionConfig, args.config).with_overrides(
            resized_image_width=args.resize_width,
            roi_top=args.roi_top,
            roi_height=args.roi_height,
            search_column=args.search_column,
            frame_width=args.frame_width,
            frame_height=args.frame_height,
        )
    except ValueError as e:
        write_error(error_output, str(e))
        sys.exit(str(e))

    visualizer = None
    if args.debug_dir:
        from .visualizer import DebugVisualizer

        visualizer = DebugVisualizer(args.debug_dir)

    try:
        img = read_image(args.input)
        result = detect_frame(img, config, visualizer=visualizer)
    except FrameDetectionError as e:
        logger.error("%s: %s: %s", args.input, e.kind, e)
        write_error(error_output, e.user_message)
        sys.exit(f"{args.input}: {e.kind}: {e.user_message}")
    except Exception as e:
        msg = f"Unexpected error: {e}"
        write_error(error_output, msg)
        sys.exit(f"{args.input}: {msg}")

    rect = result.frame_rect
    logger.info("%s: frame %dx%d at (%d, %d)", args.input, rect.width, rect.height, rect.x, rect.y)

    if args.coords:
        output = f"{rect.x}\n{rect.y}\n{rect.width}\n{rect.height}"
        if args.output:
            with open(args.output, "w") as f:
                f.write(output + "\n")
        else:
            print(output)
        return

    if args.output:
        output_path = args.output
    else:
        delim = args.delim or detect_delim(args.input) or args.default_delim
        output_path = build_output_filename(args.input, args.prefix, args.suffix, delim)

    cv2.imwrite(output_path, result.crop)
    logger.info("Saved %s", output_path)


def run_calibrate(args: argparse.Namespace) -> None:
    """Locate spacers and separator edges to help choose extraction settings."""
    from .exceptions import FrameDetectionError
    from .models import SeparatorConfig
    from .separation import calibrate

    configure_logging(args.verbose, args.quiet)

    try:
        config = load_config(SeparatorConfig, args.config).with_overrides(
            resized_image_width=args.resize_width,
            strip_x=args.strip_x,
            strip_width=args.strip_width,
            spacer_area=args.spacer_area,
        )
    except ValueError as e:
        sys.exit(str(e))

    visualizer = None
    if args.debug_dir:
        from .visualizer import DebugVisualizer

        visualizer = DebugVisualizer(args.debug_dir)

    try:
        img = read_image(args.input)
        result = calibrate(img, config, visualizer=visualizer)
    except FrameDetectionError as e:
        sys.exit(f"{args.input}: {e.kind}: {e.user_message}")

    print(f"resize ratio: {result.ratio:.4f}")
    for spacer in result.candidates:
        print(f"spacer: y={spacer.top}-{spacer.bottom} area={spacer.area}")
    if result.spacers is not None:
        print(f"bottom spacer rows: {result.spacers.bottom.top}-{result.spacers.bottom.bottom}")
        print(f"top spacer rows: {result.spacers.top.top}-{result.spacers.top.bottom}")
    print("separator rows: " + " ".join(str(row) for row in result.separator_rows))


def run_config(args: argparse.Namespace) -> None:
    """Print the default configuration records."""
    from .models import ExtractionConfig, SeparatorConfig

    config_cls = SeparatorConfig if args.kind == "separator" else ExtractionConfig
    print(config_cls.default_json())


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Sprocket-guided frame extraction for scanned film strips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  frame-extractor detect strip.png --search-column 880          Extract one frame
  frame-extractor detect strip.png -c rig.json --coords         Print frame rectangle
  frame-extractor calibrate strip.png --strip-x 860 --spacer-area 2400
  frame-extractor config > rig.json                             Default settings
""",
    )
    subparsers = parser.add_subparsers(dest="command")

    detect_parser = subparsers.add_parser("detect", help="Detect and crop one frame")
    add_detect_arguments(detect_parser)
    detect_parser.set_defaults(func=run_detect)

    calibrate_parser = subparsers.add_parser(
        "calibrate", help="Locate spacers between frames to tune settings"
    )
    add_calibrate_arguments(calibrate_parser)
    calibrate_parser.set_defaults(func=run_calibrate)

    config_parser = subparsers.add_parser("config", help="Print default configuration")
    config_parser.add_argument(
        "kind",
        nargs="?",
        choices=["extraction", "separator"],
        default="extraction",
        help="Which configuration record to print (default: extraction)",
    )
    config_parser.set_defaults(func=run_config)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    args.func(args)


if __name__ == "__main__":
    main()
