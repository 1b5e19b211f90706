from frame_extractor.detection import detect_frame
from frame_extractor.separation import calibrate
from frame_extractor.visualizer import DebugVisualizer


def saved_names(directory):
    return sorted(p.name for p in directory.glob("*.png"))


def test_detection_debug_images(tmp_path, strip_bgr, config):
    visualizer = DebugVisualizer(tmp_path / "debug")
    detect_frame(strip_bgr, config, visualizer=visualizer)

    assert saved_names(tmp_path / "debug") == [
        "01_roi.png",
        "02_sprocket_edges.png",
        "03_vertical_edges.png",
        "04_sprocket_scan.png",
        "05_contours.png",
        "06_frame_rect.png",
    ]


def test_calibration_debug_images(tmp_path, spacer_image, separator_config):
    visualizer = DebugVisualizer(tmp_path / "debug")
    calibrate(spacer_image, separator_config, visualizer=visualizer)

    assert saved_names(tmp_path / "debug") == [
        "01_spacers.png",
        "02_separator_rows.png",
        "03_separator_profile.png",
    ]


def test_existing_debug_dir_is_backed_up(tmp_path):
    debug_dir = tmp_path / "debug"
    debug_dir.mkdir()
    (debug_dir / "old.png").write_bytes(b"")

    DebugVisualizer(debug_dir)

    assert not (debug_dir / "old.png").exists()
    assert (tmp_path / "debug.bak" / "old.png").exists()
