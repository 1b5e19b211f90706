import json
import sys

import cv2
import pytest

from conftest import SEARCH_COLUMN
from frame_extractor import cli
from frame_extractor.models import ExtractionConfig


@pytest.fixture
def strip_path(tmp_path, strip_bgr):
    path = tmp_path / "roll-01_strip.png"
    cv2.imwrite(str(path), strip_bgr)
    return path


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["frame-extractor", *argv])
    cli.main()


@pytest.mark.parametrize(
    "name, delim",
    [("roll_01.png", "_"), ("roll-01.png", "-"), ("roll01.png", None)],
)
def test_detect_delim(name, delim):
    assert cli.detect_delim(name) == delim


def test_build_output_filename():
    assert cli.build_output_filename("/scans/roll_01.png", "", "frame", "_") == (
        "/scans/roll_01_frame.png"
    )
    assert cli.build_output_filename("a.tif", "x", "", "-") == "x-a.tif"


def test_load_config_inline_json():
    config = cli.load_config(ExtractionConfig, '{"search_column": 42}')
    assert config.search_column == 42


def test_load_config_rejects_garbage():
    with pytest.raises(ValueError) as excinfo:
        cli.load_config(ExtractionConfig, "{not json")
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_detect_writes_crop(monkeypatch, strip_path):
    run_cli(monkeypatch, "detect", str(strip_path), "--search-column", str(SEARCH_COLUMN))

    output = strip_path.with_name("roll-01_strip_frame.png")
    crop = cv2.imread(str(output))
    assert crop is not None
    assert crop.shape[0] > 0 and crop.shape[1] > 0


def test_detect_coords(monkeypatch, capsys, strip_path):
    run_cli(
        monkeypatch,
        "detect",
        str(strip_path),
        "--search-column",
        str(SEARCH_COLUMN),
        "--frame-width",
        "280",
        "--frame-height",
        "250",
        "--coords",
    )
    x, y, width, height = map(int, capsys.readouterr().out.split())
    assert (width, height) == (280, 250)
    assert y == 39


def test_detect_failure_writes_error_file(monkeypatch, tmp_path, strip_path):
    output = tmp_path / "out.png"
    with pytest.raises(SystemExit) as excinfo:
        run_cli(monkeypatch, "detect", str(strip_path), "--search-column", "5", "-o", str(output))

    assert "insufficient_sprockets" in str(excinfo.value.code)
    assert not output.exists()
    assert (tmp_path / "out.png.err").read_text()


def test_unreadable_image(monkeypatch, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        run_cli(monkeypatch, "detect", str(tmp_path / "missing.png"))
    assert "image_read_error" in str(excinfo.value.code)


def test_calibrate_prints_spacers(monkeypatch, capsys, tmp_path, spacer_image):
    path = tmp_path / "spacers.png"
    cv2.imwrite(str(path), spacer_image)
    run_cli(
        monkeypatch,
        "calibrate",
        str(path),
        "-c",
        '{"edge_threshold": 100, "min_edge_length": 40}',
        "--strip-x",
        "70",
        "--strip-width",
        "50",
        "--spacer-area",
        "600",
    )
    out = capsys.readouterr().out
    assert "bottom spacer rows: 250-270" in out
    assert "top spacer rows: 50-70" in out


def test_config_prints_defaults(monkeypatch, capsys):
    run_cli(monkeypatch, "config")
    assert ExtractionConfig.from_json(capsys.readouterr().out) == ExtractionConfig()


def test_no_command_prints_help(monkeypatch):
    with pytest.raises(SystemExit):
        run_cli(monkeypatch)
