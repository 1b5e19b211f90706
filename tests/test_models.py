import json

import pytest

from frame_extractor.exceptions import DegenerateGeometryError
from frame_extractor.models import (
    BranchConfig,
    ExtractionConfig,
    FrameRect,
    SeparatorConfig,
    Spacer,
    make_roi,
)


def test_default_config_is_valid():
    config = ExtractionConfig()
    config.validate()
    assert not config.uses_fixed_width
    assert not config.uses_fixed_height
    assert config.scan_start_row == 1


def test_from_dict_builds_nested_branches():
    config = ExtractionConfig.from_dict(
        {
            "search_column": 880,
            "frame_width": 300,
            "edge_filter": {"threshold": 40, "dilate": True},
        }
    )
    assert config.search_column == 880
    assert config.uses_fixed_width
    assert config.edge_filter == BranchConfig(threshold=40, dilate=True, equalize=False)
    assert config.sprocket_filter == ExtractionConfig().sprocket_filter


def test_json_round_trip():
    config = ExtractionConfig(search_column=12, frame_height=480)
    assert ExtractionConfig.from_json(config.to_json()) == config


def test_from_file(tmp_path):
    path = tmp_path / "rig.json"
    path.write_text(json.dumps({"strip_x": 860, "spacer_area": 2400}))
    config = SeparatorConfig.from_file(path)
    assert config.strip_x == 860
    assert config.area_tolerance == 50


@pytest.mark.parametrize(
    "data",
    [
        {"unknown_option": 1},
        {"sprocket_filter": {"threshold": 300}},
        {"scan_start_row": 2},
        {"frame_width": 0},
        {"distance_between_sprockets": -1},
        {"roi_top": -5},
    ],
)
def test_invalid_extraction_config(data):
    with pytest.raises(ValueError):
        ExtractionConfig.from_dict(data)


def test_invalid_separator_config():
    with pytest.raises(ValueError):
        SeparatorConfig.from_dict({"bright_threshold": 256})


def test_overrides_skip_none_and_validate():
    config = ExtractionConfig(search_column=5)
    assert config.with_overrides(search_column=None, frame_width=200).search_column == 5
    with pytest.raises(ValueError):
        config.with_overrides(frame_height=-1)


def test_make_roi_defaults_to_image_bottom():
    roi = make_roi((400, 600, 3), 100)
    assert (roi.x, roi.y, roi.width, roi.height) == (0, 100, 600, 300)


@pytest.mark.parametrize("top, height", [(400, None), (350, 100), (0, 0)])
def test_make_roi_rejects_out_of_bounds(top, height):
    with pytest.raises(DegenerateGeometryError):
        make_roi((400, 600), top, height)


def test_frame_rect_bounds():
    rect = FrameRect(180, 50, 300, 480)
    assert rect.as_bounds() == [180, 480, 50, 530]
    assert rect.fits_within(1000, 1000)
    assert not FrameRect(900, 50, 300, 480).fits_within(1000, 1000)


def test_spacer_extent():
    spacer = Spacer(10, 40, 30, 20)
    assert spacer.area == 600
    assert (spacer.top, spacer.bottom) == (40, 60)
