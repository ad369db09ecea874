"""Tests for overlay configuration loading."""

import json

import pytest

from live_thumbs.config import DEFAULT_INTERVAL, load_config, parse_overlays, validate_interval
from live_thumbs.errors import ValidationError
from live_thumbs.overlays import (
    DynamicScript,
    FitMode,
    ImageContent,
    OverlaySpec,
    TextContent,
    TextRun,
    TextStyle,
    UnknownContent,
)

EXAMPLE_YAML = """
interval: 30
overlays:
  - x: 0.02
    y: 0.02
    width: 0.5
    height: 0.1
    content:
      type: text
      value: {type: script, body: "upper(title) + ' ' + now('%H:%M')"}
      style: {font: "48px sans-serif", fill_color: "#ffffff", stroke: false}
  - x: 0.8
    y: 0.8
    width: 0.15
    height: 0.15
    content: {type: image, url: "logo.png", fit: contain}
"""


class TestLoadConfig:

    def test_yaml_example(self, tmp_path):
        path = tmp_path / "overlays.yaml"
        path.write_text(EXAMPLE_YAML)

        config = load_config(path)

        assert config.interval == 30
        assert config.base_dir == tmp_path
        assert config.overlays == [
            OverlaySpec(0.02, 0.02, 0.5, 0.1, TextContent(
                DynamicScript("upper(title) + ' ' + now('%H:%M')"),
                TextStyle(font="48px sans-serif", fill_color="#ffffff", stroke=False),
            )),
            OverlaySpec(0.8, 0.8, 0.15, 0.15, ImageContent("logo.png", FitMode.CONTAIN)),
        ]

    def test_json_list_of_overlays(self, tmp_path):
        path = tmp_path / "overlays.json"
        path.write_text(json.dumps([
            {"x": 0, "y": 0, "width": 1, "height": 1, "content": {"type": "text", "value": "LIVE"}},
        ]))

        config = load_config(path)

        assert config.interval == DEFAULT_INTERVAL
        assert config.overlays[0].content == TextContent(TextRun("LIVE"))

    def test_interval_below_minimum(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("interval: 2\noverlays: []\n")

        with pytest.raises(ValidationError, match="5 seconds"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError, match="Could not read"):
            load_config(tmp_path / "nope.yaml")

    def test_unparseable(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text("{not json")

        with pytest.raises(ValidationError, match="Could not parse"):
            load_config(path)

    def test_scalar_document(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("just a string\n")

        with pytest.raises(ValidationError, match="must be a mapping"):
            load_config(path)


class TestParseOverlays:

    def test_none_is_empty(self):
        assert parse_overlays(None) == []

    def test_run_mapping(self):
        [overlay] = parse_overlays([
            {"x": 0, "y": 0, "width": 1, "height": 1,
             "content": {"type": "text", "value": {"type": "run", "value": "hello"}}},
        ])

        assert overlay.content.value == TextRun("hello")

    def test_image_defaults_to_stretch(self):
        [overlay] = parse_overlays([
            {"x": 0, "y": 0, "width": 1, "height": 1, "content": {"type": "image", "url": "a.png"}},
        ])

        assert overlay.content.fit == FitMode.STRETCH

    def test_unknown_type_kept_for_compositor(self):
        [overlay] = parse_overlays([
            {"x": 0, "y": 0, "width": 1, "height": 1, "content": {"type": "video", "url": "a.mp4"}},
        ])

        assert isinstance(overlay.content, UnknownContent)
        assert overlay.content.type == "video"

    @pytest.mark.parametrize("item, message", [
        ({"y": 0, "width": 1, "height": 1, "content": {"type": "text", "value": "x"}}, "'x' must be a number"),
        ({"x": True, "y": 0, "width": 1, "height": 1, "content": {"type": "text", "value": "x"}}, "'x'"),
        ({"x": 0, "y": 0, "width": 1, "height": 1}, "'content'"),
        ({"x": 0, "y": 0, "width": 1, "height": 1, "content": {"type": "text", "value": 3}}, "text value"),
        ({"x": 0, "y": 0, "width": 1, "height": 1,
          "content": {"type": "text", "value": "x", "style": {"colour": "red"}}}, "unknown style keys"),
        ({"x": 0, "y": 0, "width": 1, "height": 1, "content": {"type": "image"}}, "'url'"),
        ({"x": 0, "y": 0, "width": 1, "height": 1,
          "content": {"type": "image", "url": "a.png", "fit": "cover"}}, "fit must be"),
    ])
    def test_invalid_overlay(self, item, message):
        with pytest.raises(ValidationError, match=message):
            parse_overlays([item])

    def test_error_names_index(self):
        good = {"x": 0, "y": 0, "width": 1, "height": 1, "content": {"type": "text", "value": "x"}}

        with pytest.raises(ValidationError, match="overlay 1"):
            parse_overlays([good, {"x": 0}])

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            parse_overlays({"x": 0})


class TestValidateInterval:

    def test_minimum_accepted(self):
        assert validate_interval(5) == 5

    @pytest.mark.parametrize("value", [4, 4.99, "10", None, True])
    def test_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_interval(value)
