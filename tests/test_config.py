"""Tests for SlideExportConfig."""

from __future__ import annotations

import json

import pytest
import yaml
from pydantic import ValidationError

from slidekit_html.config import ListConfig, SlideExportConfig


@pytest.mark.unit
class TestSlideExportConfigDefaults:
    """Test default configuration values."""

    def test_default_parser_version(self):
        config = SlideExportConfig()
        assert config.parser_version == "slidekit_html:0.1.0"

    def test_default_page_is_16_by_9(self):
        config = SlideExportConfig()
        assert config.page_width_in == 10.0
        assert config.page_height_in == 5.625

    def test_default_file_name(self):
        assert SlideExportConfig().file_name == "export.pptx"

    def test_svg_rasterized_by_default(self):
        assert SlideExportConfig().svg_as_vector is False

    def test_default_list_config_empty(self):
        list_config = SlideExportConfig().list_config
        assert list_config.color is None
        assert list_config.spacing_before is None
        assert list_config.spacing_after is None

    def test_default_log_flags(self):
        config = SlideExportConfig()
        assert config.log_asset_failures is True
        assert config.log_draw_commands is False


@pytest.mark.unit
class TestSlideExportConfigCustom:
    """Test custom configuration values."""

    def test_custom_page_size(self):
        config = SlideExportConfig(page_width_in=13.333, page_height_in=7.5)
        assert config.page_width_in == 13.333

    def test_nested_list_config(self):
        config = SlideExportConfig(list_config={"color": "#FF0000", "spacing_after": 6})
        assert isinstance(config.list_config, ListConfig)
        assert config.list_config.color == "#FF0000"
        assert config.list_config.spacing_after == 6

    def test_zero_page_width_rejected(self):
        with pytest.raises(ValidationError):
            SlideExportConfig(page_width_in=0)

    def test_supersample_must_be_positive(self):
        with pytest.raises(ValidationError):
            SlideExportConfig(image_supersample=0)


@pytest.mark.unit
class TestSlideExportConfigFromFile:
    """Test from_file() classmethod."""

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"svg_as_vector": True, "page_width_in": 13.333}))
        config = SlideExportConfig.from_file(str(path))
        assert config.svg_as_vector is True
        assert config.page_width_in == 13.333
        assert config.page_height_in == 5.625

    def test_from_yml_extension(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(yaml.dump({"file_name": "deck.pptx"}))
        assert SlideExportConfig.from_file(str(path)).file_name == "deck.pptx"

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"list_config": {"color": "#336699"}}))
        config = SlideExportConfig.from_file(str(path))
        assert config.list_config.color == "#336699"

    def test_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SlideExportConfig.from_file(str(path)) == SlideExportConfig()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SlideExportConfig.from_file(str(tmp_path / "missing.yaml"))

    def test_unsupported_extension_raises(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("svg_as_vector = true")
        with pytest.raises(ValueError, match="Unsupported config file extension"):
            SlideExportConfig.from_file(str(path))
