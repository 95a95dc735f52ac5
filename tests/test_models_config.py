"""Tests for configuration models and option resolution."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from preview_images.errors import ConfigError
from preview_images.models.config import (
    PreviewConfig,
    ScreenshotOptions,
    ViewportConfig,
    WaitConfig,
    resolve_options,
)


class TestNestedModels:
    """Tests for the nested option records."""

    def test_viewport_defaults(self):
        config = ViewportConfig()
        assert config.width == 1920
        assert config.height == 1080
        assert config.device_scale_factor == 1.0

    def test_screenshot_defaults(self):
        config = ScreenshotOptions()
        assert config.type == "png"
        assert config.full_page is False
        assert config.quality is None
        assert config.omit_background is False

    def test_wait_defaults(self):
        config = WaitConfig()
        assert config.until == "networkidle"
        assert config.settle_ms == 500
        assert config.timeout_ms == 30000

    def test_unknown_image_type_rejected(self):
        with pytest.raises(ValidationError):
            ScreenshotOptions(type="gif")


class TestPreviewConfigDefaults:
    """Tests for PreviewConfig defaults."""

    def test_default_values(self):
        config = PreviewConfig()
        assert config.patterns == ["**/*.html", "**/*.htm"]
        assert config.host == "localhost"
        assert config.port == 3000
        assert config.selector is None
        assert config.output_path == "swap_extension"
        assert config.output_dir is None
        assert config.post_process == "none"
        assert config.remove_original_files is False
        assert config.include_buffer is True
        assert config.max_concurrency == 4
        assert config.headless is True

    def test_frozen(self):
        config = PreviewConfig()
        with pytest.raises(ValidationError):
            config.port = 8080

    def test_defaults_not_shared_between_instances(self):
        a = PreviewConfig()
        b = PreviewConfig()
        assert a.patterns == b.patterns
        assert a.patterns is not b.patterns

    def test_single_pattern_string_is_wrapped(self):
        config = PreviewConfig(patterns="pages/*.html")
        assert config.patterns == ["pages/*.html"]

    def test_negative_port_passes_through(self):
        """Values are not range-checked; the server rejects them at bind time."""
        config = PreviewConfig(port=-1)
        assert config.port == -1

    def test_callable_fields_accepted(self):
        def policy(base_dir, rel, ext):
            return None

        def shrink(buffer):
            return buffer

        config = PreviewConfig(output_path=policy, post_process=shrink)
        assert config.output_path is policy
        assert config.post_process is shrink

    def test_unknown_strategy_name_rejected(self):
        with pytest.raises(ValidationError):
            PreviewConfig(output_path="somewhere_else")


class TestResolveOptions:
    """Tests for merging caller options over defaults."""

    def test_none_gives_defaults(self):
        assert resolve_options() == PreviewConfig()

    def test_omitted_fields_keep_defaults(self):
        config = resolve_options({"port": 8080, "remove_original_files": True})
        defaults = PreviewConfig()
        assert config.port == 8080
        assert config.remove_original_files is True
        for name in PreviewConfig.model_fields:
            if name not in ("port", "remove_original_files"):
                assert getattr(config, name) == getattr(defaults, name), name

    def test_partial_nested_override_keeps_sibling_defaults(self):
        config = resolve_options({"screenshot": {"full_page": True}})
        assert config.screenshot.full_page is True
        assert config.screenshot.type == "png"
        assert config.screenshot.timeout_ms == 30000

    def test_partial_viewport_override(self):
        config = resolve_options(viewport={"width": 480})
        assert config.viewport.width == 480
        assert config.viewport.height == 1080

    def test_keyword_overrides_win(self):
        config = resolve_options({"port": 8080}, port=9090)
        assert config.port == 9090

    def test_existing_config_returned_unchanged(self):
        config = PreviewConfig(port=4000)
        assert resolve_options(config) is config

    def test_existing_config_with_overrides(self):
        config = PreviewConfig(port=4000, selector="#card")
        merged = resolve_options(config, include_buffer=False)
        assert merged.port == 4000
        assert merged.selector == "#card"
        assert merged.include_buffer is False
        assert config.include_buffer is True

    def test_does_not_mutate_input_mapping(self):
        options = {"port": 8080}
        resolve_options(options, selector="main")
        assert options == {"port": 8080}


class TestPreviewConfigLoad:
    """Tests for loading configuration files."""

    def test_load_valid_config(self, tmp_path: Path):
        config_file = tmp_path / "preview.json"
        config_file.write_text(json.dumps({
            "patterns": ["**/*.html"],
            "port": 4000,
            "screenshot": {"type": "jpeg", "quality": 80},
            "output_path": "flatten",
            "post_process": "optimize",
        }))

        config = PreviewConfig.load(config_file)
        assert config.patterns == ["**/*.html"]
        assert config.port == 4000
        assert config.screenshot.type == "jpeg"
        assert config.screenshot.quality == 80
        assert config.screenshot.full_page is False
        assert config.output_path == "flatten"
        assert config.post_process == "optimize"

    def test_load_nonexistent_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            PreviewConfig.load(tmp_path / "missing.json")

    def test_load_malformed_json(self, tmp_path: Path):
        config_file = tmp_path / "broken.json"
        config_file.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid config file"):
            PreviewConfig.load(config_file)

    def test_load_invalid_values(self, tmp_path: Path):
        config_file = tmp_path / "bad.json"
        config_file.write_text(json.dumps({"screenshot": {"type": "bmp"}}))
        with pytest.raises(ConfigError):
            PreviewConfig.load(config_file)
