"""Tests for timeline configuration classes."""

import json
import pickle
from pathlib import Path

import pytest

from timeline_tree.shared.config import (
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    HeadingTheme,
    RecordTheme,
    RenderConfig,
    ThemeConfig,
    TimelineConfig,
)
from timeline_tree.tree import ElementType


class TestBuilderConfig:
    """Test builder configuration."""

    def test_defaults(self) -> None:
        """Test default builder settings."""
        config = BuilderConfig()
        assert config.type_field == "type"
        assert config.accept_aliases is True
        assert config.validate_output is False
        assert config.collect_diagnostics is True
        assert config.track_memory is False

    def test_empty_type_field_rejected(self) -> None:
        """Test the type field must be named."""
        with pytest.raises(ValueError, match="type_field"):
            BuilderConfig(type_field="")


class TestThemeConfig:
    """Test theme configuration."""

    def test_default_palette(self) -> None:
        """Test the default colours."""
        theme = ThemeConfig()
        assert theme.record.title_color == "#a67a44"
        assert theme.record.color == "#404040"
        assert theme.unit_heading == HeadingTheme(color="#fff", background="#000")
        assert theme.group_heading == HeadingTheme(color="#fff", background="#a67a44")
        assert "sans-serif" in theme.font_family

    def test_for_element(self) -> None:
        """Test theme lookup by element type or type name."""
        theme = ThemeConfig()
        assert theme.for_element(ElementType.RECORD) is theme.record
        assert theme.for_element("unit-heading") is theme.unit_heading
        assert theme.for_element(ElementType.GROUP_HEADING) is theme.group_heading

        with pytest.raises(ValueError):
            theme.for_element("footnote")

    @pytest.mark.parametrize("color", ["a67a44", "#12345", "#ggg", "red"])
    def test_invalid_colors_rejected(self, color: str) -> None:
        """Test colours must be hex."""
        with pytest.raises(ValueError, match="hex color"):
            HeadingTheme(color=color)

    def test_record_theme_validates_every_color(self) -> None:
        """Test each record colour is checked."""
        with pytest.raises(ValueError, match="link_underline_color"):
            RecordTheme(link_underline_color="grey")

    def test_empty_font_family_rejected(self) -> None:
        """Test a font family is required."""
        with pytest.raises(ValueError):
            ThemeConfig(font_family="")


class TestRenderConfig:
    """Test render configuration."""

    def test_heading_tags(self) -> None:
        """Test unit headings sit one level below group headings."""
        config = RenderConfig()
        assert config.heading_tag(ElementType.GROUP_HEADING) == "h2"
        assert config.heading_tag("unit-heading") == "h3"
        assert RenderConfig(max_heading_tag_level=1).heading_tag("unit-heading") == "h2"

    def test_record_has_no_heading_tag(self) -> None:
        """Test records cannot be given a heading tag."""
        with pytest.raises(ValueError):
            RenderConfig().heading_tag(ElementType.RECORD)

    @pytest.mark.parametrize("level", [0, 6])
    def test_tag_level_bounds(self, level: int) -> None:
        """Test the heading tag level leaves room for the unit heading."""
        with pytest.raises(ValueError):
            RenderConfig(max_heading_tag_level=level)

    def test_tag_level_must_be_integer(self) -> None:
        """Test a string tag level is rejected."""
        with pytest.raises(ValueError, match="integer"):
            RenderConfig(max_heading_tag_level="3")

    def test_emphasized_level(self) -> None:
        """Test emphasized level values."""
        assert RenderConfig(emphasized_level="unit").emphasized_level == "unit"
        with pytest.raises(ValueError):
            RenderConfig(emphasized_level="record")


class TestGlobalConfig:
    """Test global configuration."""

    def test_invalid_logging_level(self) -> None:
        """Test unknown logging levels are rejected."""
        with pytest.raises(ValueError):
            GlobalConfig(logging_level="VERBOSE")


class TestTimelineConfig:
    """Test the top-level configuration."""

    def test_defaults(self) -> None:
        """Test default configuration."""
        config = TimelineConfig()
        assert config.version == "1.0.0"
        assert config.name is None
        assert isinstance(config.builder, BuilderConfig)

    def test_is_frozen(self) -> None:
        """Test the configuration cannot be mutated in place."""
        config = TimelineConfig()
        with pytest.raises(AttributeError):
            config.name = "changed"

    def test_presets(self) -> None:
        """Test strict and lenient presets."""
        strict = TimelineConfig.strict()
        lenient = TimelineConfig.lenient()

        assert strict.name == "strict"
        assert strict.builder.accept_aliases is False
        assert strict.builder.validate_output is True
        assert lenient.name == "lenient"
        assert lenient.builder.accept_aliases is True

    def test_override_nested_fields(self) -> None:
        """Test overriding component fields leaves the original untouched."""
        config = TimelineConfig()

        new_config = config.override(
            builder__validate_output=True,
            render__emphasized_level="group",
            global___logging_level="DEBUG",
            name="custom",
        )

        assert new_config.builder.validate_output is True
        assert new_config.render.emphasized_level == "group"
        assert new_config.global_.logging_level == "DEBUG"
        assert new_config.name == "custom"
        assert config.builder.validate_output is False
        assert config.global_.logging_level == "INFO"

    def test_override_unknown_component(self) -> None:
        """Test an unknown component is reported with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            TimelineConfig().override(parser__strict=True)

        assert exc_info.value.field_name == "parser__strict"
        assert "builder" in exc_info.value.suggestions

    def test_override_unknown_field(self) -> None:
        """Test an unknown field inside a component fails."""
        with pytest.raises(ConfigValidationError):
            TimelineConfig().override(builder__nonexistent=1)

    def test_override_invalid_value(self) -> None:
        """Test override values are validated."""
        with pytest.raises(ConfigValidationError):
            TimelineConfig().override(render__max_heading_tag_level=9)

    def test_dict_round_trip(self) -> None:
        """Test to_dict and from_dict agree."""
        config = TimelineConfig().override(
            builder__type_field="kind",
            theme__font_family="serif",
        )

        restored = TimelineConfig.from_dict(config.to_dict())

        assert restored == config
        assert restored.theme.group_heading.background == "#a67a44"

    def test_from_dict_partial(self) -> None:
        """Test missing keys fall back to defaults."""
        config = TimelineConfig.from_dict({"builder": {"accept_aliases": False}})

        assert config.builder.accept_aliases is False
        assert config.builder.type_field == "type"
        assert config.render == RenderConfig()

    def test_from_dict_unknown_field(self) -> None:
        """Test typos are rejected with the valid names."""
        with pytest.raises(ConfigValidationError) as exc_info:
            TimelineConfig.from_dict({"builder": {"type_feild": "kind"}})

        assert exc_info.value.field_name == "type_feild"
        assert "type_field" in exc_info.value.suggestions

    def test_from_dict_wrong_shape(self) -> None:
        """Test a component that is not an object is rejected."""
        with pytest.raises(ConfigValidationError):
            TimelineConfig.from_dict({"theme": "dark"})

    def test_from_dict_invalid_value(self) -> None:
        """Test nested validation errors surface as ConfigValidationError."""
        with pytest.raises(ConfigValidationError, match="hex color"):
            TimelineConfig.from_dict({"theme": {"record": {"color": "brown"}}})

    def test_from_dict_wrong_value_type(self) -> None:
        """Test a value of the wrong type is a validation error, not a TypeError."""
        with pytest.raises(ConfigValidationError, match="integer"):
            TimelineConfig.from_dict({"render": {"max_heading_tag_level": "3"}})

    def test_json_round_trip(self) -> None:
        """Test JSON serialization."""
        config = TimelineConfig.strict()

        data = json.loads(config.to_json())
        assert data["name"] == "strict"
        assert TimelineConfig.from_json(config.to_json()) == config

    def test_from_json_invalid(self) -> None:
        """Test malformed JSON is a validation error."""
        with pytest.raises(ConfigValidationError):
            TimelineConfig.from_json("{not json")

    def test_from_file(self, tmp_path: Path) -> None:
        """Test loading from a JSON file."""
        path = tmp_path / "timeline.json"
        path.write_text(json.dumps({"render": {"emphasized_level": "unit"}}), encoding="utf-8")

        config = TimelineConfig.from_file(path)

        assert config.render.emphasized_level == "unit"

    def test_from_missing_file(self, tmp_path: Path) -> None:
        """Test an unreadable file raises ConfigError."""
        with pytest.raises(ConfigError):
            TimelineConfig.from_file(tmp_path / "missing.json")

    def test_picklable(self) -> None:
        """Test configuration can be sent to worker processes."""
        config = TimelineConfig.strict()

        assert pickle.loads(pickle.dumps(config)) == config
