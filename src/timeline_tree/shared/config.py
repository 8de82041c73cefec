"""Configuration classes for timeline tree building.

This module provides configuration objects for the builder, the output
validator, and the presentation settings that travel with a finished tree to
whatever renders it.
"""

import json
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

DEFAULT_FONT_FAMILY = (
    "'Noto Sans TC', 'PingFang TC', 'Microsoft JhengHei', sans-serif"
)

_COMPONENTS = ["builder", "render", "theme", "global_"]


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def _check_color(name: str, value: str) -> None:
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise ValueError(f"{name} must be a hex color like '#a67a44', got {value!r}")


def _type_value(element_type: Any) -> str:
    # Accept ElementType members and their plain string values alike
    return str(getattr(element_type, "value", element_type))


@dataclass
class BuilderConfig:
    """Configuration for tree building."""

    type_field: str = "type"
    accept_aliases: bool = True
    validate_output: bool = False
    collect_diagnostics: bool = True
    track_memory: bool = False

    def __post_init__(self) -> None:
        """Validate builder configuration."""
        if not isinstance(self.type_field, str) or not self.type_field:
            raise ValueError("type_field must be a non-empty string")


@dataclass
class RecordTheme:
    """Colours applied to record content."""

    title_color: str = "#a67a44"
    color: str = "#404040"
    strong_color: str = "#262626"
    link_color: str = "#a67a44"
    link_underline_color: str = "#d8d8d8"

    def __post_init__(self) -> None:
        for name in (
            "title_color", "color", "strong_color", "link_color", "link_underline_color"
        ):
            _check_color(name, getattr(self, name))


@dataclass
class HeadingTheme:
    """Colours applied to a heading block."""

    color: str = "#fff"
    background: str = "#000"

    def __post_init__(self) -> None:
        _check_color("color", self.color)
        _check_color("background", self.background)


@dataclass
class ThemeConfig:
    """Visual theme handed to the renderer alongside the tree.

    The builder never reads it; it is kept here so one configuration file can
    describe both how a timeline is structured and how it is painted.
    """

    font_family: str = DEFAULT_FONT_FAMILY
    record: RecordTheme = field(default_factory=RecordTheme)
    unit_heading: HeadingTheme = field(default_factory=HeadingTheme)
    group_heading: HeadingTheme = field(
        default_factory=lambda: HeadingTheme(color="#fff", background="#a67a44")
    )

    def __post_init__(self) -> None:
        """Validate theme configuration."""
        if not self.font_family:
            raise ValueError("font_family cannot be empty")

    def for_element(self, element_type: Any) -> Union[RecordTheme, HeadingTheme]:
        """Return the theme block for an element type."""
        value = _type_value(element_type)
        if value == "record":
            return self.record
        if value == "unit-heading":
            return self.unit_heading
        if value == "group-heading":
            return self.group_heading
        raise ValueError(f"No theme entry for element type {value!r}")


@dataclass
class RenderConfig:
    """Rendering hints for the consumer of a built tree."""

    emphasized_level: Optional[str] = None  # "unit", "group" or None
    max_heading_tag_level: int = 2

    def __post_init__(self) -> None:
        """Validate render configuration."""
        if self.emphasized_level not in (None, "unit", "group"):
            raise ValueError("emphasized_level must be 'unit', 'group' or None")
        if not isinstance(self.max_heading_tag_level, int):
            raise ValueError("max_heading_tag_level must be an integer")
        # the unit heading sits one tag level below the group heading
        if not (1 <= self.max_heading_tag_level <= 5):
            raise ValueError("max_heading_tag_level must be between 1 and 5")

    def heading_tag(self, element_type: Any) -> str:
        """HTML heading tag for a heading element, e.g. ``h2`` for group headings."""
        value = _type_value(element_type)
        if value == "group-heading":
            return f"h{self.max_heading_tag_level}"
        if value == "unit-heading":
            return f"h{self.max_heading_tag_level + 1}"
        raise ValueError(f"{value!r} is not a heading element type")


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


@dataclass(frozen=True)
class TimelineConfig:
    """Complete configuration for building and presenting timelines.

    Immutable; use :meth:`override` to derive variants. Safe to share between
    threads and to pickle into worker processes.
    """

    builder: BuilderConfig = field(default_factory=BuilderConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    theme: ThemeConfig = field(default_factory=ThemeConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    version: str = "1.0.0"
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.builder.__post_init__()
            self.render.__post_init__()
            self.theme.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def strict(cls) -> "TimelineConfig":
        """Canonical type names only, and every built tree is re-checked."""
        return cls(
            builder=BuilderConfig(accept_aliases=False, validate_output=True),
            name="strict",
        )

    @classmethod
    def lenient(cls) -> "TimelineConfig":
        """Accept spreadsheet aliases and skip output validation."""
        return cls(name="lenient")

    def override(self, **kwargs: Any) -> "TimelineConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = TimelineConfig().override(
            ...     builder__validate_output=True,
            ...     render__emphasized_level="unit",
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if key.startswith("global___"):
                component, field_name = "global_", key[len("global___"):]
                nested_overrides.setdefault(component, {})[field_name] = value
            elif "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        try:
            for field_name in _COMPONENTS:
                current_config = getattr(self, field_name)
                if field_name in nested_overrides:
                    new_fields[field_name] = replace(
                        current_config, **nested_overrides[field_name]
                    )
                else:
                    new_fields[field_name] = current_config

            for key, value in nested_overrides.items():
                if key not in _COMPONENTS:
                    new_fields[key] = value

            return replace(self, **new_fields)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface
        instead of being silently ignored.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            if not isinstance(data_dict, dict):
                raise ConfigValidationError(
                    f"Expected an object for {target_class.__name__}, "
                    f"got {type(data_dict).__name__}"
                )
            fields_by_name = target_class.__dataclass_fields__
            unknown = sorted(set(data_dict) - set(fields_by_name))
            if unknown:
                raise ConfigValidationError(
                    f"Unknown {target_class.__name__} field(s): {', '.join(unknown)}",
                    field_name=unknown[0],
                    suggestions=sorted(fields_by_name),
                )

            field_values: Dict[str, Any] = {}
            for field_name, field_info in fields_by_name.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                if hasattr(field_info.type, "__dataclass_fields__"):
                    field_values[field_name] = _dict_to_dataclass(value, field_info.type)
                else:
                    field_values[field_name] = value
            return target_class(**field_values)

        try:
            return _dict_to_dataclass(data, cls)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "TimelineConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path) -> "TimelineConfig":
        """Load configuration from a JSON file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration file {path}: {e}") from e
        return cls.from_json(text)
