"""Configuration classes for structured text conversion.

This module provides configuration objects for the tree converter, the markup
builder and the line validator. Every component validates itself in
``__post_init__``; ``CoreConfig`` aggregates them immutably.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"

_COMPONENTS = ("converter", "validator", "builder")


@dataclass
class ConverterConfig:
    """Configuration for XML to JSON conversion."""

    attributes_key: str = ATTRIBUTES_KEY
    text_key: str = TEXT_KEY
    text_joiner: str = " "
    include_namespace_declarations: bool = True
    huge_tree: bool = False

    def __post_init__(self) -> None:
        """Validate converter configuration."""
        if not self.attributes_key:
            raise ValueError("attributes_key cannot be empty")
        if not self.text_key:
            raise ValueError("text_key cannot be empty")
        if self.attributes_key == self.text_key:
            raise ValueError("attributes_key and text_key must differ")


@dataclass
class ValidatorConfig:
    """Configuration for JSON Lines validation."""

    allow_nan: bool = False
    max_line_length: Optional[int] = None
    array_indent: Optional[int] = 2

    def __post_init__(self) -> None:
        """Validate line validator configuration."""
        if self.max_line_length is not None and self.max_line_length <= 0:
            raise ValueError("max_line_length must be > 0 or None")
        if self.array_indent is not None and self.array_indent < 0:
            raise ValueError("array_indent must be >= 0 or None")


@dataclass
class BuilderConfig:
    """Configuration for JSON to XML rendering."""

    attributes_key: str = ATTRIBUTES_KEY
    text_key: str = TEXT_KEY
    root_name: str = "root"
    pretty_print: bool = True
    xml_declaration: bool = False

    def __post_init__(self) -> None:
        """Validate builder configuration."""
        if not self.root_name:
            raise ValueError("root_name cannot be empty")
        if self.attributes_key == self.text_key:
            raise ValueError("attributes_key and text_key must differ")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def _load_json_object(json_str: str) -> Dict[str, Any]:
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"Configuration is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigValidationError("Configuration must be a JSON object")
    return data


@dataclass(frozen=True)
class CoreConfig:
    """Complete configuration for all conversion components.

    Immutable: use ``override`` to derive a modified copy.
    """

    converter: ConverterConfig = field(default_factory=ConverterConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)
    builder: BuilderConfig = field(default_factory=BuilderConfig)

    version: str = "1.0.0"
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.converter.__post_init__()
            self.validator.__post_init__()
            self.builder.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        # Round trips only hold when both directions agree on reserved keys
        if (
            self.converter.attributes_key != self.builder.attributes_key
            or self.converter.text_key != self.builder.text_key
        ):
            raise ConfigValidationError(
                "Converter and builder reserved keys differ",
                suggestions=[
                    "Set converter__attributes_key and builder__attributes_key together",
                    "Set converter__text_key and builder__text_key together",
                ],
            )

    def override(self, **kwargs: Any) -> "CoreConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; component fields use the
                ``component__field`` notation

        Returns:
            New CoreConfig instance with overrides applied

        Example:
            >>> config = CoreConfig().override(validator__allow_nan=True)
            >>> config.validator.allow_nan
            True
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        try:
            for component, overrides in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **overrides)
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
            if isinstance(obj, Enum):
                return obj.name
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
    def from_dict(cls, data: Dict[str, Any]) -> "CoreConfig":
        """Create configuration from dictionary.

        Unknown component fields raise ``ConfigValidationError``.
        """
        component_types = {
            "converter": ConverterConfig,
            "validator": ValidatorConfig,
            "builder": BuilderConfig,
        }
        field_values: Dict[str, Any] = {}
        try:
            for name, value in data.items():
                if name in component_types:
                    if not isinstance(value, dict):
                        raise ConfigValidationError(
                            f"Section '{name}' must be an object", field_name=name
                        )
                    field_values[name] = component_types[name](**value)
                elif name in ("version", "name", "description"):
                    field_values[name] = value
                else:
                    raise ConfigValidationError(
                        f"Unknown configuration section: {name}", field_name=name
                    )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e
        return cls(**field_values)

    @classmethod
    def from_json(cls, json_str: str) -> "CoreConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(_load_json_object(json_str))

    def merge_json(self, json_str: str) -> "CoreConfig":
        """Layer a JSON configuration document over this configuration.

        Fields present in the document replace the current values; every
        other field, including whole sections the document omits, is kept.

        Example:
            >>> config = CoreConfig.compact().merge_json('{"validator": {"allow_nan": true}}')
            >>> (config.validator.allow_nan, config.validator.array_indent)
            (True, None)
        """
        merged = self.to_dict()
        for name, value in _load_json_object(json_str).items():
            if isinstance(value, dict) and isinstance(merged.get(name), dict):
                merged[name] = {**merged[name], **value}
            else:
                merged[name] = value
        return self.from_dict(merged)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "CoreConfig":
        """Preset accepting strict JSON and well-formed XML only."""
        return cls(name="strict", description="Strict JSON and well-formed XML only")

    @classmethod
    def lenient(cls) -> "CoreConfig":
        """Preset accepting NaN/Infinity literals and very large documents."""
        return cls(
            converter=ConverterConfig(huge_tree=True),
            validator=ValidatorConfig(allow_nan=True),
            name="lenient",
            description="Accepts non-standard JSON constants and huge XML trees",
        )

    @classmethod
    def compact(cls) -> "CoreConfig":
        """Preset producing single-line output."""
        return cls(
            validator=ValidatorConfig(array_indent=None),
            builder=BuilderConfig(pretty_print=False),
            name="compact",
            description="Single-line JSON arrays and unindented XML",
        )

    @classmethod
    def preset(cls, name: str) -> "CoreConfig":
        """Look up a preset by name."""
        presets = {
            "strict": cls.strict,
            "lenient": cls.lenient,
            "compact": cls.compact,
        }
        if name not in presets:
            raise ConfigValidationError(
                f"Unknown preset: {name}", suggestions=sorted(presets)
            )
        return presets[name]()
