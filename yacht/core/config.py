"""Configuration management with environment variable integration and validation."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from .types import YachtConfig
from .errors import ConfigurationError

# Looked up in the home directory when no config file is given
DEFAULT_CONFIG_NAMES = (".yacht.yml", ".yacht.yaml")


def load_env_overrides(prefix: str = "YACHT_") -> Dict[str, Any]:
    """Load environment variables with the given prefix and convert to appropriate types."""
    overrides: Dict[str, Any] = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            field_name = key[len(prefix) :].lower()

            # Nested configuration, e.g. YACHT_SCYLLA__BUILDDIR
            if "__" in field_name:
                parts = field_name.split("__")
                if len(parts) == 2:
                    section, sub_field = parts
                    section_model = _field_annotation(YachtConfig, section)
                    annotation = None
                    if isinstance(section_model, type) and issubclass(section_model, BaseModel):
                        annotation = _field_annotation(section_model, sub_field)
                    overrides.setdefault(section, {})[sub_field] = _coerce_env_value(
                        value, annotation
                    )
                continue

            overrides[field_name] = _coerce_env_value(
                value, _field_annotation(YachtConfig, field_name)
            )

    return overrides


def _convert_env_value(value: str) -> Any:
    """Convert string environment value to appropriate Python type."""
    if not value:
        return None

    # Try to convert to int first (before boolean check)
    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    if value.lower() in ("true", "yes", "on"):
        return True
    elif value.lower() in ("false", "no", "off"):
        return False

    return value


def _field_annotation(model: Type[BaseModel], name: str) -> Any:
    """Type of a model field with Optional unwrapped, None for unknown fields."""
    field = model.model_fields.get(name)
    if field is None:
        return None
    annotation = field.annotation
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            annotation = args[0]
    return annotation


def _coerce_env_value(value: str, annotation: Any) -> Any:
    """Convert an environment value according to the field it overrides."""
    if get_origin(annotation) is list:
        # Comma-separated
        return [item.strip() for item in value.split(",") if item.strip()]
    if annotation in (str, Path):
        return value
    return _convert_env_value(value)


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overrides into base, recursing into nested sections."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def find_default_config_file(home: Optional[Path] = None) -> Optional[Path]:
    """Return the first ~/.yacht.yml or ~/.yacht.yaml that exists."""
    home = home or Path.home()
    for name in DEFAULT_CONFIG_NAMES:
        candidate = home / name
        if candidate.is_file():
            return candidate
    return None


class ConfigManager:
    """Central configuration management."""

    def __init__(self) -> None:
        self._config: Optional[YachtConfig] = None
        self._config_file: Optional[Path] = None

    @property
    def config_file(self) -> Optional[Path]:
        """The configuration file the current config was loaded from."""
        return self._config_file

    def load_config(
        self, config_file: Optional[Path] = None, **overrides: Any
    ) -> YachtConfig:
        """Load configuration from file and environment with CLI overrides.

        Precedence, highest first: CLI overrides, YACHT_* environment
        variables, config file data, model defaults.
        """
        config_data: Dict[str, Any] = {}

        if config_file is None:
            config_file = find_default_config_file()
        elif not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")

        if config_file is not None:
            config_data = _merge(config_data, self._load_from_file(config_file))
        self._config_file = config_file

        config_data = _merge(config_data, load_env_overrides())

        # CLI passes None for options the user did not set
        config_data = _merge(
            config_data, {k: v for k, v in overrides.items() if v is not None}
        )

        try:
            self._config = YachtConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        self._config = self._config.model_copy(
            update={
                "vardir": self._config.vardir.expanduser().absolute(),
                "scylla": self._config.scylla.model_copy(  # pylint: disable=no-member
                    update={
                        "builddir": self._config.scylla.builddir.expanduser().absolute(),  # pylint: disable=no-member
                        "srcdir": self._config.scylla.srcdir.expanduser().absolute(),  # pylint: disable=no-member
                    }
                ),
            }
        )
        return self._config

    def get_config(self) -> YachtConfig:
        """Get current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def _load_from_file(self, config_file: Path) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if config_file.suffix.lower() not in (".yml", ".yaml"):
            raise ConfigurationError(
                f"Unsupported config file format: {config_file.suffix}"
            )
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_file}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {config_file} must contain a mapping"
            )
        return data


# Global config manager instance
_config_manager = ConfigManager()


def load_config(**kwargs: Any) -> YachtConfig:
    """Load global configuration."""
    return _config_manager.load_config(**kwargs)


def get_config() -> YachtConfig:
    """Get current global configuration."""
    return _config_manager.get_config()


def get_config_file() -> Optional[Path]:
    """Configuration file used by the last load, if any."""
    return _config_manager.config_file
