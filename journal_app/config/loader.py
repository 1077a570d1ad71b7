"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    DashboardParams,
    JournalConfig,
    LedgerParams,
    LoggingParams,
    RiskParams,
    SettingsParams,
    StorageParams,
    get_default_config,
)
from .validation import ConfigIssue, ConfigValidator

CONFIG_FILE_NAME = "journal.yaml"

SECTION_TYPES = {
    "ledger": LedgerParams,
    "risk": RiskParams,
    "dashboard": DashboardParams,
    "settings": SettingsParams,
    "logging": LoggingParams,
    "storage": StorageParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: JournalConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from journal.yaml, empty when the file is absent."""
        if not self.config_file.exists():
            return {}

        try:
            with open(self.config_file) as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Cannot parse {self.config_file}: {e}",
                field=str(self.config_file)
            ) from e

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"{self.config_file} must contain a mapping",
                field=str(self.config_file),
                value=file_config
            )
        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. journal.yaml in the config directory
        3. Built-in defaults (lowest priority)
        """
        # Start with built-in defaults
        config = self._dataclass_to_dict(self.defaults)

        # Apply file overrides
        config = self._deep_merge(config, self.load_file_config())

        # Apply explicit overrides
        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> JournalConfig:
        """
        Build a validated, typed configuration.

        Raises:
            ConfigurationError: If any value fails validation
        """
        merged = self.merge_config(overrides)

        issues = self._unknown_keys(merged)
        issues.extend(ConfigValidator.validate_config(merged))
        if issues:
            summary = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
            raise ConfigurationError(f"Invalid configuration: {summary}", issues=issues)

        return JournalConfig(**{
            name: section_type(**merged[name])
            for name, section_type in SECTION_TYPES.items()
        })

    def _unknown_keys(self, config: dict[str, Any]) -> list[ConfigIssue]:
        issues = []
        for name, value in config.items():
            section_type = SECTION_TYPES.get(name)
            if section_type is None:
                issues.append(ConfigIssue(field=name, message="Unknown section", value=value))
                continue
            if not isinstance(value, dict):
                issues.append(ConfigIssue(field=name, message="Must be a mapping", value=value))
                continue
            known = {f.name for f in fields(section_type)}
            for key in value:
                if key not in known:
                    issues.append(ConfigIssue(
                        field=f"{name}.{key}",
                        message="Unknown parameter",
                        value=value[key]
                    ))
        return issues

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_config(config_dir: Optional[Path] = None,
                overrides: Optional[dict[str, Any]] = None) -> JournalConfig:
    """Load the journal configuration from a directory."""
    return ConfigLoader.create(config_dir).load(overrides)
