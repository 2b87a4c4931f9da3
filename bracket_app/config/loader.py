"""Configuration loader with 4-tier parameter precedence."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog
import yaml

from .defaults import (
    AppConfig,
    DefaultConfig,
    ExchangeCredentials,
    ExchangeParams,
    LoggingParams,
    ThresholdParams,
    TradingParams,
    get_default_config,
)
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)

SETTINGS_FILE = "settings.yaml"

_SECTIONS = {
    "exchange": ExchangeParams,
    "trading": TradingParams,
    "thresholds": ThresholdParams,
    "logging": LoggingParams,
}

# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "BASE_PATH": ("exchange", "base_url"),
    "BRACKET_LOG_LEVEL": ("logging", "level"),
}


@dataclass(frozen=True)
class ConfigLoader:
    """Resolves AppConfig from defaults, settings file, environment and overrides."""

    config_dir: Path
    defaults: DefaultConfig
    environ: Mapping[str, str]

    @classmethod
    def create(cls, config_dir: Optional[Path] = None,
               environ: Optional[Mapping[str, str]] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
            environ=os.environ if environ is None else environ,
        )

    def load_settings_file(self) -> dict[str, Any]:
        """Load settings.yaml overrides, empty if the file is absent."""
        settings_file = self.config_dir / SETTINGS_FILE

        if not settings_file.exists():
            return {}

        with open(settings_file) as f:
            settings = yaml.safe_load(f) or {}

        if not isinstance(settings, dict):
            raise ValueError(f"{settings_file} must contain a mapping at top level")

        return settings

    def load_environment(self) -> dict[str, Any]:
        """Collect overrides from environment variables."""
        config: dict[str, Any] = {}
        for env_name, (section, key) in _ENV_OVERRIDES.items():
            value = self.environ.get(env_name)
            if value:
                config.setdefault(section, {})[key] = value
        return config

    def load_credentials(self) -> ExchangeCredentials:
        """Read the API key pair from the environment."""
        return ExchangeCredentials(
            api_key=self.environ.get("BINANCE_API_KEY", ""),
            api_secret=self.environ.get("BINANCE_API_SECRET", ""),
        )

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 4-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Environment variables
        3. settings.yaml in config_dir
        4. Defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)
        config = self._deep_merge(config, self.load_settings_file())
        config = self._deep_merge(config, self.load_environment())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> AppConfig:
        """Build the resolved AppConfig."""
        merged = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            raise ValueError(f"Invalid configuration: {'; '.join(error_msgs)}")

        sections = {
            name: self._build_section(name, section_cls, merged.get(name) or {})
            for name, section_cls in _SECTIONS.items()
        }
        return AppConfig(credentials=self.load_credentials(), **sections)

    def _build_section(self, name: str, section_cls: type, values: dict[str, Any]) -> Any:
        known = {f.name for f in fields(section_cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning("Ignoring unknown configuration keys", section=name, keys=unknown)
        return section_cls(**{k: v for k, v in values.items() if k in known})

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
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
