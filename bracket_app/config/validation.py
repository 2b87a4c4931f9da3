"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_threshold_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate bracket percentage thresholds."""
        errors = []

        for name in ("price_update_trigger", "take_profit_percentage"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive number",
                        value=value
                    ))

        # A stop loss of 100% or more would put the lower leg at or below zero
        if "stop_loss_percentage" in params:
            value = params["stop_loss_percentage"]
            if not _is_number(value) or value <= 0 or value >= 100:
                errors.append(ValidationError(
                    field="stop_loss_percentage",
                    message="Must be a number between 0 and 100 (exclusive)",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_trading_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate symbol and indicator parameters."""
        errors = []

        for name in ("rsi_period", "kline_limit"):
            if name in params:
                value = params[name]
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        for name in ("quote_asset", "default_symbol"):
            if name in params:
                value = params[name]
                if not isinstance(value, str) or not value.strip():
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a non-empty string",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_exchange_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate exchange endpoint parameters."""
        errors = []

        if "base_url" in params:
            value = params["base_url"]
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                errors.append(ValidationError(
                    field="base_url",
                    message="Must be an http(s) URL",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "thresholds" in config:
            errors.extend(ConfigValidator.validate_threshold_params(config["thresholds"]))

        if "trading" in config:
            errors.extend(ConfigValidator.validate_trading_params(config["trading"]))

        if "exchange" in config:
            errors.extend(ConfigValidator.validate_exchange_params(config["exchange"]))

        return errors
