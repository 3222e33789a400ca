"""
Configuration schema validation for the bridge quote engine.

Validates that all required config files exist and contain required keys.
Run at startup to fail fast on misconfiguration.
"""

from typing import Any

from config.loader import get_config


class ConfigValidationError(ValueError):
    """Raised when a required config key is missing or invalid."""

    pass


def _check_keys(config: dict[str, Any], required_keys: list[str], config_name: str) -> list[str]:
    """Check that all required keys exist in a config dict. Returns list of missing keys."""
    missing = []
    for key in required_keys:
        parts = key.split(".")
        current = config
        for part in parts:
            if not isinstance(current, dict) or part not in current:
                missing.append(key)
                break
            current = current[part]
    return missing


def validate_bridge_config(config: dict[str, Any]) -> list[str]:
    """Validate bridge.json has required fields."""
    errors = _check_keys(
        config,
        [
            "api.base_url",
            "api.timeout_seconds",
            "require_cross_chain",
            "slippage.default",
            "slippage.max_allowed",
        ],
        "bridge.json",
    )
    slippage = config.get("slippage", {})
    if not errors and not 0 <= slippage["default"] <= slippage["max_allowed"]:
        errors.append("slippage.default: must be within [0, slippage.max_allowed]")
    return errors


def validate_timing_config(config: dict[str, Any]) -> list[str]:
    """Validate timing.json has required fields."""
    errors = _check_keys(
        config,
        [
            "quotes.debounce_ms",
            "quotes.refresh_interval_seconds",
        ],
        "timing.json",
    )
    if not errors and config["quotes"]["refresh_interval_seconds"] <= 0:
        errors.append("quotes.refresh_interval_seconds: must be positive")
    return errors


def validate_gas_config(config: dict[str, Any]) -> list[str]:
    """Validate gas.json has required fields."""
    errors = _check_keys(
        config,
        [
            "default_buffer_multiplier",
            "simple_send_non_standard_multiplier",
            "chain_buffer_overrides",
            "limits.simple",
            "limits.base_token_estimate",
        ],
        "gas.json",
    )
    if not errors:
        for chain_id, multiplier in config["chain_buffer_overrides"].items():
            if not str(chain_id).isdigit():
                errors.append(f"chain_buffer_overrides.{chain_id}: chain id must be numeric")
            elif float(multiplier) <= 0:
                errors.append(f"chain_buffer_overrides.{chain_id}: multiplier must be positive")
    return errors


def validate_all_configs() -> None:
    """
    Validate all config files. Raises ConfigValidationError with details
    if any required keys are missing.
    """
    loader = get_config()
    all_errors: dict[str, list[str]] = {}

    validators = {
        "bridge.json": (loader.get_bridge_config, validate_bridge_config),
        "timing.json": (loader.get_timing_config, validate_timing_config),
        "gas.json": (loader.get_gas_config, validate_gas_config),
    }

    for config_name, (loader_fn, validator_fn) in validators.items():
        config = loader_fn()
        if not config:
            all_errors[config_name] = ["Config file is empty or not found"]
            continue
        errors = validator_fn(config)
        if errors:
            all_errors[config_name] = errors

    if all_errors:
        lines = ["Configuration validation failed:"]
        for config_name, errors in all_errors.items():
            lines.append(f"\n  {config_name}:")
            for error in errors:
                lines.append(f"    - missing: {error}")
        raise ConfigValidationError("\n".join(lines))
