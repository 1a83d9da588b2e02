"""Configuration file loader service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .run_parameters import InterpolationMode, OutputFormat

DEFAULT_CONFIG_PATH = Path.home() / ".exectester.yaml"

_STRING_KEYS = frozenset(
    {
        "stdout",
        "stderr",
        "socket",
        "socket_send",
        "socket_exit_msg",
        "interpolate_key",
        "interpolate_val",
    }
)
_BOOL_KEYS = frozenset({"read_socket", "repeat_forever"})
_INT_KEYS = frozenset({"exitcode", "repeat"})
_SECONDS_KEYS = frozenset({"repeat_interval", "timeout", "sigterm_timeout"})
_CHOICE_KEYS: Mapping[str, tuple[str, ...]] = {
    "output_format": tuple(item.value for item in OutputFormat),
    "interpolator": tuple(item.value for item in InterpolationMode),
}

KNOWN_KEYS = _STRING_KEYS | _BOOL_KEYS | _INT_KEYS | _SECONDS_KEYS | frozenset(_CHOICE_KEYS)


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration_file(
    config_path: Path | str | None = None, *, required: bool = False
) -> dict[str, Any]:
    """Load option defaults from a YAML configuration file.

    Args:
      config_path: File to read. Falls back to ``~/.exectester.yaml`` when omitted.
      required: Whether a missing file is an error rather than an empty configuration.

    Returns:
      A mapping of option name to value, suitable for a click ``default_map``.

    Raises:
      ConfigurationError: If the file is required but missing, cannot be parsed,
        or contains unknown keys or values of the wrong type.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        if required:
            raise ConfigurationError(f"Configuration file not found: {path}")
        return {}

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    options: dict[str, Any] = {}
    for raw_key, value in parsed.items():
        key = _normalize_key(raw_key)
        if key not in KNOWN_KEYS:
            raise ConfigurationError(f"Unknown configuration key '{raw_key}'.")
        options[key] = _coerce_value(key, value)
    return options


def _normalize_key(raw_key: Any) -> str:
    if not isinstance(raw_key, str):
        raise ConfigurationError(f"Configuration key '{raw_key}' must be a string.")
    return raw_key.strip().lower().replace("-", "_")


def _coerce_value(key: str, value: Any) -> Any:
    if key in _STRING_KEYS:
        return _require_string(value, key)
    if key in _BOOL_KEYS:
        return _require_bool(value, key)
    if key in _INT_KEYS:
        number = _require_int(value, key)
        if key == "repeat" and number <= 0:
            raise ConfigurationError(f"{key} must be greater than zero.")
        return number
    if key in _SECONDS_KEYS:
        return _require_non_negative_number(value, key)
    return _require_choice(value, key, _CHOICE_KEYS[key])


def _require_string(value: Any, field_name: str) -> str:
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        raise ConfigurationError(f"{field_name} must be a string.")
    return str(value)


def _require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a boolean.")
    return value


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    return value


def _require_non_negative_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(f"{field_name} must be a number of seconds.")
    if value < 0:
        raise ConfigurationError(f"{field_name} must not be negative.")
    return float(value)


def _require_choice(value: Any, field_name: str, allowed: tuple[str, ...]) -> str:
    if not isinstance(value, str) or value not in allowed:
        raise ConfigurationError(f"{field_name} must be one of: '{', '.join(allowed)}'")
    return value
