"""Configuration Registry - Defines all GitPilot configuration keys.

Every key the ConfigManager understands is registered here with its type,
default and optional bounds. Keys are dotted paths that mirror the TOML table
layout (`[git] binary = "git"` -> "git.binary").
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass
class ConfigKey:
    """Defines a single configuration key with validation.

    Attributes:
        value_type: Expected Python type (str or int)
        default: Default value if not specified in config files
        min_value: Minimum value for numeric types (optional)
        max_value: Maximum value for numeric types (optional)
        validator: Custom validation function (optional)
        description: Short human-readable description
    """
    value_type: type
    default: Any
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    validator: Optional[Callable[[Any], bool]] = None
    description: str = ""


REGISTRY: dict[str, ConfigKey] = {
    # ===== GIT EXECUTABLE =====
    "git.binary": ConfigKey(
        value_type=str,
        default="git",
        validator=lambda v: bool(v.strip()),
        description="git executable name or absolute path",
    ),

    # ===== TIMEOUTS =====
    "git.operation_timeout_seconds": ConfigKey(
        value_type=int,
        default=60,
        min_value=1,
        max_value=3600,
        description="Timeout for local git commands",
    ),
    "git.network_timeout_seconds": ConfigKey(
        value_type=int,
        default=600,
        min_value=1,
        max_value=86400,
        description="Timeout for clone, fetch, pull and push",
    ),

    # ===== LOGGING =====
    "logging.level": ConfigKey(
        value_type=str,
        default="INFO",
        validator=lambda v: v in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    ),
    "logging.format": ConfigKey(
        value_type=str,
        default="console",
        validator=lambda v: v in ("console", "json"),
    ),
}


def get_config_key(key: str) -> ConfigKey:
    """Get configuration key definition from registry.

    Raises:
        KeyError: If key not found in registry
    """
    if key not in REGISTRY:
        raise KeyError(f"Configuration key '{key}' not found in registry")
    return REGISTRY[key]


def validate_config_value(key: str, value: Any) -> tuple[bool, Optional[str]]:
    """Validate a configuration value against its registered definition.

    Returns:
        Tuple of (is_valid, error_message)
        error_message is None if valid
    """
    try:
        config_key = get_config_key(key)
    except KeyError as e:
        return False, str(e)

    # bool is an int subclass; don't let True pass as a timeout
    if isinstance(value, bool) and config_key.value_type is not bool:
        return False, f"Expected type {config_key.value_type.__name__}, got bool"

    if not isinstance(value, config_key.value_type):
        return False, f"Expected type {config_key.value_type.__name__}, got {type(value).__name__}"

    if isinstance(value, (int, float)):
        if config_key.min_value is not None and value < config_key.min_value:
            return False, f"Value {value} below minimum {config_key.min_value}"
        if config_key.max_value is not None and value > config_key.max_value:
            return False, f"Value {value} above maximum {config_key.max_value}"

    if config_key.validator is not None:
        try:
            if not config_key.validator(value):
                return False, f"Custom validation failed for value: {value}"
        except Exception as e:
            return False, f"Validator error: {str(e)}"

    return True, None


def get_default_values() -> dict[str, Any]:
    """Get default values for all configuration keys."""
    return {key: config_key.default for key, config_key in REGISTRY.items()}
