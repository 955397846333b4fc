"""Configuration for GitPilot."""

from .manager import ConfigManager, load_config
from .registry import REGISTRY, ConfigKey, get_config_key, validate_config_value

__all__ = [
    "ConfigManager",
    "ConfigKey",
    "REGISTRY",
    "get_config_key",
    "load_config",
    "validate_config_value",
]
