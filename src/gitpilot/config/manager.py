"""Configuration Manager.

Loads GitPilot settings with the precedence:
    registry defaults < TOML file < environment variables

Environment variables use the GITPILOT_ prefix with dots replaced by
underscores (GITPILOT_GIT_BINARY overrides git.binary). A .env file, when
present, is loaded into the environment first.

There is no module-level instance: callers build a ConfigManager and hand it
to the repository facades.
"""

import os
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
import structlog

from .registry import (
    REGISTRY,
    get_config_key,
    get_default_values,
    validate_config_value,
)

logger = structlog.get_logger(__name__)

ENV_PREFIX = "GITPILOT_"
DEFAULT_CONFIG_FILE = Path("gitpilot.toml")
DEFAULT_ENV_FILE = Path(".env")


class ConfigManager:
    """Resolves configuration values from defaults, TOML and environment.

    Attributes:
        config: Loaded key-value pairs (empty until load() is called)
    """

    def __init__(self, config_file: Optional[Path] = None, env_file: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file (default: gitpilot.toml)
            env_file: Path to .env file (default: .env in the working directory)
        """
        self.config: dict[str, Any] = {}
        self.config_file = Path(config_file) if config_file is not None else DEFAULT_CONFIG_FILE
        self.env_file = Path(env_file) if env_file is not None else DEFAULT_ENV_FILE

    def load(self) -> dict[str, Any]:
        """Load and validate all configuration keys.

        Returns:
            Dictionary of configuration key-value pairs

        Raises:
            ValueError: If a value fails validation or an env var cannot be parsed
        """
        logger.debug("loading_config", config_file=str(self.config_file))

        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.debug("env_file_loaded", env_file=str(self.env_file))

        # Step 1: Defaults
        config = get_default_values()

        # Step 2: TOML file
        if self.config_file.exists():
            with open(self.config_file, "rb") as f:
                toml_data = tomllib.load(f)

            flattened = self._flatten_toml(toml_data)
            for key, value in flattened.items():
                if key in REGISTRY:
                    config[key] = value
                else:
                    logger.warning("unknown_config_key", key=key, config_file=str(self.config_file))

            logger.debug("toml_config_loaded", keys_count=len(flattened))

        # Step 3: Environment overrides
        for key in REGISTRY:
            env_key = ENV_PREFIX + key.replace(".", "_").upper()
            env_value = os.getenv(env_key)
            if env_value is None:
                continue
            config_key_def = get_config_key(key)
            try:
                config[key] = self._parse_env_value(env_value, config_key_def.value_type)
            except ValueError as e:
                logger.error("env_parse_error", key=key, env_key=env_key, error=str(e))
                raise ValueError(f"Failed to parse env var {env_key}: {e}") from e
            logger.debug("env_override_applied", key=key, env_key=env_key)

        # Step 4: Validate
        for key, value in config.items():
            is_valid, error_msg = validate_config_value(key, value)
            if not is_valid:
                logger.error("config_validation_failed", key=key, error=error_msg)
                raise ValueError(f"Config validation failed for '{key}': {error_msg}")

        self.config = config
        logger.debug("config_loaded", keys_count=len(config))
        return config

    def get(self, key: str) -> Any:
        """Get configuration value, falling back to the registry default.

        Raises:
            KeyError: If key not registered
        """
        config_key_def = get_config_key(key)
        return self.config.get(key, config_key_def.default)

    def _flatten_toml(self, data: dict) -> dict[str, Any]:
        """Flatten nested TOML structure to dotted keys.

        Example: {"git": {"binary": "git"}} -> {"git.binary": "git"}
        """
        result = {}

        def _flatten(d: dict, prefix: str = ""):
            for key, value in d.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    _flatten(value, full_key)
                else:
                    result[full_key] = value

        _flatten(data)
        return result

    def _parse_env_value(self, value: str, target_type: type) -> Any:
        """Parse environment variable string to target type."""
        if target_type == int:
            return int(value)
        elif target_type == str:
            return value
        else:
            raise ValueError(f"Unsupported type for env parsing: {target_type}")


def load_config(config_file: Optional[Path] = None, env_file: Optional[Path] = None) -> ConfigManager:
    """Build a ConfigManager and load it."""
    manager = ConfigManager(config_file, env_file)
    manager.load()
    return manager
