"""
Configuration management for exnkit with validation.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..error.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "EXNKIT_"


class ExnConfig(BaseModel):
    """Settings threaded through rendering and top-level handling."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Rendering settings
    never_elide_backtraces: bool = Field(
        default=False,
        description="Always include the recorded backtrace in structured renderings",
    )
    backtrace_limit: Optional[int] = Field(default=None, description="Innermost frames to keep", ge=1)
    hum_indent: int = Field(default=1, description="Indentation of broken-out children", ge=0, le=8)
    hum_width: int = Field(default=78, description="Target width of human renderings", ge=20)

    # Top-level handling
    exit_code: int = Field(default=1, description="Exit status on uncaught errors", ge=1, le=255)
    uncaught_header: str = "Uncaught exception:"

    # Logging settings
    log_level: str = "INFO"
    structured_logging: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        value_upper = value.upper()
        if value_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of: {valid_levels}")
        return value_upper


def ensure_exn_config(config: Union[ExnConfig, Dict[str, Any], None] = None) -> ExnConfig:
    """
    Ensure a valid configuration.

    Args:
        config: Existing configuration, a dictionary of settings, or None for defaults

    Returns:
        Validated ExnConfig

    Raises:
        ConfigurationError: If the settings do not validate
    """
    if isinstance(config, ExnConfig):
        return config
    try:
        return ExnConfig(**(config or {}))
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {str(e)}") from e


def load_config_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from a file (YAML or JSON).

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If the file is not found or cannot be parsed
    """
    file_path = str(file_path)
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}", details={"path": file_path})

    try:
        content = path.read_text(encoding="utf-8")

        if file_path.endswith((".yaml", ".yml")):
            loaded_config = yaml.safe_load(content) or {}
        elif file_path.endswith(".json"):
            loaded_config = json.loads(content) or {}
        else:
            raise ConfigurationError(f"Unsupported config file format: {file_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format in {file_path}: {str(e)}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format in {file_path}: {str(e)}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {str(e)}") from e

    if not isinstance(loaded_config, dict):
        raise ConfigurationError(f"Configuration in {file_path} must be a mapping")

    # allow the settings to live under an "exnkit" section
    if isinstance(loaded_config.get("exnkit"), dict):
        loaded_config = loaded_config["exnkit"]

    logger.debug(f"Loaded configuration from {file_path}")
    return loaded_config


def find_default_config() -> Optional[Dict[str, Any]]:
    """
    Find and load the default configuration file from standard locations.

    Returns:
        Configuration dictionary or None if no config file found
    """
    search_paths = [
        Path.cwd() / "exnkit.yaml",
        Path.cwd() / "exnkit.yml",
        Path.cwd() / "exnkit.json",
        Path.home() / ".exnkit" / "config.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return load_config_file(path)

    logger.debug("No configuration file found, using defaults")
    return None


def load_configuration_from_env(env_prefix: str = DEFAULT_ENV_PREFIX) -> Dict[str, Any]:
    """
    Collect settings from environment variables such as ``EXNKIT_EXIT_CODE``.

    Values are left as strings; validation converts them.
    """
    env_config = {}
    for name in ExnConfig.model_fields:
        value = os.environ.get(f"{env_prefix}{name.upper()}")
        if value is not None:
            env_config[name] = value
    return env_config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result
