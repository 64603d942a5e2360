"""
Centralized configuration loading for exnkit.

``default_config`` is the single initialization entry point: it reads
files and environment once and caches the resulting immutable
configuration. Functions that render errors take an explicit
``config`` argument and only fall back to it when none is given.
"""
import functools
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..error.exceptions import ConfigurationError
from .configuration import (
    DEFAULT_ENV_PREFIX,
    ExnConfig,
    ensure_exn_config,
    find_default_config,
    load_config_file,
    load_configuration_from_env,
    merge_configs,
)

logger = logging.getLogger(__name__)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    defaults: Optional[Dict[str, Any]] = None,
) -> ExnConfig:
    """
    Load configuration from files and environment.

    Args:
        config_path: Path to the configuration file (optional)
        env_prefix: Prefix for environment variables to consider
        defaults: Default configuration values

    Returns:
        ExnConfig with defaults, then file settings, then environment applied
    """
    config = dict(defaults or {})

    if config_path:
        logger.info(f"Loading configuration from {config_path}")
        file_config = load_config_file(config_path)
    else:
        file_config = find_default_config() or {}
    config = merge_configs(config, file_config)

    # Environment takes precedence
    config = merge_configs(config, load_configuration_from_env(env_prefix))

    return ensure_exn_config(config)


@functools.lru_cache(maxsize=None)
def default_config() -> ExnConfig:
    """Configuration used when a caller does not pass one explicitly."""
    return load_config()


def resolve_config(config: Union[ExnConfig, Dict[str, Any], None] = None) -> ExnConfig:
    """
    Return ``config`` as an ExnConfig, or the default configuration when None.

    An explicit ``config`` that does not validate raises ConfigurationError.
    A broken default configuration (config file or ``EXNKIT_*`` variable)
    does not: rendering must keep working, so it is logged and the built-in
    defaults are used instead.
    """
    if config is not None:
        return ensure_exn_config(config)
    try:
        return default_config()
    except ConfigurationError as e:
        logger.debug(f"Ignoring invalid default configuration: {e.message}")
        return ExnConfig()
