"""
Configuration components for exnkit.
"""
from .configuration import (
    ExnConfig,
    ensure_exn_config,
    find_default_config,
    load_config_file,
    load_configuration_from_env,
    merge_configs,
)
from .loader import default_config, load_config, resolve_config

__all__ = [
    "ExnConfig",
    "ensure_exn_config",
    "find_default_config",
    "load_config_file",
    "load_configuration_from_env",
    "merge_configs",
    "load_config",
    "default_config",
    "resolve_config",
]
