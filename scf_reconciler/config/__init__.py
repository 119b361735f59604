"""Configuration management for scf-reconciler."""

from scf_reconciler.config.loader import (
    ConfigLoader,
    EnvironmentVariableError,
    find_config_file,
    load_config_from_dict,
    load_config_from_path,
)
from scf_reconciler.config.models import LoggingConfig, ReconcilerConfig, SCFApiConfig

__all__ = [
    "ConfigLoader",
    "EnvironmentVariableError",
    "LoggingConfig",
    "ReconcilerConfig",
    "SCFApiConfig",
    "find_config_file",
    "load_config_from_dict",
    "load_config_from_path",
]
