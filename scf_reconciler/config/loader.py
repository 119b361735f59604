"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from scf_reconciler.clients.exceptions import ConfigurationError
from scf_reconciler.config.models import ReconcilerConfig
from scf_reconciler.security.validation import sanitize_log_input


class EnvironmentVariableError(ConfigurationError):
    """Raised when environment variable substitution fails."""
    pass


# Only these variables (and any SCF_* variable) may be substituted into a config file
ALLOWED_ENV_VARS = {
    "LOG_LEVEL",
    "LOG_FORMAT",
    "HOME",
    "USER",
    "PWD",
    "TMPDIR",
}
ALLOWED_ENV_PREFIX = "SCF_"

# Characters that would change the meaning of the YAML document once substituted
UNSAFE_VALUE_CHARS = ["${", "#", "&", "*", "!", "|", ">", "'", '"', "`", "\n"]

CONFIG_FILENAMES = [
    "scf-reconciler.yaml",
    "scf-reconciler.yml",
    "config.yaml",
    "config.yml",
]


def _check_env_var_name(var_name: str) -> None:
    if var_name in ALLOWED_ENV_VARS or var_name.startswith(ALLOWED_ENV_PREFIX):
        return
    raise EnvironmentVariableError(
        f"Environment variable '{sanitize_log_input(var_name)}' is not allowed in configuration "
        f"files; use an {ALLOWED_ENV_PREFIX}* variable"
    )


def _check_env_value(var_name: str, value: str) -> str:
    value = value.strip()
    for char in UNSAFE_VALUE_CHARS:
        if char in value:
            raise EnvironmentVariableError(
                f"Value of environment variable '{var_name}' contains unsupported character {char!r}"
            )
    return value


class ConfigLoader:
    """Configuration loader with environment variable substitution."""

    # ${VAR_NAME} or ${VAR_NAME:default_value}
    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*?)(?::([^}]*))?\}')

    def __init__(self, require_env_vars: bool = True) -> None:
        """Initialize the configuration loader.

        Args:
            require_env_vars: Whether every referenced environment variable
                without a default must be set
        """
        self.require_env_vars = require_env_vars

    def load_config(self, config_path: Path) -> ReconcilerConfig:
        """Load and validate configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Validated ReconcilerConfig instance

        Raises:
            ConfigurationError: If loading or validation fails
        """
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            raw_content = f.read()

        substituted_content = self._substitute_env_vars(raw_content)

        try:
            config_data = yaml.safe_load(substituted_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration file must contain a YAML object")

        return load_config_from_dict(config_data)

    def _substitute_env_vars(self, content: str) -> str:
        """Substitute ``${VAR}`` and ``${VAR:default}`` references.

        Raises:
            EnvironmentVariableError: If a variable is not allowed, has an
                unsafe value or is required but missing
        """
        missing_vars: List[str] = []

        def replace_env_var(match: "re.Match[str]") -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            _check_env_var_name(var_name)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return _check_env_value(var_name, env_value)
            if default_value is not None:
                return _check_env_value(var_name, default_value)
            if self.require_env_vars:
                missing_vars.append(var_name)
            return match.group(0)

        result = self.ENV_VAR_PATTERN.sub(replace_env_var, content)

        if missing_vars:
            if len(missing_vars) == 1:
                raise EnvironmentVariableError(
                    f"Required environment variable '{missing_vars[0]}' is not set"
                )
            raise EnvironmentVariableError(
                f"Required environment variables are not set: {', '.join(sorted(set(missing_vars)))}"
            )
        return result

    def get_missing_env_vars(self, config_path: Path) -> List[str]:
        """List referenced environment variables that are unset and have no default."""
        if not config_path.exists():
            return []

        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()

        missing_vars = {
            match.group(1)
            for match in self.ENV_VAR_PATTERN.finditer(content)
            if match.group(2) is None and os.getenv(match.group(1)) is None
        }
        return sorted(missing_vars)


def load_config_from_path(config_path: Path, require_env_vars: bool = True) -> ReconcilerConfig:
    """Convenience function to load configuration from path.

    Raises:
        ConfigurationError: If loading fails
    """
    loader = ConfigLoader(require_env_vars=require_env_vars)
    return loader.load_config(config_path)


def load_config_from_dict(config_data: Dict[str, Any]) -> ReconcilerConfig:
    """Validate configuration already parsed into a dictionary.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return ReconcilerConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching up the directory tree.

    Searches for ``scf-reconciler.yaml``, ``scf-reconciler.yml``,
    ``config.yaml`` and ``config.yml``, in that order, in each directory.

    Args:
        start_path: Directory to start search from (defaults to current directory)

    Returns:
        Path to configuration file if found, None otherwise
    """
    current_path = (start_path or Path.cwd()).resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current_path / filename
            if config_path.exists():
                return config_path

        parent = current_path.parent
        if parent == current_path:
            return None
        current_path = parent
