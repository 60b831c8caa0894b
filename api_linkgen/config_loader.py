"""Config Loader - Loads generator configuration.

Handles loading YAML config files with environment variable substitution
and validating them into GeneratorConfig.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from api_linkgen.models import GeneratorConfig


class ConfigError(Exception):
    """Raised when configuration loading fails."""


_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def load_generator_config(config_path: Path) -> GeneratorConfig:
    """Load generator configuration from YAML with ${ENV_VAR} substitution."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    # An empty config file means "all defaults"
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _substitute_env_vars(raw_config)

    try:
        return GeneratorConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def _substitute_env_vars(data: Any, location: str = "") -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data.

    location is the dotted key path of data ('target_methods[1]'), used to
    point at the offending entry when a variable is not set.
    """
    if isinstance(data, str):
        return _substitute_string(data, location or "<root>")
    if isinstance(data, dict):
        return {
            key: _substitute_env_vars(value, f"{location}.{key}" if location else str(key))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [
            _substitute_env_vars(item, f"{location}[{index}]")
            for index, item in enumerate(data)
        ]
    return data


def _substitute_string(value: str, location: str) -> str:
    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' referenced by '{location}' is not set"
            )
        return env_value

    return _ENV_VAR_PATTERN.sub(replacer, value)
