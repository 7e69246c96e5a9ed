"""Config Loader - Loads client configuration from YAML.

Supports ${ENV_VAR} substitution in any string value so that secrets and
per-deployment URLs stay out of the file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from sdk_http.models import ClientConfig

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigError(Exception):
    """Raised when configuration loading fails."""


def load_client_config(config_path: Path) -> ClientConfig:
    """Load client configuration from YAML with ${ENV_VAR} substitution."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _expand_env(raw_config)

    try:
        return ClientConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def _expand_env(data: Any) -> Any:
    """Expand ${ENV_VAR} references throughout a parsed client config.

    Walks nested mappings and lists so that ``default_headers`` values (API
    tokens, tenant ids) resolve as well as top-level keys like ``base_url``
    and ``ca_bundle``. Non-string scalars such as ``read_timeout_ms`` pass
    through untouched.
    """
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(_env_value, data)
    if isinstance(data, dict):
        return {key: _expand_env(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env(item) for item in data]
    return data


def _env_value(match: re.Match) -> str:
    """Value for one ${ENV_VAR} reference, e.g. the token in ``Bearer ${API_TOKEN}``.

    Raises:
        ConfigError: If the variable is not set.
    """
    name = match.group(1)
    try:
        return os.environ[name]
    except KeyError:
        raise ConfigError(f"Environment variable '{name}' is not set") from None
