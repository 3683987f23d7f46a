"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path

import yaml

from .schema import InsightConfig

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} and ${VAR_NAME:-default} patterns with environment values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ValueError: If a referenced environment variable without a default is not set
    """

    def replacer(match: re.Match[str]) -> str:
        var_name, default = match.group(1), match.group(2)
        value = os.environ.get(var_name)
        if value is not None:
            return value
        if default is not None:
            return default
        raise ValueError(f"Environment variable {var_name} not found")

    return _ENV_VAR_PATTERN.sub(replacer, text)


def load_config(path: Path) -> InsightConfig:
    """
    Load configuration from a YAML file with environment variable substitution.

    Values not present in the file still come from ``RUNTIME_INSIGHT_*``
    environment variables through pydantic-settings.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated InsightConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If environment variables are missing or config is invalid
        ValidationError: If config doesn't match schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open() as f:
        raw_yaml = f.read()

    config_dict = yaml.safe_load(substitute_env_vars(raw_yaml)) or {}
    if not isinstance(config_dict, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    config = InsightConfig(**config_dict)

    validate_config(config)

    return config


def validate_config(config: InsightConfig) -> None:
    """
    Perform additional cross-field validation.

    Args:
        config: Configuration to validate

    Raises:
        ValueError: If the fallback provider list is inconsistent
    """
    fallbacks = config.ai.fallback_providers

    if config.ai.provider in fallbacks:
        raise ValueError(
            f"Provider {config.ai.provider} is the primary provider and cannot also be a fallback"
        )

    if len(set(fallbacks)) != len(fallbacks):
        raise ValueError(f"Duplicate fallback providers: {fallbacks}")
