"""YAML loaders for the pipeline specification and account configs."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from pipewright_schemas.account import AccountConfig
from pipewright_schemas.spec import PipelineSpec
from pipewright_schemas.validation import (
    validate_account_config,
    validate_pipeline_spec_payload,
)

logger = logging.getLogger(__name__)

ACCOUNT_CONFIG_SUFFIXES = (".yml", ".yaml")


class ConfigLoadError(Exception):
    """A configuration file could not be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialize the load error.

        Args:
            path: File that failed to load.
            reason: Why it failed.
        """
        super().__init__(f"Could not load {path}: {reason}")
        self.path = path
        self.reason = reason


def _read_yaml_mapping(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigLoadError(path, "file not found") from exc
    except OSError as exc:
        raise ConfigLoadError(path, str(exc)) from exc
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path, f"invalid YAML ({exc})") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigLoadError(path, "top-level document must be a mapping")
    return payload


def load_pipeline_spec(path: Path) -> PipelineSpec:
    """Load and parse a pipewright.yml file.

    Args:
        path: Path to the specification file.

    Returns:
        PipelineSpec: Parsed specification; run the lifecycle check on it
        before deploying.

    Raises:
        ConfigLoadError: If the file is missing or not a YAML mapping.
    """
    logger.debug("Loading pipeline specification from %s", path)
    return validate_pipeline_spec_payload(_read_yaml_mapping(path))


def account_config_path(configs_path: Path, account_name: str) -> Path:
    """Return the config file for an account name.

    ``<name>.yml`` is preferred; ``<name>.yaml`` is used when only it exists.
    """
    for suffix in ACCOUNT_CONFIG_SUFFIXES:
        candidate = configs_path / f"{account_name}{suffix}"
        if candidate.exists():
            return candidate
    return configs_path / f"{account_name}{ACCOUNT_CONFIG_SUFFIXES[0]}"


def load_account_config(configs_path: Path, account_name: str) -> AccountConfig:
    """Load the configuration for a target account.

    Args:
        configs_path: Directory holding ``<account>.yml`` files.
        account_name: Account name selecting the file.

    Returns:
        AccountConfig: Validated account configuration.

    Raises:
        ConfigLoadError: If the file is missing or not a YAML mapping.
    """
    path = account_config_path(configs_path, account_name)
    logger.debug("Loading account config from %s", path)
    return validate_account_config(_read_yaml_mapping(path))
