"""CLI settings from the environment and the local config cache."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from pipewright_schemas.config import LoggingConfig, LogSinkConfig
from pipewright_schemas.primitives import LogSinkType

logger = logging.getLogger(__name__)

CONFIG_CACHE_ENV = "PIPEWRIGHT_CONFIG_CACHE"
DEFAULT_CONFIG_CACHE = Path.home() / ".pipewright" / "config.yml"


def config_cache_path() -> Path:
    """Return the config cache file, honouring ``PIPEWRIGHT_CONFIG_CACHE``."""
    override = os.environ.get(CONFIG_CACHE_ENV)
    if override:
        return Path(override)
    return DEFAULT_CONFIG_CACHE


class CliSettings(BaseSettings):
    """Settings loaded from ``PIPEWRIGHT_*`` variables, .env and the cache."""

    model_config = SettingsConfigDict(
        env_prefix="PIPEWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    account_configs_path: Path | None = Field(
        default=None, description="Directory holding <account>.yml files"
    )
    default_region: str = Field(
        default="us-east-1", description="Region used when no account is selected"
    )
    log_sinks: list[LogSinkType] = Field(
        default_factory=lambda: [LogSinkType.LOGGER],
        description="Structured log sinks to enable",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Put the YAML cache below the environment in priority."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=config_cache_path()),
            file_secret_settings,
        )

    def logging_config(self) -> LoggingConfig:
        """Return the structured logging configuration."""
        return LoggingConfig(
            sinks=[LogSinkConfig(type=sink) for sink in dict.fromkeys(self.log_sinks)]
        )


def load_settings() -> CliSettings:
    """Load settings from every source."""
    return CliSettings()


def save_account_configs_path(path: Path) -> None:
    """Remember the account configs directory in the config cache.

    Args:
        path: Directory to store.
    """
    cache_path = config_cache_path()
    cached: dict = {}
    if cache_path.exists():
        loaded = yaml.safe_load(cache_path.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            cached = loaded
    cached["account_configs_path"] = str(path)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_path.write_text(yaml.safe_dump(cached, sort_keys=True), encoding="utf-8")
    logger.debug("Saved account configs path to %s", cache_path)
