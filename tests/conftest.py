"""Common pytest configuration."""

from pathlib import Path

import pytest


@pytest.fixture
def anyio_backend() -> str:
    """Force asyncio backend for anyio-powered tests.

    Returns:
        str: The backend name.
    """
    return "asyncio"


@pytest.fixture
def config_cache(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI config cache at a temp file.

    Returns:
        Path: Location of the cache file (not created yet).
    """
    path = tmp_path / "cache" / "config.yml"
    monkeypatch.setenv("PIPEWRIGHT_CONFIG_CACHE", str(path))
    monkeypatch.delenv("PIPEWRIGHT_ACCOUNT_CONFIGS_PATH", raising=False)
    return path
