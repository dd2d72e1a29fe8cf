"""pipewright release version."""

from __future__ import annotations

from pipewright_schemas.version import VersionInfo

VERSION = VersionInfo(major=0, minor=1, patch=0)
