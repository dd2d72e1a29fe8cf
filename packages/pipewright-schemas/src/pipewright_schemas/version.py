"""Version information."""

from __future__ import annotations

from pydantic import Field

from pipewright_schemas.base import BaseSchema

# Highest pipewright.yml schema version this release understands
CURRENT_SPEC_VERSION = 1


class VersionInfo(BaseSchema):
    """Application version information."""

    major: int = Field(..., ge=0, description="Major version number")
    minor: int = Field(..., ge=0, description="Minor version number")
    patch: int = Field(..., ge=0, description="Patch version number")

    def __str__(self) -> str:
        """Return semantic version string."""
        return f"{self.major}.{self.minor}.{self.patch}"
