"""Error envelope schemas for CLI output."""

from __future__ import annotations

from pydantic import Field

from pipewright_schemas.base import BaseSchema


class ErrorDetails(BaseSchema):
    """Detailed error context for responses."""

    pipeline: str | None = Field(None, description="Pipeline name if applicable")
    phase: str | None = Field(None, description="Phase name if applicable")
    phase_type: str | None = Field(None, description="Phase type if applicable")
    reason: str | None = Field(None, description="Underlying cause")
    valid_options: list[str] | None = Field(
        None, description="Valid options if applicable"
    )


class ErrorResponse(BaseSchema):
    """Error information in response."""

    code: str = Field(..., min_length=1, description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ErrorDetails | None = Field(None, description="Optional error details")
    exit_code: int | None = Field(None, description="Process exit code")
