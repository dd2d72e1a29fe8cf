"""JSONL log entry schema for lifecycle events."""

from __future__ import annotations

from pydantic import Field

from pipewright_schemas.base import BaseSchema
from pipewright_schemas.primitives import (
    EventName,
    JsonValue,
    LogLevel,
    RunId,
    Timestamp,
)


class LogEntry(BaseSchema):
    """Single log line in JSONL format."""

    timestamp: Timestamp = Field(
        ..., description="ISO-8601 timestamp for the log entry"
    )
    level: LogLevel = Field(..., description="Log level")
    event: EventName = Field(..., description="Event name")
    run_id: RunId = Field(..., description="Lifecycle run identifier")
    pipeline: str | None = Field(None, description="Pipeline name if applicable")
    phase: str | None = Field(None, description="Phase name if applicable")
    message: str = Field(..., min_length=1, description="Log message")
    data: dict[str, JsonValue] | None = Field(None, description="Structured event data")
