"""Protocol definitions and helpers for the pipeline lifecycle."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from pipewright_schemas.base import BaseSchema
from pipewright_schemas.events import (
    CheckEvent,
    PhaseEvent,
    PipelineEvent,
    SecretsEvent,
    WebhookEvent,
)
from pipewright_schemas.logs import LogEntry
from pipewright_schemas.primitives import JsonValue, LogLevel, RunId, Timestamp
from pipewright_schemas.responses import ErrorDetails, ErrorResponse


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Protocol for emitting JSONL log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Emit a log entry."""
        raise NotImplementedError


class LifecycleErrorCode(StrEnum):
    """Categorized error codes for lifecycle failures."""

    INVALID_SPECIFICATION = "invalid_specification"
    UNKNOWN_PIPELINE = "unknown_pipeline"
    UNSUPPORTED_PHASE_TYPE = "unsupported_phase_type"
    INVALID_SECRETS = "invalid_secrets"
    MISSING_SECRET = "missing_secret"
    PHASE_FAILED = "phase_failed"
    ACCOUNT_MISMATCH = "account_mismatch"


class LifecycleErrorDetails(BaseSchema):
    """Detailed lifecycle error context."""

    pipeline: str | None = Field(None, description="Pipeline associated with error")
    phase: str | None = Field(None, description="Phase associated with error")
    phase_type: str | None = Field(None, description="Phase type if applicable")
    reason: str | None = Field(None, description="Additional error context")
    valid_options: list[str] | None = Field(
        None, description="Valid options if applicable"
    )


class LifecycleErrorInfo(BaseSchema):
    """Structured lifecycle error data."""

    code: LifecycleErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: LifecycleErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert lifecycle error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None:
            details = ErrorDetails(
                pipeline=self.details.pipeline,
                phase=self.details.phase,
                phase_type=self.details.phase_type,
                reason=self.details.reason,
                valid_options=self.details.valid_options,
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class LifecycleError(Exception):
    """Lifecycle error with structured details."""

    def __init__(self, info: LifecycleErrorInfo) -> None:
        """Initialize the lifecycle error.

        Args:
            info: Structured lifecycle error information.
        """
        super().__init__(info.message)
        self.info = info


def build_lifecycle_error(
    code: LifecycleErrorCode,
    message: str,
    *,
    pipeline: str | None = None,
    phase: str | None = None,
    phase_type: str | None = None,
    reason: str | None = None,
    valid_options: list[str] | None = None,
) -> LifecycleError:
    """Build a lifecycle error with details.

    Returns:
        LifecycleError: Error ready to raise.
    """
    return LifecycleError(
        LifecycleErrorInfo(
            code=code,
            message=message,
            details=LifecycleErrorDetails(
                pipeline=pipeline,
                phase=phase,
                phase_type=phase_type,
                reason=reason,
                valid_options=valid_options,
            ),
        )
    )


def build_check_completed_log(
    timestamp: Timestamp, run_id: RunId, error_count: int, pipelines: list[str]
) -> LogEntry:
    """Build a log entry for a finished specification check.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Lifecycle run identifier.
        error_count: Number of accumulated errors.
        pipelines: Pipelines that were checked.

    Returns:
        LogEntry: Structured check log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.WARN if error_count else LogLevel.INFO,
        event=CheckEvent.COMPLETED,
        run_id=run_id,
        message="Specification check completed",
        data={"error_count": error_count, "pipelines": list(pipelines)},
    )


def build_secrets_resolved_log(
    timestamp: Timestamp,
    run_id: RunId,
    pipeline: str,
    secret_names: dict[str, list[str]],
) -> LogEntry:
    """Build a log entry for resolved secrets.

    Only secret names are recorded, never values.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Lifecycle run identifier.
        pipeline: Pipeline name.
        secret_names: Secret names keyed by phase.

    Returns:
        LogEntry: Structured secrets log entry.
    """
    data: dict[str, JsonValue] = {
        phase: list(names) for phase, names in secret_names.items()
    }
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=SecretsEvent.RESOLVED,
        run_id=run_id,
        pipeline=pipeline,
        message="Phase secrets resolved",
        data={"phases": data},
    )


def build_phase_log(
    timestamp: Timestamp,
    run_id: RunId,
    pipeline: str,
    phase: str,
    event: PhaseEvent,
    message: str,
    data: dict[str, JsonValue] | None = None,
) -> LogEntry:
    """Build a log entry for a phase deploy or delete event.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Lifecycle run identifier.
        pipeline: Pipeline name.
        phase: Phase name.
        event: Phase event.
        message: Log message.
        data: Optional structured data.

    Returns:
        LogEntry: Structured phase log entry.
    """
    level = LogLevel.INFO
    if event in {PhaseEvent.DEPLOY_FAILED, PhaseEvent.DELETE_FAILED}:
        level = LogLevel.ERROR
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=event,
        run_id=run_id,
        pipeline=pipeline,
        phase=phase,
        message=message,
        data=data,
    )


def build_pipeline_log(
    timestamp: Timestamp,
    run_id: RunId,
    pipeline: str,
    event: PipelineEvent,
    resource_name: str,
) -> LogEntry:
    """Build a log entry for a pipeline resource change.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Lifecycle run identifier.
        pipeline: Pipeline name.
        event: Pipeline event.
        resource_name: Provider-side pipeline name.

    Returns:
        LogEntry: Structured pipeline log entry.
    """
    messages = {
        PipelineEvent.CREATED: "Pipeline created",
        PipelineEvent.UPDATED: "Pipeline updated",
        PipelineEvent.DELETED: "Pipeline deleted",
    }
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=event,
        run_id=run_id,
        pipeline=pipeline,
        message=messages[event],
        data={"resource_name": resource_name},
    )


def build_webhook_log(
    timestamp: Timestamp,
    run_id: RunId,
    pipeline: str,
    phase: str,
    event: WebhookEvent,
) -> LogEntry:
    """Build a log entry for webhook registration changes.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Lifecycle run identifier.
        pipeline: Pipeline name.
        phase: Phase owning the webhook.
        event: Webhook event.

    Returns:
        LogEntry: Structured webhook log entry.
    """
    message = "Webhook added" if event == WebhookEvent.ADDED else "Webhook removed"
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=event,
        run_id=run_id,
        pipeline=pipeline,
        phase=phase,
        message=message,
    )
