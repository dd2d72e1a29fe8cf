"""Primitive types and enums shared across pipewright schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"

type RunId = UUID
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]

# Secrets for a single phase, keyed by secret name.
type PhaseSecrets = dict[str, str]

SOURCE_OUTPUT_ARTIFACT = "Output_Source"
BUILD_OUTPUT_ARTIFACT = "Output_Build"


class PhaseType(StrEnum):
    """Phase types shipped with pipewright."""

    GITHUB = "github"
    CODECOMMIT = "codecommit"
    CODEBUILD = "codebuild"
    APPROVAL = "approval"


# Types allowed in the first and second slot of every pipeline.
SOURCE_PHASE_TYPES = [PhaseType.GITHUB, PhaseType.CODECOMMIT]
BUILD_PHASE_TYPES = [PhaseType.CODEBUILD]


class ActionCategory(StrEnum):
    """Provider action categories for stage actions."""

    SOURCE = "Source"
    BUILD = "Build"
    TEST = "Test"
    APPROVAL = "Approval"
    INVOKE = "Invoke"
    DEPLOY = "Deploy"


class ActionOwner(StrEnum):
    """Owner of a stage action provider."""

    AWS = "AWS"
    THIRD_PARTY = "ThirdParty"
    CUSTOM = "Custom"


class BuildCacheType(StrEnum):
    """Cache modes supported by build phases."""

    S3 = "s3"
    NO_CACHE = "no-cache"


class LogLevel(StrEnum):
    """Log level values for structured logs."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    LOGGER = "logger"
    NOOP = "noop"
