"""pipewright schemas: the shared data model."""

from __future__ import annotations

from pipewright_schemas.account import AccountConfig, artifact_bucket_name
from pipewright_schemas.context import PhaseContext, PipelineContext
from pipewright_schemas.exit_codes import ExitCode, resolve_exit_code
from pipewright_schemas.logs import LogEntry
from pipewright_schemas.primitives import PhaseSecrets, PhaseType
from pipewright_schemas.secrets import PhaseSecretQuestion, PhaseSecretValue
from pipewright_schemas.spec import (
    PhaseDeclaration,
    PipelineCheckReport,
    PipelineDefinition,
    PipelineSpec,
)
from pipewright_schemas.stages import StageAction, StageDescription

__all__ = [
    "AccountConfig",
    "ExitCode",
    "LogEntry",
    "PhaseContext",
    "PhaseDeclaration",
    "PhaseSecretQuestion",
    "PhaseSecretValue",
    "PhaseSecrets",
    "PhaseType",
    "PipelineCheckReport",
    "PipelineContext",
    "PipelineDefinition",
    "PipelineSpec",
    "StageAction",
    "StageDescription",
    "artifact_bucket_name",
    "resolve_exit_code",
]
