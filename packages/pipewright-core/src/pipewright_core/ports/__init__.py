"""Protocol ports for the pipeline lifecycle."""

from __future__ import annotations

from pipewright_core.ports.lifecycle import (
    LifecycleError,
    LifecycleErrorCode,
    LifecycleErrorDetails,
    LifecycleErrorInfo,
    LogSinkProtocol,
    build_lifecycle_error,
)
from pipewright_core.ports.phase import PhasePluginProtocol, WebhookPhasePluginProtocol
from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_core.ports.provider import (
    AccountApiProtocol,
    BuildProjectApiProtocol,
    PipelineApiProtocol,
    ProviderBundle,
    ProviderError,
    RoleApiProtocol,
    WebhookApiProtocol,
)

__all__ = [
    "AccountApiProtocol",
    "BuildProjectApiProtocol",
    "LifecycleError",
    "LifecycleErrorCode",
    "LifecycleErrorDetails",
    "LifecycleErrorInfo",
    "LogSinkProtocol",
    "PhasePluginProtocol",
    "PipelineApiProtocol",
    "ProviderBundle",
    "ProviderError",
    "RoleApiProtocol",
    "SecretPrompterProtocol",
    "WebhookApiProtocol",
    "WebhookPhasePluginProtocol",
    "build_lifecycle_error",
]
