"""pipewright-core: pipeline lifecycle orchestration."""

from pipewright_core.assembler import AssemblyResult, PipelineAssembler
from pipewright_core.lifecycle import (
    PipelineLifecycle,
    build_pipeline_context,
    check_phases,
    decode_secrets,
    distribute_secrets,
    validate_pipeline_spec,
)
from pipewright_core.ports import (
    LifecycleError,
    LifecycleErrorCode,
    LogSinkProtocol,
    PhasePluginProtocol,
    ProviderBundle,
    ProviderError,
    SecretPrompterProtocol,
    WebhookPhasePluginProtocol,
)
from pipewright_core.registry import PhaseRegistry, build_default_registry
from pipewright_core.version import VERSION

__version__ = str(VERSION)

__all__ = [
    "VERSION",
    "AssemblyResult",
    "LifecycleError",
    "LifecycleErrorCode",
    "LogSinkProtocol",
    "PhasePluginProtocol",
    "PhaseRegistry",
    "PipelineAssembler",
    "PipelineLifecycle",
    "ProviderBundle",
    "ProviderError",
    "SecretPrompterProtocol",
    "WebhookPhasePluginProtocol",
    "build_default_registry",
    "build_pipeline_context",
    "check_phases",
    "decode_secrets",
    "distribute_secrets",
    "validate_pipeline_spec",
]
