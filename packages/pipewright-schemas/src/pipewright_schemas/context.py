"""Per-run pipeline and phase contexts."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import ConfigDict, Field, SecretStr

from pipewright_schemas.account import AccountConfig
from pipewright_schemas.base import BaseSchema
from pipewright_schemas.primitives import JsonValue, PhaseSecrets
from pipewright_schemas.spec import PhaseDeclaration


class PhaseContext(BaseSchema):
    """Everything a phase plugin needs to deploy or delete one phase.

    Secrets are held as ``SecretStr`` so they never show up in reprs or logs.
    """

    model_config = ConfigDict(frozen=True)

    app_name: str = Field(..., min_length=1, description="Application name")
    pipeline_name: str = Field(..., min_length=1, description="Pipeline name")
    phase_name: str = Field(..., min_length=1, description="Phase name")
    phase_type: str = Field(..., min_length=1, description="Phase type")
    artifact_bucket: str = Field(..., min_length=1, description="Artifact bucket")
    account_config: AccountConfig = Field(..., description="Target account")
    declaration: PhaseDeclaration = Field(..., description="Declared parameters")
    secrets: dict[str, SecretStr] = Field(
        default_factory=dict, description="Resolved secrets keyed by name"
    )

    def params(self) -> dict[str, JsonValue]:
        """Return the phase declaration as a plain mapping."""
        return self.declaration.params()

    def secret(self, name: str) -> str | None:
        """Return a resolved secret value.

        Args:
            name: Secret name.

        Returns:
            str | None: Plain secret value, or None when it was not supplied.
        """
        value = self.secrets.get(name)
        if value is None:
            return None
        return value.get_secret_value()


class PipelineContext(BaseSchema):
    """Aggregate for a single deploy, delete, or webhook run."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., description="Specification schema version")
    app_name: str = Field(..., min_length=1, description="Application name")
    pipeline_name: str = Field(..., min_length=1, description="Pipeline name")
    account_config: AccountConfig = Field(..., description="Target account")
    artifact_bucket: str = Field(..., min_length=1, description="Artifact bucket")
    phase_contexts: dict[str, PhaseContext] = Field(
        default_factory=dict, description="Phase contexts in declaration order"
    )

    @property
    def pipeline_resource_name(self) -> str:
        """Return the provider-side pipeline name."""
        return f"{self.app_name}-{self.pipeline_name}"

    def ordered_phase_contexts(self) -> list[PhaseContext]:
        """Return phase contexts in declaration order."""
        return list(self.phase_contexts.values())

    def with_secrets(self, secrets: Mapping[str, PhaseSecrets]) -> PipelineContext:
        """Return a copy with secrets attached to each phase context.

        Args:
            secrets: Secrets keyed by phase name. Phases without an entry get
                an empty secret map.

        Returns:
            PipelineContext: New context; this one is left untouched.
        """
        phase_contexts = {
            phase_name: phase_context.model_copy(
                update={
                    "secrets": {
                        name: SecretStr(value)
                        for name, value in secrets.get(phase_name, {}).items()
                    }
                }
            )
            for phase_name, phase_context in self.phase_contexts.items()
        }
        return self.model_copy(update={"phase_contexts": phase_contexts})
