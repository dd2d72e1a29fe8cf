"""Capability contract implemented by every phase plugin."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_schemas.context import PhaseContext
from pipewright_schemas.primitives import PhaseSecrets
from pipewright_schemas.secrets import PhaseSecretQuestion
from pipewright_schemas.spec import PhaseDeclaration
from pipewright_schemas.stages import StageDescription


@runtime_checkable
class PhasePluginProtocol(Protocol):
    """Protocol for a phase type plugin.

    One instance serves every phase of its type; all per-phase state arrives
    through the declaration or the phase context.
    """

    @property
    def phase_type(self) -> str:
        """Phase type handled by this plugin."""
        ...

    def check(self, declaration: PhaseDeclaration) -> list[str]:
        """Validate the declaration's type-specific parameters.

        Args:
            declaration: Declared phase.

        Returns:
            list[str]: Human-readable errors, empty when valid.
        """
        ...

    def get_secret_questions(
        self, declaration: PhaseDeclaration
    ) -> list[PhaseSecretQuestion]:
        """Describe the secrets this phase needs.

        Args:
            declaration: Declared phase.

        Returns:
            list[PhaseSecretQuestion]: Questions, empty when none are needed.
        """
        ...

    async def get_secrets_for_phase(
        self, declaration: PhaseDeclaration, prompter: SecretPrompterProtocol
    ) -> PhaseSecrets:
        """Collect this phase's secrets through the prompter.

        Args:
            declaration: Declared phase.
            prompter: Interactive secret prompter.

        Returns:
            PhaseSecrets: Secret values keyed by name.
        """
        ...

    async def deploy_phase(self, context: PhaseContext) -> StageDescription:
        """Create or update the phase's resources.

        Args:
            context: Fully resolved phase context.

        Returns:
            StageDescription: Stage to place in the pipeline.
        """
        ...

    async def delete_phase(self, context: PhaseContext) -> bool:
        """Delete the phase's resources, treating absence as success.

        Args:
            context: Phase context.

        Returns:
            bool: True once nothing owned by the phase remains.
        """
        ...


@runtime_checkable
class WebhookPhasePluginProtocol(PhasePluginProtocol, Protocol):
    """Phase plugin that also manages a source webhook."""

    async def add_webhook(self, context: PhaseContext) -> bool:
        """Register the phase's webhook if it is not already present."""
        ...

    async def remove_webhook(self, context: PhaseContext) -> bool:
        """Remove the phase's webhook if it is present."""
        ...
