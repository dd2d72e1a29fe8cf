"""Manual approval phase."""

from __future__ import annotations

import logging

from pipewright_core.phases.params import PhaseParams, check_phase_params
from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_schemas.context import PhaseContext
from pipewright_schemas.primitives import (
    ActionCategory,
    ActionOwner,
    PhaseSecrets,
    PhaseType,
)
from pipewright_schemas.secrets import PhaseSecretQuestion
from pipewright_schemas.spec import PhaseDeclaration
from pipewright_schemas.stages import (
    ActionTypeId,
    StageDescription,
    build_single_action_stage,
)

logger = logging.getLogger(__name__)


class ApprovalPhase:
    """Stage that waits for a human to approve the revision."""

    @property
    def phase_type(self) -> str:
        """Phase type handled by this plugin."""
        return PhaseType.APPROVAL

    def check(self, declaration: PhaseDeclaration) -> list[str]:
        """Approval phases accept no parameters besides type and name."""
        return check_phase_params("Approval", PhaseParams, declaration)

    def get_secret_questions(
        self, declaration: PhaseDeclaration
    ) -> list[PhaseSecretQuestion]:
        """No secrets are needed."""
        return []

    async def get_secrets_for_phase(
        self, declaration: PhaseDeclaration, prompter: SecretPrompterProtocol
    ) -> PhaseSecrets:
        """No secrets are needed."""
        return {}

    async def deploy_phase(self, context: PhaseContext) -> StageDescription:
        """Return the manual approval stage."""
        logger.info("Creating manual approval phase '%s'", context.phase_name)
        return build_single_action_stage(
            context.phase_name,
            ActionTypeId(
                category=ActionCategory.APPROVAL,
                owner=ActionOwner.AWS,
                provider="Manual",
            ),
        )

    async def delete_phase(self, context: PhaseContext) -> bool:
        """Nothing is provisioned for an approval."""
        logger.info("Nothing to delete for approval phase '%s'", context.phase_name)
        return True
