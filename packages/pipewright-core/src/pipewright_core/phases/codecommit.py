"""CodeCommit source phase."""

from __future__ import annotations

import logging

from pydantic import Field

from pipewright_core.phases.params import (
    PhaseParams,
    check_phase_params,
    parse_phase_params,
)
from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_schemas.context import PhaseContext
from pipewright_schemas.primitives import (
    SOURCE_OUTPUT_ARTIFACT,
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


class CodeCommitParams(PhaseParams):
    """Parameters for a CodeCommit source phase."""

    repo: str = Field(..., min_length=1, description="Repository name")
    branch: str = Field("master", min_length=1, description="Branch to build")


class CodeCommitPhase:
    """Source phase pulling from a CodeCommit repository."""

    @property
    def phase_type(self) -> str:
        """Phase type handled by this plugin."""
        return PhaseType.CODECOMMIT

    def check(self, declaration: PhaseDeclaration) -> list[str]:
        """Validate CodeCommit phase parameters."""
        return check_phase_params("CodeCommit", CodeCommitParams, declaration)

    def get_secret_questions(
        self, declaration: PhaseDeclaration
    ) -> list[PhaseSecretQuestion]:
        """CodeCommit uses the pipeline role; no secrets."""
        return []

    async def get_secrets_for_phase(
        self, declaration: PhaseDeclaration, prompter: SecretPrompterProtocol
    ) -> PhaseSecrets:
        """CodeCommit uses the pipeline role; no secrets."""
        return {}

    async def deploy_phase(self, context: PhaseContext) -> StageDescription:
        """Return the CodeCommit source stage."""
        logger.info("Creating source phase '%s'", context.phase_name)
        params = parse_phase_params(CodeCommitParams, context)
        return build_single_action_stage(
            context.phase_name,
            ActionTypeId(
                category=ActionCategory.SOURCE,
                owner=ActionOwner.AWS,
                provider="CodeCommit",
            ),
            configuration={
                "RepositoryName": params.repo,
                "BranchName": params.branch,
            },
            output_artifacts=[SOURCE_OUTPUT_ARTIFACT],
        )

    async def delete_phase(self, context: PhaseContext) -> bool:
        """Nothing is provisioned for a CodeCommit source."""
        logger.info("Nothing to delete for source phase '%s'", context.phase_name)
        return True
