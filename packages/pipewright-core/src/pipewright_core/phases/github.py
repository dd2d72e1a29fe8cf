"""GitHub source phase."""

from __future__ import annotations

import logging
import secrets

from pydantic import Field, SecretStr

from pipewright_core.phases.params import (
    PhaseParams,
    check_phase_params,
    parse_phase_params,
    require_secret,
)
from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_core.ports.provider import WebhookApiProtocol
from pipewright_schemas.context import PhaseContext
from pipewright_schemas.primitives import (
    SOURCE_OUTPUT_ARTIFACT,
    ActionCategory,
    ActionOwner,
    PhaseSecrets,
    PhaseType,
)
from pipewright_schemas.provider import WebhookDefinition, WebhookFilter
from pipewright_schemas.secrets import PhaseSecretQuestion
from pipewright_schemas.spec import PhaseDeclaration
from pipewright_schemas.stages import (
    ActionTypeId,
    StageDescription,
    build_single_action_stage,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_SECRET = "githubAccessToken"


class GithubParams(PhaseParams):
    """Parameters for a GitHub source phase."""

    owner: str = Field(..., min_length=1, description="Repository owner")
    repo: str = Field(..., min_length=1, description="Repository name")
    branch: str = Field("master", min_length=1, description="Branch to build")


def webhook_name(context: PhaseContext) -> str:
    """Return the webhook name for the phase's pipeline."""
    return f"{context.app_name}-{context.pipeline_name}-webhook"


class GithubPhase:
    """Source phase pulling from a GitHub repository."""

    def __init__(self, webhooks: WebhookApiProtocol) -> None:
        """Initialize the GitHub phase.

        Args:
            webhooks: Webhook API used to trigger the pipeline on push.
        """
        self._webhooks = webhooks

    @property
    def phase_type(self) -> str:
        """Phase type handled by this plugin."""
        return PhaseType.GITHUB

    def check(self, declaration: PhaseDeclaration) -> list[str]:
        """Validate GitHub phase parameters."""
        return check_phase_params("GitHub", GithubParams, declaration)

    def get_secret_questions(
        self, declaration: PhaseDeclaration
    ) -> list[PhaseSecretQuestion]:
        """Ask for the GitHub access token."""
        phase_name = declaration.name or ""
        return [
            PhaseSecretQuestion(
                phase_name=phase_name,
                name=ACCESS_TOKEN_SECRET,
                message=(
                    f"'{phase_name}' phase - Please enter your GitHub access token"
                ),
            )
        ]

    async def get_secrets_for_phase(
        self, declaration: PhaseDeclaration, prompter: SecretPrompterProtocol
    ) -> PhaseSecrets:
        """Prompt for the GitHub access token."""
        questions = self.get_secret_questions(declaration)
        answers = await prompter.prompt_secrets(questions)
        return {
            question.name: answers[question.name]
            for question in questions
            if question.name in answers
        }

    async def deploy_phase(self, context: PhaseContext) -> StageDescription:
        """Return the GitHub source stage.

        Raises:
            LifecycleError: If the access token secret is missing.
        """
        logger.info("Creating source phase '%s'", context.phase_name)
        params = parse_phase_params(GithubParams, context)
        token = require_secret(context, ACCESS_TOKEN_SECRET)
        return build_single_action_stage(
            context.phase_name,
            ActionTypeId(
                category=ActionCategory.SOURCE,
                owner=ActionOwner.THIRD_PARTY,
                provider="GitHub",
            ),
            configuration={
                "Owner": params.owner,
                "Repo": params.repo,
                "Branch": params.branch,
                "OAuthToken": token,
                "PollForSourceChanges": "false",
            },
            output_artifacts=[SOURCE_OUTPUT_ARTIFACT],
        )

    async def delete_phase(self, context: PhaseContext) -> bool:
        """Nothing is provisioned for a GitHub source."""
        logger.info("Nothing to delete for source phase '%s'", context.phase_name)
        return True

    async def add_webhook(self, context: PhaseContext) -> bool:
        """Create and register the push webhook when it is missing.

        Returns:
            bool: True when a webhook was created.
        """
        name = webhook_name(context)
        if await self._webhooks.webhook_exists(name):
            logger.debug("Webhook '%s' already exists", name)
            return False
        definition = WebhookDefinition(
            name=name,
            target_pipeline=f"{context.app_name}-{context.pipeline_name}",
            target_action=context.phase_name,
            secret_token=SecretStr(secrets.token_hex(32)),
            filters=[
                WebhookFilter(json_path="$.ref", match_equals="refs/heads/{Branch}")
            ],
        )
        await self._webhooks.put_webhook(definition)
        await self._webhooks.register_webhook(name)
        logger.info("Registered webhook '%s'", name)
        return True

    async def remove_webhook(self, context: PhaseContext) -> bool:
        """Deregister and delete the push webhook when it exists.

        Returns:
            bool: True when a webhook was removed.
        """
        name = webhook_name(context)
        if not await self._webhooks.webhook_exists(name):
            return False
        await self._webhooks.deregister_webhook(name)
        await self._webhooks.delete_webhook(name)
        logger.info("Removed webhook '%s'", name)
        return True
