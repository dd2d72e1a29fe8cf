"""CodeBuild build phase.

Each phase owns one build project named ``<app>-<pipeline>-<phase>``. Unless
the declaration names an existing ``build_role``, the phase also maintains a
service role shared by the build phases of its pipeline.
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator

from pipewright_core.phases.params import (
    PhaseParams,
    check_phase_params,
    parse_phase_params,
)
from pipewright_core.ports.lifecycle import LifecycleErrorCode, build_lifecycle_error
from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_core.ports.provider import BuildProjectApiProtocol, RoleApiProtocol
from pipewright_schemas.account import AccountConfig
from pipewright_schemas.context import PhaseContext
from pipewright_schemas.primitives import (
    BUILD_OUTPUT_ARTIFACT,
    SOURCE_OUTPUT_ARTIFACT,
    ActionCategory,
    ActionOwner,
    BuildCacheType,
    JsonValue,
    PhaseSecrets,
    PhaseType,
)
from pipewright_schemas.provider import (
    BuildCacheSpec,
    BuildProjectSpec,
    IamRole,
    RoleSpec,
)
from pipewright_schemas.secrets import PhaseSecretQuestion
from pipewright_schemas.spec import PhaseDeclaration
from pipewright_schemas.stages import (
    ActionTypeId,
    StageDescription,
    build_single_action_stage,
)

logger = logging.getLogger(__name__)

ACCOUNT_IMAGE_PREFIX = "<account>"
CODEBUILD_SERVICE = "codebuild.amazonaws.com"


class CodeBuildParams(PhaseParams):
    """Parameters for a CodeBuild phase."""

    build_image: str = Field(..., min_length=1, description="Build container image")
    environment_variables: dict[str, str] = Field(
        default_factory=dict, description="Plaintext build environment"
    )
    build_role: str | None = Field(None, description="Existing role to build with")
    cache: BuildCacheType = Field(BuildCacheType.NO_CACHE, description="Cache mode")

    @field_validator("environment_variables", mode="before")
    @classmethod
    def _stringify_values(cls, value: object) -> object:
        # YAML turns unquoted numbers and booleans into non-strings
        if isinstance(value, dict):
            return {
                key: str(item) if isinstance(item, (int, float, bool)) else item
                for key, item in value.items()
            }
        return value


def build_project_name(context: PhaseContext) -> str:
    """Return the build project name for a phase."""
    return f"{context.app_name}-{context.pipeline_name}-{context.phase_name}"


def build_role_name(context: PhaseContext) -> str:
    """Return the generated build service role name for a phase."""
    return (
        f"{context.app_name}-{context.pipeline_name}-{context.phase_name}"
        "-PipewrightBuildPhase"
    )


def expand_build_image(image: str, account: AccountConfig) -> str:
    """Expand the ``<account>`` prefix to the account's container registry.

    Args:
        image: Declared image, e.g. ``<account>/my-builder:latest``.
        account: Target account configuration.

    Returns:
        str: Image reference usable by the build service.
    """
    if not image.startswith(ACCOUNT_IMAGE_PREFIX):
        return image
    image_and_tag = image[len(ACCOUNT_IMAGE_PREFIX) :]
    return (
        f"{account.account_id}.dkr.ecr.{account.region}.amazonaws.com{image_and_tag}"
    )


def cache_location(context: PhaseContext) -> str:
    """Return the s3 cache path for a phase."""
    return (
        f"{context.artifact_bucket}/caches/{context.app_name}/"
        f"{context.pipeline_name}/{context.phase_name}/codeBuildCache"
    )


def build_phase_policy(context: PhaseContext) -> dict[str, JsonValue]:
    """Return the inline policy for the generated build service role."""
    account = context.account_config
    log_group = (
        f"arn:aws:logs:{account.region}:{account.account_id}:log-group:"
        f"/aws/codebuild/{context.app_name}-{context.pipeline_name}-*"
    )
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "logs:CreateLogGroup",
                    "logs:CreateLogStream",
                    "logs:PutLogEvents",
                ],
                "Resource": [log_group, f"{log_group}:*"],
            },
            {
                "Effect": "Allow",
                "Action": ["s3:GetObject", "s3:GetObjectVersion", "s3:PutObject"],
                "Resource": [f"arn:aws:s3:::{context.artifact_bucket}/*"],
            },
            {
                "Effect": "Allow",
                "Action": [
                    "ecr:GetAuthorizationToken",
                    "ecr:BatchCheckLayerAvailability",
                    "ecr:GetDownloadUrlForLayer",
                    "ecr:BatchGetImage",
                ],
                "Resource": ["*"],
            },
        ],
    }


class CodeBuildPhase:
    """Build phase backed by a CodeBuild project."""

    def __init__(
        self, projects: BuildProjectApiProtocol, roles: RoleApiProtocol
    ) -> None:
        """Initialize the CodeBuild phase.

        Args:
            projects: Build project API.
            roles: Role API for the build service role.
        """
        self._projects = projects
        self._roles = roles

    @property
    def phase_type(self) -> str:
        """Phase type handled by this plugin."""
        return PhaseType.CODEBUILD

    def check(self, declaration: PhaseDeclaration) -> list[str]:
        """Validate CodeBuild phase parameters."""
        return check_phase_params("CodeBuild", CodeBuildParams, declaration)

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
        """Create or update the build project and return its stage.

        Args:
            context: Phase context.

        Returns:
            StageDescription: Build stage consuming the source output.
        """
        params = parse_phase_params(CodeBuildParams, context)
        project_name = build_project_name(context)
        role = await self._resolve_role(context, params)

        cache = BuildCacheSpec()
        if params.cache == BuildCacheType.S3:
            cache = BuildCacheSpec(
                type=BuildCacheType.S3, location=cache_location(context)
            )

        spec = BuildProjectSpec(
            name=project_name,
            description=f"Build phase '{context.phase_name}' of {context.app_name}",
            service_role_arn=role.arn,
            image=expand_build_image(params.build_image, context.account_config),
            environment_variables=dict(params.environment_variables),
            cache=cache,
            tags={
                "pipewright-app": context.app_name,
                "pipewright-pipeline": context.pipeline_name,
                "pipewright-phase": context.phase_name,
            },
        )
        existing = await self._projects.get_build_project(project_name)
        if existing is None:
            logger.info("Creating build phase project %s", project_name)
            await self._projects.create_build_project(spec)
        else:
            logger.info("Updating build phase project %s", project_name)
            await self._projects.update_build_project(spec)

        return build_single_action_stage(
            context.phase_name,
            ActionTypeId(
                category=ActionCategory.BUILD,
                owner=ActionOwner.AWS,
                provider="CodeBuild",
            ),
            configuration={"ProjectName": project_name},
            input_artifacts=[SOURCE_OUTPUT_ARTIFACT],
            output_artifacts=[BUILD_OUTPUT_ARTIFACT],
        )

    async def delete_phase(self, context: PhaseContext) -> bool:
        """Delete the build project and the generated role if present."""
        project_name = build_project_name(context)
        logger.info("Deleting build phase project '%s'", project_name)
        if not await self._projects.delete_build_project(project_name):
            logger.debug("Build project '%s' did not exist", project_name)
        await self._roles.delete_role(build_role_name(context))
        return True

    async def _resolve_role(
        self, context: PhaseContext, params: CodeBuildParams
    ) -> IamRole:
        if params.build_role:
            role = await self._roles.get_role(params.build_role)
            if role is None:
                raise build_lifecycle_error(
                    LifecycleErrorCode.PHASE_FAILED,
                    f"No role named {params.build_role} exists in this account",
                    pipeline=context.pipeline_name,
                    phase=context.phase_name,
                    phase_type=context.phase_type,
                    reason="build_role not found",
                )
            return role
        return await self._roles.create_or_update_role(
            RoleSpec(
                name=build_role_name(context),
                trusted_service=CODEBUILD_SERVICE,
                policy_document=build_phase_policy(context),
            )
        )
