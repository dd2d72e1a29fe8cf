"""Reconciles stage descriptions into a single provider pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pipewright_core.ports.provider import PipelineApiProtocol, RoleApiProtocol
from pipewright_schemas.context import PipelineContext
from pipewright_schemas.primitives import JsonValue
from pipewright_schemas.provider import (
    PipelineDeclaration,
    PipelineResource,
    RoleSpec,
)
from pipewright_schemas.stages import StageDescription

logger = logging.getLogger(__name__)

CODEPIPELINE_SERVICE = "codepipeline.amazonaws.com"


@dataclass(slots=True)
class AssemblyResult:
    """Outcome of a create-or-update reconciliation."""

    resource: PipelineResource
    created: bool


def pipeline_role_name(context: PipelineContext) -> str:
    """Return the pipeline service role name."""
    return f"{context.pipeline_resource_name}-PipewrightPipeline"


def pipeline_policy(context: PipelineContext) -> dict[str, JsonValue]:
    """Return the inline policy for the pipeline service role."""
    bucket = context.artifact_bucket
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "s3:GetObject",
                    "s3:GetObjectVersion",
                    "s3:GetBucketVersioning",
                    "s3:PutObject",
                ],
                "Resource": [f"arn:aws:s3:::{bucket}", f"arn:aws:s3:::{bucket}/*"],
            },
            {
                "Effect": "Allow",
                "Action": ["codebuild:StartBuild", "codebuild:BatchGetBuilds"],
                "Resource": ["*"],
            },
            {
                "Effect": "Allow",
                "Action": [
                    "codecommit:GetBranch",
                    "codecommit:GetCommit",
                    "codecommit:UploadArchive",
                    "codecommit:GetUploadArchiveStatus",
                    "codecommit:CancelUploadArchive",
                ],
                "Resource": ["*"],
            },
            {"Effect": "Allow", "Action": ["iam:PassRole"], "Resource": ["*"]},
        ],
    }


class PipelineAssembler:
    """Creates or updates the provider pipeline for a pipeline context."""

    def __init__(
        self, pipelines: PipelineApiProtocol, roles: RoleApiProtocol
    ) -> None:
        """Initialize the assembler.

        Args:
            pipelines: Provider pipeline API.
            roles: Role API for the pipeline service role.
        """
        self._pipelines = pipelines
        self._roles = roles

    async def create_or_update(
        self, context: PipelineContext, stages: list[StageDescription]
    ) -> AssemblyResult:
        """Reconcile the provider pipeline with the given stages.

        Exactly one of create or update is issued, depending on whether the
        pipeline already exists. Updates replace the whole stage list.

        Args:
            context: Pipeline context.
            stages: Stage descriptions in declaration order.

        Returns:
            AssemblyResult: Resulting pipeline and whether it was created.
        """
        role = await self._roles.create_or_update_role(
            RoleSpec(
                name=pipeline_role_name(context),
                trusted_service=CODEPIPELINE_SERVICE,
                policy_document=pipeline_policy(context),
            )
        )
        declaration = PipelineDeclaration(
            name=context.pipeline_resource_name,
            role_arn=role.arn,
            artifact_bucket=context.artifact_bucket,
            stages=stages,
        )
        existing = await self._pipelines.get_pipeline(declaration.name)
        if existing is None:
            logger.info("Creating pipeline %s", declaration.name)
            resource = await self._pipelines.create_pipeline(declaration)
            return AssemblyResult(resource=resource, created=True)
        logger.info("Updating pipeline %s", declaration.name)
        resource = await self._pipelines.update_pipeline(declaration)
        return AssemblyResult(resource=resource, created=False)

    async def delete(self, context: PipelineContext) -> bool:
        """Delete the pipeline and its service role.

        Args:
            context: Pipeline context.

        Returns:
            bool: True when a pipeline was deleted, False when none existed.
        """
        name = context.pipeline_resource_name
        deleted = await self._pipelines.delete_pipeline(name)
        if not deleted:
            logger.info("Pipeline %s did not exist", name)
        await self._roles.delete_role(pipeline_role_name(context))
        return deleted
