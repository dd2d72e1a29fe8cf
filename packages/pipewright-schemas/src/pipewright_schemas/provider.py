"""Typed payloads crossing the provider ports."""

from __future__ import annotations

from pydantic import Field, SecretStr

from pipewright_schemas.base import BaseSchema
from pipewright_schemas.primitives import BuildCacheType, JsonValue
from pipewright_schemas.stages import StageDescription


class PipelineDeclaration(BaseSchema):
    """Full desired state of one provider pipeline."""

    name: str = Field(..., min_length=1, description="Pipeline resource name")
    role_arn: str = Field(..., min_length=1, description="Pipeline service role")
    artifact_bucket: str = Field(..., min_length=1, description="Artifact bucket")
    stages: list[StageDescription] = Field(
        ..., min_length=1, description="Stages in execution order"
    )


class PipelineResource(BaseSchema):
    """Existing provider pipeline."""

    name: str = Field(..., min_length=1, description="Pipeline resource name")
    version: int | None = Field(None, description="Provider-side revision")


class RoleSpec(BaseSchema):
    """Service role with a single inline policy."""

    name: str = Field(..., min_length=1, description="Role name")
    trusted_service: str = Field(
        ..., min_length=1, description="Service principal allowed to assume it"
    )
    policy_document: dict[str, JsonValue] = Field(
        ..., description="Inline policy document"
    )


class IamRole(BaseSchema):
    """Existing provider role."""

    name: str = Field(..., min_length=1, description="Role name")
    arn: str = Field(..., min_length=1, description="Role ARN")


class BuildCacheSpec(BaseSchema):
    """Build project cache settings."""

    type: BuildCacheType = Field(BuildCacheType.NO_CACHE, description="Cache mode")
    location: str | None = Field(None, description="Bucket path for s3 caches")


class BuildProjectSpec(BaseSchema):
    """Desired state of a build project fed by the pipeline."""

    name: str = Field(..., min_length=1, description="Project name")
    description: str = Field("", description="Project description")
    service_role_arn: str = Field(..., min_length=1, description="Build role ARN")
    image: str = Field(..., min_length=1, description="Build container image")
    compute_type: str = Field(
        "BUILD_GENERAL1_SMALL", min_length=1, description="Compute size"
    )
    privileged_mode: bool = Field(False, description="Allow docker-in-docker")
    environment_variables: dict[str, str] = Field(
        default_factory=dict, description="Plaintext build environment"
    )
    cache: BuildCacheSpec = Field(
        default_factory=BuildCacheSpec, description="Cache settings"
    )
    tags: dict[str, str] = Field(default_factory=dict, description="Resource tags")


class BuildProject(BaseSchema):
    """Existing build project."""

    name: str = Field(..., min_length=1, description="Project name")
    arn: str | None = Field(None, description="Project ARN")


class WebhookFilter(BaseSchema):
    """Event filter applied to incoming webhook payloads."""

    json_path: str = Field(..., min_length=1, description="JSONPath into payload")
    match_equals: str = Field(..., min_length=1, description="Required value")


class WebhookDefinition(BaseSchema):
    """Webhook connecting a source repository to a pipeline action."""

    name: str = Field(..., min_length=1, description="Webhook name")
    target_pipeline: str = Field(..., min_length=1, description="Pipeline name")
    target_action: str = Field(..., min_length=1, description="Source action name")
    secret_token: SecretStr = Field(..., description="HMAC secret")
    filters: list[WebhookFilter] = Field(
        default_factory=list, description="Payload filters"
    )
