"""Stage descriptions produced by phase plugins."""

from __future__ import annotations

from pydantic import AliasGenerator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipewright_schemas.base import BaseSchema
from pipewright_schemas.primitives import ActionCategory, ActionOwner


class ProviderSchema(BaseSchema):
    """Schema serialized in the provider's camelCase shape.

    Fields are populated by their snake_case names; ``model_dump(by_alias=True)``
    produces the provider payload.
    """

    model_config = ConfigDict(
        alias_generator=AliasGenerator(serialization_alias=to_camel)
    )


class ArtifactRef(ProviderSchema):
    """Named artifact passed between stages."""

    name: str = Field(..., min_length=1, description="Artifact name")


class ActionTypeId(ProviderSchema):
    """Provider identity of a stage action."""

    category: ActionCategory = Field(..., description="Action category")
    owner: ActionOwner = Field(..., description="Action provider owner")
    provider: str = Field(..., min_length=1, description="Action provider name")
    version: str = Field("1", min_length=1, description="Action provider version")


class StageAction(ProviderSchema):
    """Single action inside a stage."""

    name: str = Field(..., min_length=1, description="Action name")
    action_type_id: ActionTypeId = Field(..., description="Action provider identity")
    run_order: int = Field(1, ge=1, description="Ascending execution order in stage")
    configuration: dict[str, str] = Field(
        default_factory=dict, description="Provider-specific action configuration"
    )
    input_artifacts: list[ArtifactRef] = Field(
        default_factory=list, description="Artifacts consumed by the action"
    )
    output_artifacts: list[ArtifactRef] = Field(
        default_factory=list, description="Artifacts produced by the action"
    )


class StageDescription(ProviderSchema):
    """One pipeline stage as returned by a phase deploy."""

    name: str = Field(..., min_length=1, description="Stage name")
    actions: list[StageAction] = Field(
        ..., min_length=1, description="Actions ordered by run order"
    )


def build_single_action_stage(
    phase_name: str,
    action_type_id: ActionTypeId,
    *,
    configuration: dict[str, str] | None = None,
    input_artifacts: list[str] | None = None,
    output_artifacts: list[str] | None = None,
) -> StageDescription:
    """Build a stage holding one action named after its phase.

    Args:
        phase_name: Phase name used for both the stage and the action.
        action_type_id: Provider identity of the action.
        configuration: Provider-specific action configuration.
        input_artifacts: Names of consumed artifacts.
        output_artifacts: Names of produced artifacts.

    Returns:
        StageDescription: Stage with a single action at run order 1.
    """
    action = StageAction(
        name=phase_name,
        action_type_id=action_type_id,
        run_order=1,
        configuration=configuration or {},
        input_artifacts=[ArtifactRef(name=name) for name in input_artifacts or []],
        output_artifacts=[ArtifactRef(name=name) for name in output_artifacts or []],
    )
    return StageDescription(name=phase_name, actions=[action])
