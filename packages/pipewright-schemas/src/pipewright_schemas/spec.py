"""Pipeline specification file schemas."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from pipewright_schemas.base import BaseSchema
from pipewright_schemas.primitives import JsonValue


class PhaseDeclaration(BaseSchema):
    """One phase entry in a pipeline definition.

    Everything besides ``type`` and ``name`` is a type-specific parameter and
    is validated only by the phase plugin that owns the type.
    """

    model_config = ConfigDict(extra="allow")

    type: str | None = Field(None, description="Phase type selecting the plugin")
    name: str | None = Field(None, description="Phase name, unique in its pipeline")

    def params(self) -> dict[str, JsonValue]:
        """Return the declaration including type-specific parameters.

        Returns:
            dict[str, JsonValue]: Plain mapping of every declared key.
        """
        return self.model_dump(exclude_none=True)


class PipelineDefinition(BaseSchema):
    """Ordered phases making up one pipeline."""

    phases: list[PhaseDeclaration] | None = Field(
        None, description="Phases in execution order"
    )


class PipelineSpec(BaseSchema):
    """Top-level pipewright.yml document.

    Fields are optional so that an incomplete file produces readable check
    errors instead of a parse failure.
    """

    version: int | None = Field(None, description="Specification schema version")
    name: str | None = Field(None, description="Application name")
    pipelines: dict[str, PipelineDefinition] | None = Field(
        None, description="Pipelines keyed by pipeline name"
    )

    def get_phases(self, pipeline_name: str) -> list[PhaseDeclaration]:
        """Return the declared phases for a pipeline.

        Args:
            pipeline_name: Pipeline to look up.

        Returns:
            list[PhaseDeclaration]: Phases in declaration order, empty if the
            pipeline is missing or declares none.
        """
        definition = (self.pipelines or {}).get(pipeline_name)
        if definition is None:
            return []
        return list(definition.phases or [])

    def has_pipeline(self, pipeline_name: str) -> bool:
        """Return True when the pipeline is declared."""
        return pipeline_name in (self.pipelines or {})


class PipelineCheckReport(BaseSchema):
    """Accumulated validation errors for a specification."""

    errors: list[str] = Field(
        default_factory=list, description="Errors not tied to a single pipeline"
    )
    pipeline_errors: dict[str, list[str]] = Field(
        default_factory=dict, description="Errors keyed by pipeline name"
    )

    @property
    def has_errors(self) -> bool:
        """Return True when any error was recorded."""
        if self.errors:
            return True
        return any(errors for errors in self.pipeline_errors.values())

    def all_errors(self) -> list[str]:
        """Flatten every error into one list, pipeline errors prefixed.

        Returns:
            list[str]: Errors in report order.
        """
        flattened = list(self.errors)
        for pipeline_name, errors in self.pipeline_errors.items():
            flattened.extend(f"[{pipeline_name}] {error}" for error in errors)
        return flattened
