"""Secret question and value schemas."""

from __future__ import annotations

from pydantic import AliasChoices, AliasGenerator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipewright_schemas.base import BaseSchema


class _SecretWireSchema(BaseSchema):
    """Accepts and emits the camelCase wire keys (``phaseName``)."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(
            validation_alias=lambda field: AliasChoices(field, to_camel(field)),
            serialization_alias=to_camel,
        ),
    )


class PhaseSecretQuestion(_SecretWireSchema):
    """A secret a phase needs, described for a human or a script."""

    phase_name: str = Field(..., min_length=1, description="Phase asking for it")
    name: str = Field(..., min_length=1, description="Secret name")
    message: str = Field(..., min_length=1, description="Prompt shown to a human")


class PhaseSecretValue(_SecretWireSchema):
    """A supplied secret value for non-interactive deploys."""

    phase_name: str = Field(..., min_length=1, description="Phase receiving it")
    name: str = Field(..., min_length=1, description="Secret name")
    value: str = Field(..., description="Secret value")
