"""Parameter validation shared by the built-in phase plugins."""

from __future__ import annotations

from pydantic import ConfigDict, Field, ValidationError
from pydantic_core import ErrorDetails

from pipewright_core.ports.lifecycle import LifecycleErrorCode, build_lifecycle_error
from pipewright_schemas.base import BaseSchema
from pipewright_schemas.context import PhaseContext
from pipewright_schemas.spec import PhaseDeclaration


class PhaseParams(BaseSchema):
    """Base model for type-specific phase parameters.

    Unknown keys are rejected so misspelled parameters surface as check errors.
    """

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1, description="Phase type")
    name: str = Field(..., min_length=1, description="Phase name")


def check_phase_params(
    label: str, model: type[PhaseParams], declaration: PhaseDeclaration
) -> list[str]:
    """Validate a declaration against a parameter model.

    Args:
        label: Human-readable phase kind prefixed to every message.
        model: Parameter model for the phase type.
        declaration: Declared phase.

    Returns:
        list[str]: One message per validation error, empty when valid.
    """
    try:
        model.model_validate(declaration.params(), strict=False)
    except ValidationError as exc:
        return [_format_error(label, error) for error in exc.errors()]
    return []


def parse_phase_params[ParamsT: PhaseParams](
    model: type[ParamsT], context: PhaseContext
) -> ParamsT:
    """Parse a phase context's declaration into its parameter model.

    Args:
        model: Parameter model for the phase type.
        context: Phase context carrying the declaration.

    Returns:
        ParamsT: Validated parameters.
    """
    return model.model_validate(context.params(), strict=False)


def require_secret(context: PhaseContext, name: str) -> str:
    """Return a secret the phase cannot deploy without.

    Args:
        context: Phase context carrying resolved secrets.
        name: Secret name.

    Returns:
        str: Secret value.

    Raises:
        LifecycleError: If the secret was not supplied.
    """
    value = context.secret(name)
    if not value:
        raise build_lifecycle_error(
            LifecycleErrorCode.MISSING_SECRET,
            f"Phase '{context.phase_name}' requires the '{name}' secret",
            pipeline=context.pipeline_name,
            phase=context.phase_name,
            phase_type=context.phase_type,
            reason=f"missing secret: {name}",
        )
    return value


def _format_error(label: str, error: ErrorDetails) -> str:
    location = ".".join(str(part) for part in error["loc"])
    error_type = error["type"]
    if error_type == "missing":
        return f"{label} - The '{location}' parameter is required"
    if error_type == "extra_forbidden":
        return (
            f"{label} - Invalid property '{location}' specified. "
            "Make sure to check your spelling!"
        )
    return f"{label} - Error at '{location}': {error['msg']}"
