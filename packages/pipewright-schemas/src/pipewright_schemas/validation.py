"""Validation entrypoints for external payloads."""

from __future__ import annotations

from pydantic import TypeAdapter

from pipewright_schemas.account import AccountConfig
from pipewright_schemas.primitives import JsonValue
from pipewright_schemas.secrets import PhaseSecretValue
from pipewright_schemas.spec import PipelineSpec

_SECRET_VALUES_ADAPTER = TypeAdapter(list[PhaseSecretValue])


def validate_pipeline_spec_payload(payload: dict[str, JsonValue]) -> PipelineSpec:
    """Validate a parsed pipewright.yml document.

    Args:
        payload: Raw specification mapping.

    Returns:
        PipelineSpec: Validated specification.
    """
    return PipelineSpec.model_validate(payload, strict=False)


def validate_account_config(payload: dict[str, JsonValue]) -> AccountConfig:
    """Validate a parsed account configuration file.

    Args:
        payload: Raw account configuration mapping.

    Returns:
        AccountConfig: Validated account configuration.
    """
    return AccountConfig.model_validate(payload, strict=False)


def validate_secret_values(payload: JsonValue) -> list[PhaseSecretValue]:
    """Validate a decoded list of phase secret triples.

    Args:
        payload: Decoded JSON payload.

    Returns:
        list[PhaseSecretValue]: Validated secret triples.
    """
    return _SECRET_VALUES_ADAPTER.validate_python(payload, strict=False)
