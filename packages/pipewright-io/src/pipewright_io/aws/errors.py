"""Translation of botocore client errors."""

from __future__ import annotations

from botocore.exceptions import ClientError

from pipewright_core.ports.provider import ProviderError


def error_code(exc: ClientError) -> str:
    """Return the provider error code of a client error."""
    return str(exc.response.get("Error", {}).get("Code", ""))


def is_not_found(exc: ClientError, *codes: str) -> bool:
    """Return True when the error means the resource does not exist.

    Args:
        exc: Client error raised by botocore.
        codes: Service-specific not-found error codes.
    """
    return error_code(exc) in {*codes, "404", "NotFound", "ResourceNotFoundException"}


def provider_error(operation: str, resource: str, exc: ClientError) -> ProviderError:
    """Wrap a client error in a ProviderError.

    Args:
        operation: Provider operation that failed.
        resource: Resource the call targeted.
        exc: Client error raised by botocore.

    Returns:
        ProviderError: Error ready to raise from the original.
    """
    message = exc.response.get("Error", {}).get("Message") or str(exc)
    return ProviderError(operation, resource, f"{error_code(exc)}: {message}")
