"""CLI exit code taxonomy and error-to-exit-code registry.

Exit code ranges:
- 0: Success
- 10-19: Client/input errors (config, validation)
- 20-29: Lifecycle errors
- 30-39: Provider errors
- 99: Unexpected runtime errors
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """CLI exit codes by failure category."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    VALIDATION_ERROR = 11
    LIFECYCLE_ERROR = 20
    PROVIDER_ERROR = 30
    RUNTIME_ERROR = 99


# Lifecycle codes are qualified with the "lifecycle." prefix; CLI-level codes
# are stored bare.
ERROR_CODE_TO_EXIT_CODE: dict[str, ExitCode] = {
    "config_error": ExitCode.CONFIG_ERROR,
    "validation_error": ExitCode.VALIDATION_ERROR,
    "provider_error": ExitCode.PROVIDER_ERROR,
    "runtime_error": ExitCode.RUNTIME_ERROR,
    "lifecycle.invalid_specification": ExitCode.VALIDATION_ERROR,
    "lifecycle.unknown_pipeline": ExitCode.CONFIG_ERROR,
    "lifecycle.unsupported_phase_type": ExitCode.VALIDATION_ERROR,
    "lifecycle.invalid_secrets": ExitCode.CONFIG_ERROR,
    "lifecycle.missing_secret": ExitCode.LIFECYCLE_ERROR,
    "lifecycle.phase_failed": ExitCode.LIFECYCLE_ERROR,
    "lifecycle.account_mismatch": ExitCode.CONFIG_ERROR,
}


def resolve_exit_code(error_code: str, *, domain: str | None = None) -> ExitCode:
    """Resolve an error code string to its ExitCode.

    Args:
        error_code: The error code string (e.g. "validation_error",
            "missing_secret").
        domain: Optional domain prefix (e.g. "lifecycle"). When provided, the
            lookup uses ``"{domain}.{error_code}"`` first, falling back to an
            unqualified lookup.

    Returns:
        The matching ExitCode, or RUNTIME_ERROR if no mapping is found.
    """
    if domain:
        qualified = f"{domain}.{error_code}"
        if qualified in ERROR_CODE_TO_EXIT_CODE:
            return ERROR_CODE_TO_EXIT_CODE[qualified]

    if error_code in ERROR_CODE_TO_EXIT_CODE:
        return ERROR_CODE_TO_EXIT_CODE[error_code]

    return ExitCode.RUNTIME_ERROR
