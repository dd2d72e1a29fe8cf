"""Port for asking a human for secret values."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pipewright_schemas.secrets import PhaseSecretQuestion


@runtime_checkable
class SecretPrompterProtocol(Protocol):
    """Asks a human for secret values.

    Implementations return a mapping keyed by question name. Questions the
    human leaves blank may be omitted.
    """

    async def prompt_secrets(
        self, questions: list[PhaseSecretQuestion]
    ) -> dict[str, str]:
        """Ask every question and return the answers by name."""
        raise NotImplementedError
