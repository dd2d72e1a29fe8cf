"""Secret redaction for structured logs."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from pydantic import Field

from pipewright_schemas.base import BaseSchema
from pipewright_schemas.primitives import JsonValue

REDACTED = "[REDACTED]"


class SecretPattern(BaseSchema):
    """Compiled regex pattern for detecting secrets."""

    pattern: str = Field(..., description="Regex pattern string")
    label: str = Field(..., description="Human-readable description")
    compiled: re.Pattern[str] | None = Field(
        default=None, description="Compiled regex (set during initialization)"
    )

    def model_post_init(self, __context: dict[str, str] | None) -> None:
        """Compile the pattern after initialization."""
        if self.compiled is None:
            self.compiled = re.compile(self.pattern)


# Default patterns for credentials that commonly leak into provider errors
DEFAULT_PATTERNS = [
    SecretPattern(
        pattern=r"gh[pousr]_[A-Za-z0-9]{36,}",
        label="GitHub token (ghp_*)",
    ),
    SecretPattern(
        pattern=r"(?<![A-Z0-9])(?:AKIA|ASIA)[A-Z0-9]{16}(?![A-Z0-9])",
        label="AWS access key id",
    ),
    SecretPattern(
        pattern=r"Bearer\s+[a-zA-Z0-9_\-\.]{20,}",
        label="Bearer token",
    ),
    SecretPattern(
        pattern=r"(?<![A-Za-z0-9+/])[A-Za-z0-9+/]{40,}={0,2}(?![A-Za-z0-9+/=])",
        label="Base64 blob (40+ chars)",
    ),
]


class Redactor:
    """Redacts secrets from strings and dicts."""

    def __init__(
        self, patterns: list[SecretPattern], literal_values: list[str]
    ) -> None:
        """Initialize with patterns and literal secret values.

        Args:
            patterns: List of SecretPattern instances with compiled regexes
            literal_values: Exact string values to redact (e.g. resolved
                phase secrets)
        """
        self.patterns = patterns
        self.literal_values: list[str] = []
        self.add_literal_values(literal_values)

    def add_literal_values(self, values: Iterable[str]) -> None:
        """Register more exact values to redact.

        Args:
            values: Secret values resolved after the redactor was built.
        """
        merged = set(self.literal_values)
        merged.update(value for value in values if value)
        # Longest first so a secret containing another is replaced whole
        self.literal_values = sorted(merged, key=len, reverse=True)

    def redact(self, value: str) -> str:
        """Redact secrets from a string.

        Args:
            value: String that may contain secrets

        Returns:
            String with secrets replaced by [REDACTED]
        """
        result = value
        for literal in self.literal_values:
            result = result.replace(literal, REDACTED)

        for pattern in self.patterns:
            if pattern.compiled is not None:
                result = pattern.compiled.sub(REDACTED, result)

        return result

    def redact_dict(self, data: Mapping[str, JsonValue]) -> dict[str, JsonValue]:
        """Deep-walk a dict and redact all string values.

        Args:
            data: Dictionary that may contain secrets

        Returns:
            New dictionary with secrets redacted
        """
        result: dict[str, JsonValue] = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self.redact(value)
            elif isinstance(value, dict):
                result[key] = self.redact_dict(value)
            elif isinstance(value, list):
                result[key] = self._redact_list(value)
            else:
                result[key] = value
        return result

    def _redact_list(self, items: list[JsonValue]) -> list[JsonValue]:
        result: list[JsonValue] = []
        for item in items:
            if isinstance(item, str):
                result.append(self.redact(item))
            elif isinstance(item, dict):
                result.append(self.redact_dict(item))
            elif isinstance(item, list):
                result.append(self._redact_list(item))
            else:
                result.append(item)
        return result


def build_redactor(
    secret_values: Iterable[str] = (),
    patterns: list[SecretPattern] | None = None,
) -> Redactor:
    """Build a Redactor seeded with resolved secret values.

    Args:
        secret_values: Plain secret values to redact verbatim.
        patterns: Regex patterns; the defaults are used when omitted.

    Returns:
        Redactor instance ready to use
    """
    return Redactor(
        patterns=DEFAULT_PATTERNS if patterns is None else patterns,
        literal_values=list(secret_values),
    )
