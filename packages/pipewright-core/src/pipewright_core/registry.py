"""Registry of phase plugins keyed by phase type."""

from __future__ import annotations

from pipewright_core.phases import (
    ApprovalPhase,
    CodeBuildPhase,
    CodeCommitPhase,
    GithubPhase,
)
from pipewright_core.ports.phase import PhasePluginProtocol
from pipewright_core.ports.provider import ProviderBundle
from pipewright_schemas.primitives import PhaseType


class PhaseRegistry:
    """Registry mapping phase types to plugin instances.

    Plugins are registered explicitly; one instance serves every phase of its
    type for the lifetime of the registry.
    """

    def __init__(self) -> None:
        """Initialize an empty phase registry."""
        self._plugins: dict[str, PhasePluginProtocol] = {}

    def register(self, phase_type: str, plugin: PhasePluginProtocol) -> None:
        """Register a phase plugin.

        Args:
            phase_type: Unique phase type name.
            plugin: Plugin handling the type.

        Raises:
            ValueError: If a plugin for this type is already registered.
        """
        if phase_type in self._plugins:
            raise ValueError(f"Phase type already registered: {phase_type}")
        self._plugins[phase_type] = plugin

    def resolve(self, phase_type: str | None) -> PhasePluginProtocol | None:
        """Return the plugin for a phase type.

        Args:
            phase_type: Declared phase type.

        Returns:
            PhasePluginProtocol | None: Plugin, or None when the type is unknown.
        """
        if phase_type is None:
            return None
        return self._plugins.get(phase_type)

    def list_phase_types(self) -> list[str]:
        """List all registered phase types.

        Returns:
            Sorted list of registered phase types.
        """
        return sorted(self._plugins.keys())


def build_default_registry(providers: ProviderBundle) -> PhaseRegistry:
    """Build the registry with every built-in phase type.

    Args:
        providers: Provider ports the plugins are wired to.

    Returns:
        PhaseRegistry with the standard phase types registered.
    """
    registry = PhaseRegistry()
    registry.register(PhaseType.GITHUB, GithubPhase(providers.webhooks))
    registry.register(PhaseType.CODECOMMIT, CodeCommitPhase())
    registry.register(
        PhaseType.CODEBUILD,
        CodeBuildPhase(providers.build_projects, providers.roles),
    )
    registry.register(PhaseType.APPROVAL, ApprovalPhase())
    return registry
