"""Provider API ports used by phase plugins and the pipeline assembler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pipewright_schemas.provider import (
    BuildProject,
    BuildProjectSpec,
    IamRole,
    PipelineDeclaration,
    PipelineResource,
    RoleSpec,
    WebhookDefinition,
)


class ProviderError(Exception):
    """A provider API call failed for a reason other than "not found"."""

    def __init__(self, operation: str, resource: str, reason: str) -> None:
        """Initialize the provider error.

        Args:
            operation: Provider operation that failed.
            resource: Resource the call targeted.
            reason: Provider error message.
        """
        super().__init__(f"{operation} failed for '{resource}': {reason}")
        self.operation = operation
        self.resource = resource
        self.reason = reason


@runtime_checkable
class PipelineApiProtocol(Protocol):
    """CRUD access to provider pipelines."""

    async def get_pipeline(self, name: str) -> PipelineResource | None:
        """Return the pipeline, or None when it does not exist."""
        raise NotImplementedError

    async def create_pipeline(
        self, declaration: PipelineDeclaration
    ) -> PipelineResource:
        """Create a pipeline from a full declaration."""
        raise NotImplementedError

    async def update_pipeline(
        self, declaration: PipelineDeclaration
    ) -> PipelineResource:
        """Replace an existing pipeline's stages with the declaration."""
        raise NotImplementedError

    async def delete_pipeline(self, name: str) -> bool:
        """Delete a pipeline; returns False when it did not exist."""
        raise NotImplementedError


@runtime_checkable
class WebhookApiProtocol(Protocol):
    """Access to pipeline source webhooks."""

    async def webhook_exists(self, name: str) -> bool:
        """Return True when a webhook with this name exists."""
        raise NotImplementedError

    async def put_webhook(self, definition: WebhookDefinition) -> None:
        """Create or replace a webhook definition."""
        raise NotImplementedError

    async def register_webhook(self, name: str) -> None:
        """Register the webhook with the third-party source."""
        raise NotImplementedError

    async def deregister_webhook(self, name: str) -> None:
        """Deregister the webhook from the third-party source."""
        raise NotImplementedError

    async def delete_webhook(self, name: str) -> None:
        """Delete the webhook definition."""
        raise NotImplementedError


@runtime_checkable
class BuildProjectApiProtocol(Protocol):
    """CRUD access to build projects."""

    async def get_build_project(self, name: str) -> BuildProject | None:
        """Return the project, or None when it does not exist."""
        raise NotImplementedError

    async def create_build_project(self, spec: BuildProjectSpec) -> BuildProject:
        """Create a build project."""
        raise NotImplementedError

    async def update_build_project(self, spec: BuildProjectSpec) -> BuildProject:
        """Update an existing build project."""
        raise NotImplementedError

    async def delete_build_project(self, name: str) -> bool:
        """Delete a build project; returns False when it did not exist."""
        raise NotImplementedError


@runtime_checkable
class RoleApiProtocol(Protocol):
    """Access to service roles."""

    async def get_role(self, name: str) -> IamRole | None:
        """Return the role, or None when it does not exist."""
        raise NotImplementedError

    async def create_or_update_role(self, spec: RoleSpec) -> IamRole:
        """Create the role if needed and replace its inline policy."""
        raise NotImplementedError

    async def delete_role(self, name: str) -> bool:
        """Delete a role and its inline policies; False when absent."""
        raise NotImplementedError


@runtime_checkable
class AccountApiProtocol(Protocol):
    """Caller identity and shared account resources."""

    async def get_caller_account_id(self) -> str:
        """Return the account id of the active credentials."""
        raise NotImplementedError

    async def ensure_bucket(self, name: str, region: str) -> None:
        """Create the bucket when it does not exist."""
        raise NotImplementedError


@dataclass(slots=True)
class ProviderBundle:
    """Every provider port needed for one lifecycle run."""

    pipelines: PipelineApiProtocol
    webhooks: WebhookApiProtocol
    build_projects: BuildProjectApiProtocol
    roles: RoleApiProtocol
    account: AccountApiProtocol
