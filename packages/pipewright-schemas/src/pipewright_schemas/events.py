"""Event taxonomy for lifecycle observability."""

from __future__ import annotations

from enum import StrEnum


class CheckEvent(StrEnum):
    """Event names for specification checks."""

    COMPLETED = "check_completed"


class SecretsEvent(StrEnum):
    """Event names for secret resolution."""

    RESOLVED = "secrets_resolved"


class PhaseEvent(StrEnum):
    """Event names for phase deploy and delete."""

    DEPLOY_STARTED = "phase_deploy_started"
    DEPLOYED = "phase_deployed"
    DEPLOY_FAILED = "phase_deploy_failed"
    DELETED = "phase_deleted"
    DELETE_FAILED = "phase_delete_failed"


class PipelineEvent(StrEnum):
    """Event names for pipeline resource changes."""

    CREATED = "pipeline_created"
    UPDATED = "pipeline_updated"
    DELETED = "pipeline_deleted"


class WebhookEvent(StrEnum):
    """Event names for webhook registration."""

    ADDED = "webhook_added"
    REMOVED = "webhook_removed"
