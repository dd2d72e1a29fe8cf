"""CodePipeline adapter for pipelines and source webhooks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from botocore.exceptions import ClientError

from pipewright_core.ports.provider import PipelineApiProtocol, WebhookApiProtocol
from pipewright_io.aws.errors import is_not_found, provider_error
from pipewright_schemas.provider import (
    PipelineDeclaration,
    PipelineResource,
    WebhookDefinition,
)

logger = logging.getLogger(__name__)

PIPELINE_NOT_FOUND = "PipelineNotFoundException"
WEBHOOK_NOT_FOUND = "WebhookNotFoundException"


def pipeline_payload(declaration: PipelineDeclaration) -> dict[str, Any]:
    """Return the ``pipeline`` structure for create and update calls."""
    return {
        "name": declaration.name,
        "roleArn": declaration.role_arn,
        "artifactStore": {"type": "S3", "location": declaration.artifact_bucket},
        "stages": [stage.model_dump(by_alias=True) for stage in declaration.stages],
    }


def webhook_payload(definition: WebhookDefinition) -> dict[str, Any]:
    """Return the ``webhook`` structure for put_webhook."""
    return {
        "name": definition.name,
        "targetPipeline": definition.target_pipeline,
        "targetAction": definition.target_action,
        "filters": [
            {"jsonPath": item.json_path, "matchEquals": item.match_equals}
            for item in definition.filters
        ],
        "authentication": "GITHUB_HMAC",
        "authenticationConfiguration": {
            "SecretToken": definition.secret_token.get_secret_value()
        },
    }


class CodePipelineApi(PipelineApiProtocol, WebhookApiProtocol):
    """Pipeline and webhook calls backed by a boto3 CodePipeline client."""

    def __init__(self, client: Any) -> None:
        """Initialize the adapter.

        Args:
            client: boto3 ``codepipeline`` client.
        """
        self._client = client

    async def get_pipeline(self, name: str) -> PipelineResource | None:
        """Return the pipeline, or None when it does not exist."""
        try:
            response = await asyncio.to_thread(self._client.get_pipeline, name=name)
        except ClientError as exc:
            if is_not_found(exc, PIPELINE_NOT_FOUND):
                return None
            raise provider_error("get_pipeline", name, exc) from exc
        pipeline = response.get("pipeline", {})
        return PipelineResource(name=name, version=pipeline.get("version"))

    async def create_pipeline(
        self, declaration: PipelineDeclaration
    ) -> PipelineResource:
        """Create a pipeline from a full declaration."""
        try:
            response = await asyncio.to_thread(
                self._client.create_pipeline, pipeline=pipeline_payload(declaration)
            )
        except ClientError as exc:
            raise provider_error("create_pipeline", declaration.name, exc) from exc
        pipeline = response.get("pipeline", {})
        return PipelineResource(name=declaration.name, version=pipeline.get("version"))

    async def update_pipeline(
        self, declaration: PipelineDeclaration
    ) -> PipelineResource:
        """Replace an existing pipeline's stages with the declaration."""
        try:
            response = await asyncio.to_thread(
                self._client.update_pipeline, pipeline=pipeline_payload(declaration)
            )
        except ClientError as exc:
            raise provider_error("update_pipeline", declaration.name, exc) from exc
        pipeline = response.get("pipeline", {})
        return PipelineResource(name=declaration.name, version=pipeline.get("version"))

    async def delete_pipeline(self, name: str) -> bool:
        """Delete a pipeline; returns False when it did not exist."""
        if await self.get_pipeline(name) is None:
            return False
        try:
            await asyncio.to_thread(self._client.delete_pipeline, name=name)
        except ClientError as exc:
            if is_not_found(exc, PIPELINE_NOT_FOUND):
                return False
            raise provider_error("delete_pipeline", name, exc) from exc
        return True

    async def webhook_exists(self, name: str) -> bool:
        """Return True when a webhook with this name exists."""

        def _list_names() -> set[str]:
            names: set[str] = set()
            paginator = self._client.get_paginator("list_webhooks")
            for page in paginator.paginate():
                for webhook in page.get("webhooks", []):
                    definition = webhook.get("definition", {})
                    if definition.get("name"):
                        names.add(str(definition["name"]))
            return names

        try:
            names = await asyncio.to_thread(_list_names)
        except ClientError as exc:
            raise provider_error("list_webhooks", name, exc) from exc
        return name in names

    async def put_webhook(self, definition: WebhookDefinition) -> None:
        """Create or replace a webhook definition."""
        try:
            await asyncio.to_thread(
                self._client.put_webhook, webhook=webhook_payload(definition)
            )
        except ClientError as exc:
            raise provider_error("put_webhook", definition.name, exc) from exc

    async def register_webhook(self, name: str) -> None:
        """Register the webhook with GitHub."""
        try:
            await asyncio.to_thread(
                self._client.register_webhook_with_third_party, webhookName=name
            )
        except ClientError as exc:
            raise provider_error("register_webhook", name, exc) from exc

    async def deregister_webhook(self, name: str) -> None:
        """Deregister the webhook from GitHub."""
        try:
            await asyncio.to_thread(
                self._client.deregister_webhook_with_third_party, webhookName=name
            )
        except ClientError as exc:
            if is_not_found(exc, WEBHOOK_NOT_FOUND):
                return
            raise provider_error("deregister_webhook", name, exc) from exc

    async def delete_webhook(self, name: str) -> None:
        """Delete the webhook definition."""
        try:
            await asyncio.to_thread(self._client.delete_webhook, name=name)
        except ClientError as exc:
            if is_not_found(exc, WEBHOOK_NOT_FOUND):
                return
            raise provider_error("delete_webhook", name, exc) from exc
