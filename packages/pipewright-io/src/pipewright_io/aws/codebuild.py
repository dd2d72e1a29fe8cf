"""CodeBuild adapter for build projects."""

from __future__ import annotations

import asyncio
from typing import Any

from botocore.exceptions import ClientError

from pipewright_core.ports.provider import BuildProjectApiProtocol
from pipewright_io.aws.errors import is_not_found, provider_error
from pipewright_schemas.primitives import BuildCacheType
from pipewright_schemas.provider import BuildProject, BuildProjectSpec


def project_payload(spec: BuildProjectSpec) -> dict[str, Any]:
    """Return keyword arguments for create_project and update_project."""
    cache: dict[str, str] = {"type": "NO_CACHE"}
    if spec.cache.type == BuildCacheType.S3 and spec.cache.location:
        cache = {"type": "S3", "location": spec.cache.location}
    return {
        "name": spec.name,
        "description": spec.description,
        "source": {"type": "CODEPIPELINE"},
        "artifacts": {"type": "CODEPIPELINE"},
        "environment": {
            "type": "LINUX_CONTAINER",
            "image": spec.image,
            "computeType": spec.compute_type,
            "privilegedMode": spec.privileged_mode,
            "environmentVariables": [
                {"name": name, "value": value, "type": "PLAINTEXT"}
                for name, value in spec.environment_variables.items()
            ],
        },
        "serviceRole": spec.service_role_arn,
        "cache": cache,
        "tags": [{"key": key, "value": value} for key, value in spec.tags.items()],
    }


def _to_build_project(name: str, response: dict[str, Any]) -> BuildProject:
    project = response.get("project", {})
    return BuildProject(name=name, arn=project.get("arn"))


class CodeBuildApi(BuildProjectApiProtocol):
    """Build project calls backed by a boto3 CodeBuild client."""

    def __init__(self, client: Any) -> None:
        """Initialize the adapter.

        Args:
            client: boto3 ``codebuild`` client.
        """
        self._client = client

    async def get_build_project(self, name: str) -> BuildProject | None:
        """Return the project, or None when it does not exist."""
        try:
            response = await asyncio.to_thread(
                self._client.batch_get_projects, names=[name]
            )
        except ClientError as exc:
            raise provider_error("batch_get_projects", name, exc) from exc
        projects = response.get("projects", [])
        if not projects:
            return None
        return BuildProject(name=name, arn=projects[0].get("arn"))

    async def create_build_project(self, spec: BuildProjectSpec) -> BuildProject:
        """Create a build project."""
        try:
            response = await asyncio.to_thread(
                self._client.create_project, **project_payload(spec)
            )
        except ClientError as exc:
            raise provider_error("create_project", spec.name, exc) from exc
        return _to_build_project(spec.name, response)

    async def update_build_project(self, spec: BuildProjectSpec) -> BuildProject:
        """Update an existing build project."""
        try:
            response = await asyncio.to_thread(
                self._client.update_project, **project_payload(spec)
            )
        except ClientError as exc:
            raise provider_error("update_project", spec.name, exc) from exc
        return _to_build_project(spec.name, response)

    async def delete_build_project(self, name: str) -> bool:
        """Delete a build project; returns False when it did not exist."""
        if await self.get_build_project(name) is None:
            return False
        try:
            await asyncio.to_thread(self._client.delete_project, name=name)
        except ClientError as exc:
            if is_not_found(exc):
                return False
            raise provider_error("delete_project", name, exc) from exc
        return True
