"""IAM adapter for pipeline and build service roles."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from botocore.exceptions import ClientError

from pipewright_core.ports.provider import RoleApiProtocol
from pipewright_io.aws.errors import error_code, is_not_found, provider_error
from pipewright_schemas.provider import IamRole, RoleSpec

logger = logging.getLogger(__name__)

NO_SUCH_ENTITY = "NoSuchEntity"
ENTITY_ALREADY_EXISTS = "EntityAlreadyExists"


def trust_policy(service: str) -> dict[str, Any]:
    """Return an assume-role policy trusting a single service principal."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": service},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def inline_policy_name(role_name: str) -> str:
    """Return the name of the inline policy managed for a role."""
    return f"{role_name}-policy"


class IamApi(RoleApiProtocol):
    """Role calls backed by a boto3 IAM client."""

    def __init__(self, client: Any) -> None:
        """Initialize the adapter.

        Args:
            client: boto3 ``iam`` client.
        """
        self._client = client

    async def get_role(self, name: str) -> IamRole | None:
        """Return the role, or None when it does not exist."""
        try:
            response = await asyncio.to_thread(self._client.get_role, RoleName=name)
        except ClientError as exc:
            if is_not_found(exc, NO_SUCH_ENTITY):
                return None
            raise provider_error("get_role", name, exc) from exc
        return IamRole(name=name, arn=response["Role"]["Arn"])

    async def create_or_update_role(self, spec: RoleSpec) -> IamRole:
        """Create the role if needed and replace its inline policy."""
        role = await self.get_role(spec.name)
        if role is None:
            role = await self._create_role(spec)
        try:
            await asyncio.to_thread(
                self._client.put_role_policy,
                RoleName=spec.name,
                PolicyName=inline_policy_name(spec.name),
                PolicyDocument=json.dumps(spec.policy_document),
            )
        except ClientError as exc:
            raise provider_error("create_or_update_role", spec.name, exc) from exc
        return role

    async def _create_role(self, spec: RoleSpec) -> IamRole:
        logger.info("Creating role %s", spec.name)
        try:
            response = await asyncio.to_thread(
                self._client.create_role,
                RoleName=spec.name,
                AssumeRolePolicyDocument=json.dumps(trust_policy(spec.trusted_service)),
            )
        except ClientError as exc:
            if error_code(exc) != ENTITY_ALREADY_EXISTS:
                raise provider_error("create_role", spec.name, exc) from exc
            # Created by another run between the lookup and the create.
            role = await self.get_role(spec.name)
            if role is None:
                raise provider_error("create_role", spec.name, exc) from exc
            return role
        return IamRole(name=spec.name, arn=response["Role"]["Arn"])

    async def delete_role(self, name: str) -> bool:
        """Delete a role and its policies; False when it did not exist."""

        def _delete() -> None:
            inline = self._client.list_role_policies(RoleName=name)
            for policy_name in inline.get("PolicyNames", []):
                self._client.delete_role_policy(RoleName=name, PolicyName=policy_name)
            attached = self._client.list_attached_role_policies(RoleName=name)
            for policy in attached.get("AttachedPolicies", []):
                self._client.detach_role_policy(
                    RoleName=name, PolicyArn=policy["PolicyArn"]
                )
            self._client.delete_role(RoleName=name)

        try:
            await asyncio.to_thread(_delete)
        except ClientError as exc:
            if is_not_found(exc, NO_SUCH_ENTITY):
                return False
            raise provider_error("delete_role", name, exc) from exc
        logger.info("Deleted role %s", name)
        return True
