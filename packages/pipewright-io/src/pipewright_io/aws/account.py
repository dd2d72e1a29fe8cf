"""STS and S3 adapter for caller identity and the artifact bucket."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from botocore.exceptions import ClientError

from pipewright_core.ports.provider import AccountApiProtocol
from pipewright_io.aws.errors import is_not_found, provider_error

logger = logging.getLogger(__name__)

# Buckets in this region are created without a location constraint
DEFAULT_REGION = "us-east-1"


class AwsAccountApi(AccountApiProtocol):
    """Account calls backed by boto3 STS and S3 clients."""

    def __init__(self, sts_client: Any, s3_client: Any) -> None:
        """Initialize the adapter.

        Args:
            sts_client: boto3 ``sts`` client.
            s3_client: boto3 ``s3`` client.
        """
        self._sts = sts_client
        self._s3 = s3_client

    async def get_caller_account_id(self) -> str:
        """Return the account id of the active credentials."""
        try:
            response = await asyncio.to_thread(self._sts.get_caller_identity)
        except ClientError as exc:
            raise provider_error("get_caller_identity", "caller", exc) from exc
        return str(response["Account"])

    async def ensure_bucket(self, name: str, region: str) -> None:
        """Create the bucket when it does not exist."""
        try:
            await asyncio.to_thread(self._s3.head_bucket, Bucket=name)
            return
        except ClientError as exc:
            if not is_not_found(exc, "NoSuchBucket"):
                raise provider_error("head_bucket", name, exc) from exc

        logger.info("Creating artifact bucket %s", name)
        params: dict[str, Any] = {"Bucket": name}
        if region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            await asyncio.to_thread(self._s3.create_bucket, **params)
        except ClientError as exc:
            raise provider_error("create_bucket", name, exc) from exc
