"""boto3-backed provider adapters."""

from __future__ import annotations

import boto3

from pipewright_core.ports.provider import ProviderBundle
from pipewright_io.aws.account import AwsAccountApi
from pipewright_io.aws.codebuild import CodeBuildApi
from pipewright_io.aws.codepipeline import CodePipelineApi
from pipewright_io.aws.iam import IamApi


def build_aws_providers(
    region: str, session: boto3.session.Session | None = None
) -> ProviderBundle:
    """Build every provider port for a region.

    Args:
        region: Region of the target account.
        session: Optional boto3 session; a default session is created
            otherwise.

    Returns:
        ProviderBundle: Ports backed by boto3 clients.
    """
    session = session or boto3.session.Session(region_name=region)
    pipelines = CodePipelineApi(session.client("codepipeline", region_name=region))
    return ProviderBundle(
        pipelines=pipelines,
        webhooks=pipelines,
        build_projects=CodeBuildApi(session.client("codebuild", region_name=region)),
        roles=IamApi(session.client("iam")),
        account=AwsAccountApi(
            session.client("sts", region_name=region),
            session.client("s3", region_name=region),
        ),
    )


__all__ = [
    "AwsAccountApi",
    "CodeBuildApi",
    "CodePipelineApi",
    "IamApi",
    "build_aws_providers",
]
