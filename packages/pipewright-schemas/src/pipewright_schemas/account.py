"""Target account configuration schema."""

from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator

from pipewright_schemas.base import BaseSchema


class AccountConfig(BaseSchema):
    """Identity and network placement of the target account.

    The core treats this as opaque; extra keys are preserved for phase plugins.
    """

    model_config = ConfigDict(extra="allow")

    account_id: str = Field(..., min_length=1, description="Provider account id")
    region: str = Field(..., min_length=1, description="Provider region")
    vpc: str | None = Field(None, description="VPC identifier")
    public_subnets: list[str] = Field(default_factory=list)
    private_subnets: list[str] = Field(default_factory=list)
    data_subnets: list[str] = Field(default_factory=list)

    @field_validator("account_id", mode="before")
    @classmethod
    def _coerce_account_id(cls, value: object) -> object:
        # YAML reads unquoted account ids as integers
        if isinstance(value, int):
            return str(value)
        return value


def artifact_bucket_name(account: AccountConfig) -> str:
    """Return the output-artifact bucket name for an account.

    Args:
        account: Target account configuration.

    Returns:
        str: Bucket name shared by every pipeline in the account and region.
    """
    return f"codepipeline-{account.region}-{account.account_id}"
