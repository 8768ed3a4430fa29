"""Configuration schema for a mirrored bucket."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class MirrorConfig(BaseModel):
    """Options for mirroring one bucket (optionally scoped by prefix) to a local directory.

    Field names are snake_case; the camelCase names used by host
    configurations (``accessKeyId``, ``autoGetSource``...) are accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    # Credentials
    access_key_id: str = Field(..., alias="accessKeyId", description="Access key ID for the store")
    secret_access_key: SecretStr = Field(..., alias="secretAccessKey", description="Secret access key for the store")

    # Repository location
    bucket: str = Field(..., description="Bucket to mirror")
    prefix: str = Field(default="", description="Key prefix restricting the mirrored objects")

    # Transport
    use_ssl: bool = Field(default=False, alias="useSsl", description="Connect over HTTPS")
    region: Optional[str] = Field(default=None, description="Region of the bucket")
    endpoint_url: Optional[str] = Field(default=None, alias="endpointUrl", description="Custom endpoint for S3-compatible stores")

    # Behaviour
    auto_get_source: bool = Field(default=False, alias="autoGetSource", description="Apply detected changes to the working directory")
    ignore_missing_root: bool = Field(default=False, alias="ignoreMissingRoot", description="Treat a missing bucket as empty")
    working_directory: str = Field(default=".", alias="workingDirectory", description="Local mirror root")

    @field_validator("access_key_id", "bucket")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("prefix", mode="before")
    @classmethod
    def validate_prefix(cls, v):
        return "" if v is None else v

    @field_validator("working_directory")
    @classmethod
    def validate_working_directory(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("working_directory must not be empty")
        return v


MIRROR_CONFIG_EXAMPLE = MirrorConfig(
    access_key_id="AKIAEXAMPLE",
    secret_access_key="example-secret",
    bucket="my.bucket",
    prefix="some/path/here/",
    use_ssl=True,
    auto_get_source=True,
    ignore_missing_root=False,
    working_directory="./mirror",
)
