"""Amazon S3 (and S3-compatible) store client implementation."""

from typing import Any, BinaryIO, Dict, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .base import BaseStoreClient, ListPage, RemoteObject
from ..exceptions import ObjectNotFound, RepositoryUnavailable, TransportError


MISSING_ROOT_CODES = {"NoSuchBucket"}
MISSING_OBJECT_CODES = {"NoSuchKey", "NotFound", "404"}


class S3StoreClient(BaseStoreClient):
    """S3 client listing with the V1 marker protocol and fetching object bodies."""

    def __init__(
        self,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        use_ssl: bool = False,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        s3_client: Any = None,
        **kwargs
    ):
        """Initialize the S3 client.

        Args:
            access_key_id: Access key ID
            secret_access_key: Secret access key
            use_ssl: Connect over HTTPS instead of HTTP
            region: Bucket region
            endpoint_url: Custom endpoint for S3-compatible stores
            s3_client: Pre-built boto3 S3 client, used instead of creating one
        """
        super().__init__(**kwargs)
        self.use_ssl = use_ssl
        self.region = region
        self.endpoint_url = endpoint_url

        if s3_client is not None:
            self.s3_client = s3_client
        else:
            session = boto3.session.Session(
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region
            )
            # A failed call is fatal to the cycle, so botocore must not retry
            self.s3_client = session.client(
                "s3",
                use_ssl=use_ssl,
                endpoint_url=endpoint_url,
                config=BotoConfig(retries={"max_attempts": 1, "mode": "standard"})
            )

        self.logger.debug(
            "S3 client initialized",
            use_ssl=use_ssl,
            region=region,
            endpoint_url=endpoint_url
        )

    def list_objects(self, bucket: str, prefix: str, marker: str) -> ListPage:
        self.logger.debug("Listing S3 objects", bucket=bucket, prefix=prefix, marker=marker)

        try:
            response = self.s3_client.list_objects(
                Bucket=bucket,
                Prefix=prefix,
                Marker=marker
            )
        except ClientError as e:
            code = _error_code(e)
            if code in MISSING_ROOT_CODES:
                raise RepositoryUnavailable(
                    f"Bucket not found: {bucket}", bucket=bucket, prefix=prefix
                ) from e
            raise TransportError(f"S3 listing failed ({code}): {e}") from e
        except BotoCoreError as e:
            raise TransportError(f"S3 listing failed: {e}") from e

        objects = [
            RemoteObject(
                key=item["Key"],
                last_modified=item["LastModified"],
                size=item["Size"]
            )
            for item in response.get("Contents", [])
        ]

        return ListPage(objects=objects, is_truncated=bool(response.get("IsTruncated", False)))

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        self.logger.debug("Fetching S3 object", bucket=bucket, key=key)

        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            code = _error_code(e)
            if code in MISSING_OBJECT_CODES:
                raise ObjectNotFound(f"Object not found: {key}", key=key) from e
            raise TransportError(f"S3 fetch failed for {key} ({code}): {e}") from e
        except BotoCoreError as e:
            raise TransportError(f"S3 fetch failed for {key}: {e}") from e

        return response["Body"]

    def get_store_info(self) -> Dict[str, Any]:
        info = super().get_store_info()
        info.update({
            "use_ssl": self.use_ssl,
            "region": self.region,
            "endpoint_url": self.endpoint_url
        })
        return info


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
