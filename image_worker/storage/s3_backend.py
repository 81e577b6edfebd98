"""S3 and S3-compatible storage through boto3."""

from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import boto3
import structlog
from botocore.exceptions import ClientError

from image_worker.core.constants import (
    DEFAULT_S3_REGION,
    NOT_FOUND_ERROR_CODES,
    S3_MAX_TAGS,
)
from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.storage import S3Config, UploadOptions
from image_worker.storage.base import BaseStorageBackend

logger = structlog.get_logger()


def encode_tags(tags: List[str]) -> Optional[str]:
    """Encode tags as the URL query string S3 expects in ``Tagging``.

    ``key=value`` tags keep their value, bare tags get an empty one. Keys
    are unique, a repeated key keeps its last value.
    """
    if not tags:
        return None

    pairs: Dict[str, str] = {}
    for tag in tags:
        key, _, value = tag.partition("=")
        key = key.strip()
        if key:
            pairs[key] = value.strip()

    if len(pairs) > S3_MAX_TAGS:
        raise InvalidParamsError(
            f"S3 supports at most {S3_MAX_TAGS} tags per object, got {len(pairs)}",
            details={"service": "s3"},
        )
    return urlencode(pairs) if pairs else None


class S3CompatibleBackend(BaseStorageBackend):
    """Shared boto3 plumbing for S3 and R2."""

    default_region = DEFAULT_S3_REGION

    def __init__(self, config, client=None) -> None:
        super().__init__(config)
        self._client = client

    @property
    def client(self):
        """boto3 client, created on first use."""
        if self._client is None:
            self._client = boto3.client("s3", **self._client_params())
        return self._client

    def _client_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"region_name": self.config.region or self.default_region}
        if self.config.endpoint:
            params["endpoint_url"] = self.config.endpoint
        if self.config.access_key and self.config.secret_key:
            params["aws_access_key_id"] = self.config.access_key
            params["aws_secret_access_key"] = self.config.secret_key
        return params

    def _object_exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_ERROR_CODES:
                return False
            raise
        return True

    def validate_options(self, options: UploadOptions) -> None:
        encode_tags(options.tags)

    def _put_params(self, options: UploadOptions) -> Dict[str, Any]:
        """Backend-specific extras for put_object."""
        return {}

    def _put_object(
        self,
        key: str,
        data: bytes,
        content_type: str,
        options: UploadOptions,
    ) -> Dict[str, Any]:
        response = self.client.put_object(
            Bucket=self.config.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=dict(options.metadata),
            **self._put_params(options),
        )
        return {
            "etag": response.get("ETag"),
            "versionId": response.get("VersionId"),
        }


class S3Backend(S3CompatibleBackend):
    """AWS S3 or any S3-compatible endpoint (MinIO, ...)."""

    service = "s3"
    display_name = "S3"

    def __init__(self, config: S3Config, client=None) -> None:
        super().__init__(config, client=client)

    def validate_config(self) -> None:
        if not self.config.bucket:
            raise InvalidParamsError(
                "S3 configuration validation failed: S3_BUCKET is required and cannot be empty",
                details={"service": self.service, "missing_fields": ["bucket"]},
            )
        if bool(self.config.access_key) != bool(self.config.secret_key):
            raise InvalidParamsError(
                "S3 configuration validation failed: If AWS_ACCESS_KEY_ID is provided, "
                "AWS_SECRET_ACCESS_KEY must also be provided, and vice-versa.",
                details={
                    "service": self.service,
                    "missing_fields": ["secret_key" if self.config.access_key else "access_key"],
                },
            )

    def _put_params(self, options: UploadOptions) -> Dict[str, Any]:
        params: Dict[str, Any] = {"ACL": "public-read" if options.public else "private"}
        tagging = encode_tags(options.tags)
        if tagging:
            params["Tagging"] = tagging
        return params

    def generate_url(self, key: str) -> str:
        if self.config.endpoint:
            return f"{self.config.endpoint.rstrip('/')}/{self.config.bucket}/{key}"
        region = self.config.region or self.default_region
        return f"https://{self.config.bucket}.s3.{region}.amazonaws.com/{key}"

    def _result_metadata(self, key: str, response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "bucket": self.config.bucket,
            "key": key,
            "region": self.config.region or self.default_region,
            **response,
        }
