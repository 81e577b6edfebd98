"""Cloudflare R2 through its S3-compatible API."""

from typing import Any, Dict

from botocore.config import Config

from image_worker.core.constants import DEFAULT_R2_REGION
from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.storage import CloudflareR2Config
from image_worker.storage.s3_backend import S3CompatibleBackend


class CloudflareR2Backend(S3CompatibleBackend):
    """R2 has no object ACLs or tagging; both options are ignored."""

    service = "cloudflare"
    display_name = "Cloudflare R2"
    default_region = DEFAULT_R2_REGION

    def __init__(self, config: CloudflareR2Config, client=None) -> None:
        super().__init__(config, client=client)

    def _client_params(self) -> Dict[str, Any]:
        params = super()._client_params()
        params["config"] = Config(s3={"addressing_style": "path"})
        return params

    def validate_config(self) -> None:
        missing = [
            name
            for name in ("access_key", "secret_key", "bucket", "endpoint")
            if not getattr(self.config, name)
        ]
        if missing:
            raise InvalidParamsError(
                "Cloudflare R2 upload service requires apiKey, apiSecret, bucket, "
                "and endpoint configuration",
                details={"service": self.service, "missing_fields": missing},
            )

    def generate_url(self, key: str) -> str:
        if self.config.base_url:
            return f"{self.config.base_url.rstrip('/')}/{key}"
        return f"{self.config.endpoint.rstrip('/')}/{self.config.bucket}/{key}"

    def _result_metadata(self, key: str, response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "bucket": self.config.bucket,
            "key": key,
            "endpoint": self.config.endpoint,
            **response,
        }
