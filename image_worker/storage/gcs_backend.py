"""Google Cloud Storage through google-cloud-storage."""

from typing import Any, Dict

import structlog
from google.cloud import storage

from image_worker.core.constants import GCS_PUBLIC_HOST
from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.storage import GCloudConfig, UploadOptions
from image_worker.storage.base import BaseStorageBackend

logger = structlog.get_logger()


class GCloudBackend(BaseStorageBackend):
    """Google Cloud Storage backend."""

    service = "gcloud"
    display_name = "GCloud"

    def __init__(self, config: GCloudConfig, client=None) -> None:
        super().__init__(config)
        self._client = client
        self._bucket = None

    @property
    def client(self) -> storage.Client:
        """Storage client, created on first use."""
        if self._client is None:
            if self.config.credentials_path:
                self._client = storage.Client.from_service_account_json(
                    self.config.credentials_path, project=self.config.project_id
                )
            else:
                self._client = storage.Client(project=self.config.project_id)
        return self._client

    @property
    def bucket(self) -> storage.Bucket:
        if self._bucket is None:
            self._bucket = self.client.bucket(self.config.bucket)
        return self._bucket

    def validate_config(self) -> None:
        missing = [
            name for name in ("bucket", "project_id") if not getattr(self.config, name)
        ]
        if missing:
            env_names = {"bucket": "GCLOUD_BUCKET", "project_id": "GCLOUD_PROJECT_ID"}
            raise InvalidParamsError(
                "GCloud configuration validation failed: "
                + "; ".join(f"{env_names[name]} is required" for name in missing),
                details={"service": self.service, "missing_fields": missing},
            )

    def _object_exists(self, key: str) -> bool:
        return self.bucket.blob(key).exists()

    def _put_object(
        self,
        key: str,
        data: bytes,
        content_type: str,
        options: UploadOptions,
    ) -> Dict[str, Any]:
        blob = self.bucket.blob(key)
        if options.metadata:
            blob.metadata = dict(options.metadata)
        upload_params: Dict[str, Any] = {"content_type": content_type}
        if options.public:
            upload_params["predefined_acl"] = "publicRead"
        blob.upload_from_string(data, **upload_params)
        logger.debug("Blob saved", blob_name=key, public=options.public)
        return {}

    def generate_url(self, key: str) -> str:
        return f"{GCS_PUBLIC_HOST}/{self.config.bucket}/{key}"

    def _result_metadata(self, key: str, response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "bucket": self.config.bucket,
            "key": key,
            "projectId": self.config.project_id,
        }
