"""Backend configuration loading and backend construction."""

from typing import Callable, Dict, Optional

import structlog
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from image_worker.config import settings
from image_worker.core.constants import (
    DEFAULT_R2_REGION,
    DEFAULT_S3_REGION,
    DEFAULT_UPLOAD_SERVICE,
    SUPPORTED_UPLOAD_SERVICES,
)
from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.storage import (
    BackendConfig,
    CloudflareR2Config,
    GCloudConfig,
    S3Config,
)
from image_worker.storage.base import BaseStorageBackend
from image_worker.storage.gcs_backend import GCloudBackend
from image_worker.storage.r2_backend import CloudflareR2Backend
from image_worker.storage.s3_backend import S3Backend

logger = structlog.get_logger()


class _BackendEnv(BaseSettings):
    """Credential records read straight from the process environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class S3Env(_BackendEnv):
    access_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("AWS_ACCESS_KEY_ID", "S3_ACCESS_KEY")
    )
    secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AWS_SECRET_ACCESS_KEY", "S3_SECRET_KEY"),
    )
    bucket: Optional[str] = Field(default=None, validation_alias="S3_BUCKET")
    region: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("S3_REGION", "AWS_REGION")
    )
    endpoint: Optional[str] = Field(default=None, validation_alias="S3_ENDPOINT")

    def to_config(self) -> S3Config:
        return S3Config(
            access_key=self.access_key,
            secret_key=self.secret_key,
            bucket=self.bucket,
            region=self.region or DEFAULT_S3_REGION,
            endpoint=self.endpoint,
        )


class CloudflareR2Env(_BackendEnv):
    access_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUDFLARE_R2_ACCESS_KEY_ID", "CF_ACCESS_KEY"),
    )
    secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUDFLARE_R2_SECRET_ACCESS_KEY", "CF_SECRET_KEY"),
    )
    bucket: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("CLOUDFLARE_R2_BUCKET", "CF_BUCKET")
    )
    region: Optional[str] = Field(default=None, validation_alias="CLOUDFLARE_R2_REGION")
    endpoint: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUDFLARE_R2_ENDPOINT", "CF_ENDPOINT"),
    )
    base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUDFLARE_R2_PUBLIC_URL", "CF_PUBLIC_URL"),
    )

    def to_config(self) -> CloudflareR2Config:
        return CloudflareR2Config(
            access_key=self.access_key,
            secret_key=self.secret_key,
            bucket=self.bucket,
            region=self.region or DEFAULT_R2_REGION,
            endpoint=self.endpoint,
            base_url=self.base_url,
        )


class GCloudEnv(_BackendEnv):
    bucket: Optional[str] = Field(default=None, validation_alias="GCLOUD_BUCKET")
    project_id: Optional[str] = Field(default=None, validation_alias="GCLOUD_PROJECT_ID")
    credentials_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "GCLOUD_CREDENTIALS_PATH", "GOOGLE_APPLICATION_CREDENTIALS"
        ),
    )

    def to_config(self) -> GCloudConfig:
        return GCloudConfig(
            bucket=self.bucket,
            project_id=self.project_id,
            credentials_path=self.credentials_path,
        )


_ENV_LOADERS: Dict[str, Callable[[], _BackendEnv]] = {
    "s3": S3Env,
    "cloudflare": CloudflareR2Env,
    "gcloud": GCloudEnv,
}

_BACKENDS: Dict[str, Callable[..., BaseStorageBackend]] = {
    "s3": S3Backend,
    "cloudflare": CloudflareR2Backend,
    "gcloud": GCloudBackend,
}


def select_service(service: Optional[str] = None) -> str:
    """Explicit argument, then the UPLOAD_SERVICE selector, then ``s3``."""
    selected = (service or settings.upload_service or DEFAULT_UPLOAD_SERVICE).lower()
    if selected not in SUPPORTED_UPLOAD_SERVICES:
        raise InvalidParamsError(
            f"Unsupported upload service: {selected}",
            details={"service": selected},
        )
    return selected


def load_backend_config(service: Optional[str] = None) -> BackendConfig:
    """Read the selected backend's settings from the environment."""
    selected = select_service(service)
    config = _ENV_LOADERS[selected]().to_config()
    logger.debug("Backend configuration loaded", service=selected, bucket=config.bucket)
    return config


def create_backend(config: BackendConfig, client=None) -> BaseStorageBackend:
    """Construct the backend adapter for a configuration record."""
    backend_class = _BACKENDS.get(getattr(config, "service", None))
    if backend_class is None:
        raise InvalidParamsError(
            f"Unsupported upload service: {getattr(config, 'service', None)}",
            details={"service": str(getattr(config, "service", None))},
        )
    return backend_class(config, client=client)
