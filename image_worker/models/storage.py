"""Data models for object-storage uploads."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from image_worker.models.sources import ImageSource

UploadService = Literal["s3", "cloudflare", "gcloud"]


class S3Config(BaseModel):
    """Generic S3-compatible backend (AWS, MinIO, ...)."""

    model_config = ConfigDict(frozen=True)

    service: Literal["s3"] = "s3"
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint: Optional[str] = None


class CloudflareR2Config(BaseModel):
    """Cloudflare R2, spoken to through its S3-compatible API."""

    model_config = ConfigDict(frozen=True)

    service: Literal["cloudflare"] = "cloudflare"
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint: Optional[str] = None
    base_url: Optional[str] = Field(
        default=None, description="Custom public domain serving the bucket"
    )


class GCloudConfig(BaseModel):
    """Google Cloud Storage."""

    model_config = ConfigDict(frozen=True)

    service: Literal["gcloud"] = "gcloud"
    bucket: Optional[str] = None
    project_id: Optional[str] = None
    credentials_path: Optional[str] = None


BackendConfig = Annotated[
    Union[S3Config, CloudflareR2Config, GCloudConfig],
    Field(discriminator="service"),
]


class UploadOptions(BaseModel):
    """Destination settings passed to a storage backend."""

    model_config = ConfigDict(frozen=True)

    folder: Optional[str] = None
    public: bool = True
    overwrite: bool = False
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, str] = Field(default_factory=dict)


class UploadRequest(ImageSource):
    """Arguments of the upload_image tool."""

    service: Optional[UploadService] = Field(
        default=None,
        description="Upload service to use (defaults to UPLOAD_SERVICE, then s3)",
    )
    filename: Optional[str] = Field(
        default=None,
        description="Custom filename for the uploaded image (with or without extension)",
    )
    folder: Optional[str] = Field(
        default=None, description="Folder/directory to upload to"
    )
    public: bool = Field(
        default=True,
        description="Whether the uploaded image should be publicly accessible",
    )
    overwrite: bool = Field(
        default=False,
        description="Whether to overwrite existing files with the same name",
    )
    tags: Optional[List[str]] = Field(
        default=None, description="Tags to associate with the uploaded image"
    )
    metadata: Optional[Dict[str, str]] = Field(
        default=None, description="Additional metadata to store with the image"
    )

    def to_options(self) -> UploadOptions:
        return UploadOptions(
            folder=self.folder,
            public=self.public,
            overwrite=self.overwrite,
            tags=self.tags or [],
            metadata=self.metadata or {},
        )


class UploadResult(BaseModel):
    """Outcome of a backend upload."""

    url: str
    filename: str
    size: int
    format: str
    service: UploadService
    width: Optional[int] = None
    height: Optional[int] = None
    public_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class UploadResponse(BaseModel):
    """Payload returned by the upload_image tool."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    url: str
    filename: str
    size: int
    format: str
    service: UploadService
    width: Optional[int] = None
    height: Optional[int] = None
    public_id: Optional[str] = Field(default=None, alias="publicId")
    metadata: Optional[Dict[str, Any]] = None
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="uploadedAt"
    )

    @classmethod
    def from_result(cls, result: UploadResult) -> "UploadResponse":
        return cls(**result.model_dump())

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
