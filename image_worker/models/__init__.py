"""Data models for the image worker."""

from image_worker.models.responses import ErrorResponse
from image_worker.models.sources import ImageSource, ResolvedSource
from image_worker.models.storage import (
    BackendConfig,
    CloudflareR2Config,
    GCloudConfig,
    S3Config,
    UploadOptions,
    UploadRequest,
    UploadResponse,
    UploadResult,
)
from image_worker.models.tools import TextContent, ToolInfo, ToolResult
from image_worker.models.transform import (
    EncodedImage,
    FilterOperation,
    FitStrategy,
    OutputFormat,
    Position,
    ResizeOptions,
    TransformPlan,
    TransformRequest,
    TransformResponse,
)

__all__ = [
    # Transport models
    "ErrorResponse",
    # Source models
    "ImageSource",
    "ResolvedSource",
    # Transform models
    "EncodedImage",
    "FilterOperation",
    "FitStrategy",
    "OutputFormat",
    "Position",
    "ResizeOptions",
    "TransformPlan",
    "TransformRequest",
    "TransformResponse",
    # Storage models
    "BackendConfig",
    "CloudflareR2Config",
    "GCloudConfig",
    "S3Config",
    "UploadOptions",
    "UploadRequest",
    "UploadResponse",
    "UploadResult",
    # Tool models
    "TextContent",
    "ToolInfo",
    "ToolResult",
]
