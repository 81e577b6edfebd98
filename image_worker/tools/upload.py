"""The upload_image tool."""

from typing import Any, Dict

from image_worker.models.storage import UploadRequest, UploadResponse
from image_worker.models.tools import ToolResult
from image_worker.services.upload_service import upload_service
from image_worker.tools.base import run_tool

NAME = "upload_image"
DESCRIPTION = "Upload images to S3, Cloudflare R2 or Google Cloud Storage"


async def _upload(request: UploadRequest) -> Dict[str, Any]:
    result = await upload_service.upload(request)
    return UploadResponse.from_result(result).to_payload()


async def upload_image_tool(arguments: Dict[str, Any]) -> ToolResult:
    """Upload an image from a path, URL or base64 payload to object storage."""
    return await run_tool(NAME, arguments, UploadRequest, _upload, "Error uploading image")
