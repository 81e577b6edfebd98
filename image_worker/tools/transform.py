"""The resize_image tool."""

from typing import Any, Dict

from image_worker.models.transform import TransformRequest
from image_worker.models.tools import ToolResult
from image_worker.services.transform_service import transform_service
from image_worker.tools.base import run_tool

NAME = "resize_image"
DESCRIPTION = "Resize and transform images"


async def _transform(request: TransformRequest) -> Dict[str, Any]:
    response = await transform_service.transform(request)
    return response.to_payload()


async def resize_image_tool(arguments: Dict[str, Any]) -> ToolResult:
    """Resize, convert or filter an image from a path, URL or base64 payload."""
    return await run_tool(
        NAME, arguments, TransformRequest, _transform, "Error processing image"
    )
