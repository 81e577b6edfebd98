"""Tool registry: names, descriptions, argument schemas and dispatch."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.storage import UploadRequest
from image_worker.models.tools import ToolInfo, ToolResult
from image_worker.models.transform import TransformRequest
from image_worker.tools import transform, upload

ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]

TOOLS: Dict[str, tuple[str, Type[BaseModel], ToolHandler]] = {
    transform.NAME: (transform.DESCRIPTION, TransformRequest, transform.resize_image_tool),
    upload.NAME: (upload.DESCRIPTION, UploadRequest, upload.upload_image_tool),
}


def list_tools() -> List[ToolInfo]:
    return [
        ToolInfo(
            name=name,
            description=description,
            input_schema=model.model_json_schema(by_alias=True),
        )
        for name, (description, model, _) in TOOLS.items()
    ]


async def call_tool(name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
    """Dispatch a tool call by name."""
    entry = TOOLS.get(name)
    if entry is None:
        raise InvalidParamsError(f"Unknown tool: {name}", details={"tool": name})
    return await entry[2](arguments or {})


__all__ = ["TOOLS", "call_tool", "list_tools"]
