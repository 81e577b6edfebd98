"""HTTP bindings for the tool registry."""

from typing import Any, Dict, List

import structlog
from fastapi import APIRouter, Body

from ...models.tools import ToolInfo, ToolResult
from ...tools import call_tool, list_tools

logger = structlog.get_logger()

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("", response_model=List[ToolInfo], response_model_by_alias=True)
async def get_tools() -> List[ToolInfo]:
    """List the available tools with their JSON argument schemas."""
    return list_tools()


@router.post("/{tool_name}", response_model=ToolResult, response_model_by_alias=True)
async def invoke_tool(
    tool_name: str, arguments: Dict[str, Any] = Body(default_factory=dict)
) -> ToolResult:
    """
    Invoke a tool by name.

    Argument or processing failures come back as a 200 result with
    ``isError`` set; domain errors map to 400/500 error responses.
    """
    logger.info("Tool invoked", tool=tool_name)
    return await call_tool(tool_name, arguments)
