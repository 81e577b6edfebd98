"""Shared tool-boundary helpers."""

import json
from typing import Any, Awaitable, Callable, Dict, Type

import structlog
from pydantic import BaseModel, ValidationError

from image_worker.core.exceptions import ImageWorkerError
from image_worker.models.tools import ToolResult
from image_worker.utils.logging import LoggingContext

logger = structlog.get_logger()


def format_validation_error(error: ValidationError) -> str:
    """Field-level report of a schema mismatch."""
    report = {}
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "_root"
        report.setdefault(field, []).append(item["msg"])
    return f"Validation error: {json.dumps(report, indent=2)}"


def json_result(payload: Dict[str, Any]) -> ToolResult:
    return ToolResult.text(json.dumps(payload, indent=2))


async def run_tool(
    name: str,
    arguments: Dict[str, Any],
    model: Type[BaseModel],
    handler: Callable[[Any], Awaitable[Dict[str, Any]]],
    error_prefix: str,
) -> ToolResult:
    """Validate arguments, run a tool and map failures to a result.

    Schema mismatches and unexpected exceptions become ``isError`` results.
    Domain errors are re-raised for the transport to map to an error code.
    """
    with LoggingContext(tool=name):
        try:
            request = model.model_validate(arguments or {})
            payload = await handler(request)
            return json_result(payload)
        except ValidationError as e:
            logger.info("Tool arguments rejected", error_count=e.error_count())
            return ToolResult.text(format_validation_error(e), is_error=True)
        except ImageWorkerError:
            raise
        except Exception as e:
            logger.error(
                "Tool failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return ToolResult.text(f"{error_prefix}: {str(e)}", is_error=True)
