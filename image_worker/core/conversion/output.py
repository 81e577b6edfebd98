"""Output sink: persist encoded bytes and build the transform response."""

import asyncio
from pathlib import Path

import structlog

from image_worker.core.exceptions import InternalError
from image_worker.core.sources import bytes_to_data_url, normalize_file_path
from image_worker.models.transform import EncodedImage, TransformRequest, TransformResponse

logger = structlog.get_logger()


def _write_file(path: str, data: bytes) -> None:
    Path(path).write_bytes(data)


async def save_output(data: bytes, output_path: str) -> str:
    """Write bytes to a normalized path and return that path."""
    path = normalize_file_path(output_path)
    try:
        await asyncio.to_thread(_write_file, path, data)
    except OSError as e:
        raise InternalError(
            f"Failed to save image to {path}: {str(e)}",
            details={"output_path": path, "error": str(e)},
        )
    logger.info("Image saved", output_path=path, output_size=len(data))
    return path


async def finalize_output(
    encoded: EncodedImage, request: TransformRequest, source_kind: str
) -> TransformResponse:
    """Optionally save the image, then describe the result.

    The data URL is included only when ``output_image`` was requested.
    """
    saved_to = None
    if request.output_path:
        saved_to = await save_output(encoded.data, request.output_path)

    image = None
    if request.output_image:
        image = bytes_to_data_url(encoded.data, encoded.mime_type)

    return TransformResponse(
        image=image,
        format=encoded.format,
        width=encoded.width,
        height=encoded.height,
        size=encoded.size,
        saved_to=saved_to,
        source=source_kind,
    )
