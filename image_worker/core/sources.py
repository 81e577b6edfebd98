"""Input resolution: obtain raw image bytes from a path, URL or base64 payload."""

import asyncio
import base64
import binascii
import os
import re
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

import httpx
import structlog

from image_worker.config import settings
from image_worker.core.constants import (
    INLINE_PLACEHOLDER_FILENAME,
    SOURCE_BASE64,
    SOURCE_FILE,
    SOURCE_URL,
)
from image_worker.core.exceptions import InternalError, InvalidParamsError
from image_worker.models.sources import ImageSource, ResolvedSource

logger = structlog.get_logger()

# Shell escapes an upstream agent may leave in a pasted path, e.g. "a\ name.png"
_ESCAPED_PATH_CHARS = re.compile(r"\\+([ '\"`()\[\]{}])")
_DATA_URL_PREFIX = re.compile(r"^data:image/(\w+);base64,")


def normalize_file_path(file_path: str) -> str:
    """Unescape backslash-escaped characters in a file path.

    Handles cases like ``a\\ name.png`` by converting them to ``a name.png``.
    Pure string transform, the filesystem is never touched.
    """
    return _ESCAPED_PATH_CHARS.sub(r"\1", file_path)


def base64_to_bytes(payload: str) -> bytes:
    """Decode a base64 string, dropping a leading ``data:image/...;base64,`` prefix."""
    data = _DATA_URL_PREFIX.sub("", payload.strip(), count=1)
    try:
        return base64.b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise InvalidParamsError(
            f"Invalid base64 image data: {str(e)}",
            details={"source": SOURCE_BASE64, "error": str(e)},
        )


def bytes_to_data_url(data: bytes, mime_type: str) -> str:
    """Encode bytes as a self-describing data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def filename_from_url(url: str) -> Optional[str]:
    """Last path segment of a URL, without query string."""
    name = unquote(urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1])
    return name or None


def _placeholder_filename(payload: str) -> str:
    match = _DATA_URL_PREFIX.match(payload.strip())
    if match:
        return f"{INLINE_PLACEHOLDER_FILENAME}.{match.group(1).lower()}"
    return INLINE_PLACEHOLDER_FILENAME


async def fetch_image_from_url(
    url: str, client: Optional[httpx.AsyncClient] = None
) -> bytes:
    """Fetch an image over HTTP and return its body.

    Raises:
        InvalidParamsError: Non-2xx status or a non-image content type
        InternalError: Network-level failure
    """
    try:
        if client is None:
            async with httpx.AsyncClient(follow_redirects=True) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
    except httpx.HTTPError as e:
        raise InternalError(
            f"Error fetching image from URL: {str(e)}",
            details={"source": SOURCE_URL, "url": url, "error": str(e)},
        )

    if not response.is_success:
        raise InvalidParamsError(
            f"Failed to fetch image from URL: {url}, status code: {response.status_code}",
            details={"source": SOURCE_URL, "url": url, "status_code": response.status_code},
        )

    content_type = response.headers.get("content-type")
    if not content_type or not content_type.startswith("image/"):
        raise InvalidParamsError(
            f"URL does not point to an image: {url}, content-type: {content_type}",
            details={"source": SOURCE_URL, "url": url, "content_type": str(content_type)},
        )

    return response.content


async def resolve_source(
    source: ImageSource,
    client: Optional[httpx.AsyncClient] = None,
    max_size: Optional[int] = None,
) -> ResolvedSource:
    """Read the bytes of exactly one image source.

    Args:
        source: Request carrying one of image_path, image_url or base64_image
        client: Optional HTTP client for URL sources
        max_size: Byte limit, defaults to ``settings.max_input_size``

    Returns:
        ResolvedSource with data, source kind and a suggested filename
    """
    if source.is_empty:
        raise InvalidParamsError(
            "One of imagePath, imageUrl, or base64Image must be provided"
        )

    if source.image_path:
        normalized_path = normalize_file_path(source.image_path)
        try:
            data = await asyncio.to_thread(Path(normalized_path).read_bytes)
        except OSError as e:
            raise InvalidParamsError(
                f"Failed to read image from path: {source.image_path}. {str(e)}",
                details={"source": SOURCE_FILE, "path": source.image_path, "error": str(e)},
            )
        resolved = ResolvedSource(
            data=data,
            kind=SOURCE_FILE,
            suggested_filename=os.path.basename(normalized_path) or None,
        )
    elif source.image_url:
        data = await fetch_image_from_url(source.image_url, client=client)
        resolved = ResolvedSource(
            data=data,
            kind=SOURCE_URL,
            suggested_filename=filename_from_url(source.image_url),
        )
    else:
        resolved = ResolvedSource(
            data=base64_to_bytes(source.base64_image),
            kind=SOURCE_BASE64,
            suggested_filename=_placeholder_filename(source.base64_image),
        )

    limit = settings.max_input_size if max_size is None else max_size
    if resolved.size > limit:
        raise InvalidParamsError(
            f"Image is too large: {resolved.size} bytes exceeds the {limit} byte limit",
            details={"source": resolved.kind},
        )

    logger.debug("Image source resolved", source=resolved.kind, size=resolved.size)
    return resolved
