"""Service layer for uploading images to object storage."""

import asyncio
import random
import string
import time
from typing import Dict, Optional

import httpx
import structlog

from image_worker.core.constants import DEFAULT_EXTENSION
from image_worker.core.conversion.decoder import ImageDecoder
from image_worker.core.exceptions import ImageWorkerError
from image_worker.core.sources import resolve_source
from image_worker.models.storage import UploadRequest, UploadResult
from image_worker.storage.base import BaseStorageBackend
from image_worker.storage.factory import create_backend, load_backend_config, select_service

logger = structlog.get_logger()


def generate_filename(
    custom_filename: Optional[str], original_filename: Optional[str]
) -> str:
    """Pick the object name for an upload.

    A custom name keeps its extension, or borrows the original's (``jpg``
    when the original has none). Without a custom name the original name
    is used, and failing that a unique ``image_<ms>_<suffix>.jpg``.
    """
    if custom_filename:
        if "." in custom_filename:
            return custom_filename
        extension = DEFAULT_EXTENSION
        if original_filename and "." in original_filename:
            extension = original_filename.rsplit(".", 1)[1] or DEFAULT_EXTENSION
        return f"{custom_filename}.{extension}"

    if original_filename:
        return original_filename

    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"image_{timestamp}_{suffix}.{DEFAULT_EXTENSION}"


class UploadService:
    """Resolves the source, picks the backend and uploads."""

    def __init__(self):
        """Initialize upload service."""
        self.decoder = ImageDecoder()
        # One adapter per service for the process lifetime
        self._backends: Dict[str, BaseStorageBackend] = {}

    def register_backend(self, backend: BaseStorageBackend) -> None:
        """Install a pre-built backend, replacing any cached one."""
        backend.validate_config()
        self._backends[backend.service] = backend

    def clear_backends(self) -> None:
        self._backends.clear()

    def get_backend(self, service: Optional[str] = None) -> BaseStorageBackend:
        """Return the cached backend for a service, building it on first use.

        Raises:
            InvalidParamsError: Unknown service or incomplete configuration
        """
        selected = select_service(service)
        backend = self._backends.get(selected)
        if backend is None:
            backend = create_backend(load_backend_config(selected))
            backend.validate_config()
            self._backends[selected] = backend
            logger.info("Storage backend created", service=selected)
        return backend

    async def upload(
        self,
        request: UploadRequest,
        client: Optional[httpx.AsyncClient] = None,
    ) -> UploadResult:
        """
        Upload an image to the requested storage service.

        Args:
            request: Validated upload request
            client: Optional HTTP client used for URL sources

        Returns:
            UploadResult including width/height when the data is an image
        """
        backend = self.get_backend(request.service)

        source = await resolve_source(request, client=client)
        filename = generate_filename(request.filename, source.suggested_filename)

        try:
            result = await backend.upload(source.data, filename, request.to_options())
        except ImageWorkerError as e:
            logger.warning(
                "Upload rejected",
                service=backend.service,
                filename=filename,
                error=e.message,
            )
            raise

        dimensions = await asyncio.to_thread(self.decoder.probe_size, source.data)
        if dimensions:
            result = result.model_copy(
                update={"width": dimensions[0], "height": dimensions[1]}
            )

        logger.info(
            "Upload completed",
            service=result.service,
            url=result.url,
            size=result.size,
            source=source.kind,
        )
        return result


# Create singleton instance
upload_service = UploadService()
