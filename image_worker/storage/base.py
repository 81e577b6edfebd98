"""Storage backend interface and the upload algorithm shared by all backends."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import structlog

from image_worker.core.constants import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_EXTENSION,
    EXTENSION_TO_CONTENT_TYPE,
)
from image_worker.core.exceptions import (
    ImageWorkerError,
    InternalError,
    InvalidParamsError,
)
from image_worker.models.storage import UploadOptions, UploadResult

logger = structlog.get_logger()


def build_object_key(filename: str, folder: Optional[str] = None) -> str:
    """``folder/filename`` when a folder is given, else ``filename``."""
    if folder:
        folder = folder.strip("/")
    return f"{folder}/{filename}" if folder else filename


def get_file_extension(filename: str) -> str:
    """Lower-cased text after the last dot, ``jpg`` when there is none."""
    if "." not in filename:
        return DEFAULT_EXTENSION
    return filename.rsplit(".", 1)[1].lower() or DEFAULT_EXTENSION


def get_content_type(extension: str) -> str:
    return EXTENSION_TO_CONTENT_TYPE.get(extension.lower(), DEFAULT_CONTENT_TYPE)


class BaseStorageBackend(ABC):
    """Abstract base class for object-storage backends.

    Subclasses provide the probe, the put call and the URL rule; the key,
    content-type, overwrite check, error wrapping and result packaging
    live here.
    """

    service: str = ""
    display_name: str = ""

    def __init__(self, config) -> None:
        self.config = config

    @abstractmethod
    def validate_config(self) -> None:
        """Fail with InvalidParamsError if mandatory settings are missing."""

    @abstractmethod
    def generate_url(self, key: str) -> str:
        """Public URL of an object key."""

    @abstractmethod
    def _object_exists(self, key: str) -> bool:
        """Existence probe. Must raise for anything other than "not found"."""

    @abstractmethod
    def _put_object(
        self,
        key: str,
        data: bytes,
        content_type: str,
        options: UploadOptions,
    ) -> Dict[str, Any]:
        """Store the object and return backend-native response fields."""

    def validate_options(self, options: UploadOptions) -> None:
        """Reject options the backend cannot store. Runs before any network call."""

    def _result_metadata(self, key: str, response: Dict[str, Any]) -> Dict[str, Any]:
        """Metadata echoed back in the upload result."""
        return {"bucket": self.config.bucket, "key": key, **response}

    async def upload(
        self, data: bytes, filename: str, options: UploadOptions
    ) -> UploadResult:
        """
        Upload bytes under ``options.folder/filename``.

        Args:
            data: Object content
            filename: Object name, its extension selects the content type
            options: Folder, visibility, overwrite flag, tags and metadata

        Returns:
            UploadResult with URL, size, extension and backend metadata

        Raises:
            InvalidParamsError: If the object exists and overwrite is not set,
                or the options are invalid for this backend
            InternalError: For any unexpected backend failure
        """
        self.validate_options(options)

        key = build_object_key(filename, options.folder)
        extension = get_file_extension(filename)
        content_type = get_content_type(extension)

        try:
            if not options.overwrite:
                exists = await asyncio.to_thread(self._object_exists, key)
                if exists:
                    raise InvalidParamsError(
                        f"File {key} already exists. Set overwrite=true to replace it.",
                        details={
                            "service": self.service,
                            "bucket": str(self.config.bucket),
                            "key": key,
                        },
                    )

            response = await asyncio.to_thread(
                self._put_object, key, data, content_type, options
            )
        except ImageWorkerError:
            raise
        except Exception as e:
            logger.error(
                "Storage upload failed",
                service=self.service,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InternalError(
                f"{self.display_name} upload failed: {str(e)}",
                details={"service": self.service, "key": key, "error": str(e)},
            )

        logger.info(
            "Object uploaded",
            service=self.service,
            bucket=self.config.bucket,
            key=key,
            content_type=content_type,
            size=len(data),
        )

        return UploadResult(
            url=self.generate_url(key),
            filename=filename,
            size=len(data),
            format=extension,
            service=self.service,
            metadata=self._result_metadata(key, response),
        )
