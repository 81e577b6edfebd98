"""Encoder adapter: applies a transform plan and encodes the result."""

from io import BytesIO
from typing import Dict, Type

import structlog
from PIL import Image

from image_worker.core.constants import SUPPORTED_OUTPUT_FORMATS
from image_worker.core.conversion.formats.avif_handler import AVIFHandler
from image_worker.core.conversion.formats.base import BaseFormatHandler
from image_worker.core.conversion.formats.jpeg_handler import JPEGHandler
from image_worker.core.conversion.formats.png_handler import PNGHandler
from image_worker.core.conversion.formats.webp_handler import WebPHandler
from image_worker.core.conversion.image_processor import ImageProcessor
from image_worker.core.exceptions import InternalError, InvalidParamsError
from image_worker.models.transform import EncodedImage, TransformPlan

logger = structlog.get_logger()


class ImageEncoder:
    """Runs resize, filters and the output codec for a resolved plan."""

    def __init__(self) -> None:
        self.format_handlers: Dict[str, Type[BaseFormatHandler]] = {}
        self.image_processor = ImageProcessor()

        self.register_handler("jpeg", JPEGHandler)
        self.register_handler("jpg", JPEGHandler)
        self.register_handler("png", PNGHandler)
        self.register_handler("webp", WebPHandler)
        self.register_handler("avif", AVIFHandler)

    def register_handler(
        self, format_name: str, handler_class: Type[BaseFormatHandler]
    ) -> None:
        """Register an output format handler."""
        self.format_handlers[format_name.lower()] = handler_class

    def get_handler(self, format_name: str) -> BaseFormatHandler:
        """Get a handler instance for an output format."""
        format_lower = (format_name or "").lower()
        handler_class = self.format_handlers.get(format_lower)
        if handler_class is None:
            raise InvalidParamsError(
                f"Unsupported output format: {format_name}",
                details={
                    "requested_format": str(format_name),
                    "supported_formats": list(SUPPORTED_OUTPUT_FORMATS),
                },
            )
        return handler_class()

    def encode(self, image: Image.Image, plan: TransformPlan) -> EncodedImage:
        """Resize, filter and encode an image.

        Blocking; callers on the event loop should run it in an executor.

        Raises:
            InvalidParamsError: For an unsupported output format or bad colour
            InternalError: If the codec fails
        """
        # Fail on the format before spending time on pixels
        handler = self.get_handler(plan.format)

        processed = self.image_processor.resize(image, plan.resize)
        processed = self.image_processor.apply_filters(
            processed, plan.filters, background=plan.resize.background
        )

        output_buffer = BytesIO()
        handler.save_image(processed, output_buffer, plan.quality)
        data = output_buffer.getvalue()
        output_buffer.close()

        width, height = self._read_dimensions(data)
        format_name = handler.format_name.lower()

        logger.debug(
            "Image encoded",
            output_format=format_name,
            quality=plan.quality,
            width=width,
            height=height,
            output_size=len(data),
        )

        return EncodedImage(
            data=data,
            format=format_name,
            mime_type=handler.mime_type,
            width=width,
            height=height,
        )

    def _read_dimensions(self, data: bytes):
        """Read final dimensions back from the encoded bytes."""
        try:
            with Image.open(BytesIO(data)) as encoded:
                return encoded.size
        except (OSError, ValueError) as e:
            raise InternalError(
                f"Failed to read encoded image metadata: {str(e)}",
                details={"error": str(e)},
            )
