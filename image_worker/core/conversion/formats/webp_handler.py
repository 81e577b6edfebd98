"""WebP format handler."""

from typing import BinaryIO

import structlog
from PIL import Image

from image_worker.core.conversion.formats.base import BaseFormatHandler
from image_worker.core.exceptions import InternalError

logger = structlog.get_logger()


class WebPHandler(BaseFormatHandler):
    """Handler for WebP format."""

    def __init__(self):
        """Initialize WebP handler."""
        super().__init__()
        self.format_name = "WEBP"
        self.mime_type = "image/webp"

    def save_image(
        self, image: Image.Image, output_buffer: BinaryIO, quality: int
    ) -> None:
        """Save image as WebP."""
        try:
            image = self.prepare_image(image)
            save_params = self.get_quality_param(quality)
            save_params["method"] = 4  # Balanced speed/compression

            if image.mode == "RGBA":
                save_params["exact"] = False

            image.save(output_buffer, format="WEBP", **save_params)
            output_buffer.seek(0)

        except Exception as e:
            raise InternalError(
                f"Failed to save image as WebP: {str(e)}",
                details={"requested_format": "webp", "error": str(e)},
            )

    def _supports_transparency(self) -> bool:
        """WebP supports transparency."""
        return True
