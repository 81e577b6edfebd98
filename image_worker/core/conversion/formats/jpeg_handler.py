"""JPEG format handler."""

from typing import Any, BinaryIO, Dict

import structlog
from PIL import Image

from image_worker.core.conversion.formats.base import BaseFormatHandler
from image_worker.core.exceptions import InternalError

logger = structlog.get_logger()


class JPEGHandler(BaseFormatHandler):
    """Handler for JPEG format."""

    def __init__(self):
        """Initialize JPEG handler."""
        super().__init__()
        self.format_name = "JPEG"
        self.mime_type = "image/jpeg"

    def save_image(
        self, image: Image.Image, output_buffer: BinaryIO, quality: int
    ) -> None:
        """Save image as JPEG."""
        try:
            image = self.prepare_image(image)
            save_params = self.get_quality_param(quality)
            save_params["optimize"] = True
            image.save(output_buffer, format="JPEG", **save_params)
            output_buffer.seek(0)

        except Exception as e:
            raise InternalError(
                f"Failed to save image as JPEG: {str(e)}",
                details={"requested_format": "jpeg", "error": str(e)},
            )

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get JPEG-specific quality parameters."""
        return {
            "quality": quality,
            "subsampling": 0 if quality > 90 else 2,  # 4:4:4 for high quality
        }

    def _supports_mode(self, mode: str) -> bool:
        """Check if JPEG supports the given color mode."""
        return mode in ("RGB", "L", "CMYK")
