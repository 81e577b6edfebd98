"""AVIF format handler."""

from typing import Any, BinaryIO, Dict

import structlog
from PIL import Image, features

from image_worker.core.conversion.formats.base import BaseFormatHandler
from image_worker.core.exceptions import InternalError

logger = structlog.get_logger()


class AVIFHandler(BaseFormatHandler):
    """Handler for AVIF format, using Pillow's bundled libavif codec."""

    def __init__(self):
        """Initialize AVIF handler."""
        super().__init__()
        self.format_name = "AVIF"
        self.mime_type = "image/avif"

    def save_image(
        self, image: Image.Image, output_buffer: BinaryIO, quality: int
    ) -> None:
        """Save image as AVIF."""
        if not features.check("avif"):
            raise InternalError(
                "AVIF encoding is not available in this Pillow build",
                details={"requested_format": "avif"},
            )

        try:
            image = self.prepare_image(image)
            save_params = self.get_quality_param(quality)
            save_params["speed"] = 6  # Balanced speed/compression (0-10)
            image.save(output_buffer, format="AVIF", **save_params)
            output_buffer.seek(0)

        except Exception as e:
            raise InternalError(
                f"Failed to save image as AVIF: {str(e)}",
                details={"requested_format": "avif", "error": str(e)},
            )

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get AVIF-specific quality parameters."""
        return {
            "quality": quality,
            "subsampling": "4:2:0" if quality < 90 else "4:4:4",
        }

    def _supports_transparency(self) -> bool:
        """AVIF supports transparency."""
        return True
