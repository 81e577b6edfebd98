"""PNG format handler."""

from typing import Any, BinaryIO, Dict

import structlog
from PIL import Image

from image_worker.core.conversion.formats.base import BaseFormatHandler
from image_worker.core.exceptions import InternalError

logger = structlog.get_logger()

MAX_PALETTE_COLORS = 256


class PNGHandler(BaseFormatHandler):
    """Handler for PNG format.

    PNG is lossless, so quality below 100 is spent on palette reduction:
    the image is quantized to a palette sized in proportion to the quality.
    Quality 100 keeps full color.
    """

    def __init__(self):
        """Initialize PNG handler."""
        super().__init__()
        self.format_name = "PNG"
        self.mime_type = "image/png"

    def save_image(
        self, image: Image.Image, output_buffer: BinaryIO, quality: int
    ) -> None:
        """Save image as PNG."""
        try:
            image = self.prepare_image(image)
            params = self.get_quality_param(quality)
            colors = params.pop("colors")

            if colors < MAX_PALETTE_COLORS and image.mode in ("RGB", "RGBA"):
                method = (
                    Image.Quantize.FASTOCTREE
                    if image.mode == "RGBA"
                    else Image.Quantize.MEDIANCUT
                )
                image = image.quantize(colors=colors, method=method)

            image.save(output_buffer, format="PNG", **params)
            output_buffer.seek(0)

        except Exception as e:
            raise InternalError(
                f"Failed to save image as PNG: {str(e)}",
                details={"requested_format": "png", "error": str(e)},
            )

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Map quality to a palette size; 100 means no quantization."""
        if quality >= 100:
            colors = MAX_PALETTE_COLORS
        else:
            colors = max(2, round(MAX_PALETTE_COLORS * quality / 100))
        return {"colors": colors, "optimize": True}

    def _supports_transparency(self) -> bool:
        """PNG supports transparency."""
        return True

    def _supports_mode(self, mode: str) -> bool:
        """Check if PNG supports the given color mode."""
        return mode in ("RGB", "RGBA", "L", "LA")
