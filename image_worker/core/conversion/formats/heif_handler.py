"""HEIF/HEIC decoding through pillow-heif.

Pillow cannot read HEIF containers on its own, so these images take a
dedicated path: pillow-heif decodes the first image of the container and the
pixels are handed back as a raw RGBA buffer for the general decoder.
"""

from io import BytesIO
from typing import Optional, Tuple

import pillow_heif
import structlog
from PIL import Image

from image_worker.core.constants import (
    HEIF_SIGNATURE_END,
    HEIF_SIGNATURE_OFFSET,
    HEIF_SIGNATURES,
)
from image_worker.core.exceptions import InvalidInputError

logger = structlog.get_logger()


class HeifHandler:
    """Handler for HEIF/HEIC input."""

    def validate_image(self, image_data: bytes) -> bool:
        """Check the ftyp box brand for a HEIF/HEIC container signature."""
        return image_data[HEIF_SIGNATURE_OFFSET:HEIF_SIGNATURE_END] in HEIF_SIGNATURES

    def decode_to_rgba(self, image_data: bytes) -> Tuple[bytes, int, int]:
        """Decode the first image of a HEIF container to raw RGBA pixels.

        Returns:
            Tuple of (pixels, width, height) with 4 bytes per pixel

        Raises:
            InvalidInputError: If the container holds no image or decoding fails
        """
        try:
            heif_file = pillow_heif.open_heif(BytesIO(image_data), convert_hdr_to_8bit=True)
            if len(heif_file) == 0:
                raise InvalidInputError(
                    "Failed to decode HEIF image: HEIF decoding produced no images.",
                    details={"detected_format": "heic"},
                )

            primary = heif_file[0]
            image = Image.frombytes(
                primary.mode,
                primary.size,
                bytes(primary.data),
                "raw",
                primary.mode,
                primary.stride,
            )
            if image.mode != "RGBA":
                image = image.convert("RGBA")

        except InvalidInputError:
            raise
        except Exception as e:
            raise InvalidInputError(
                f"Failed to decode HEIF image: {str(e)}",
                details={"detected_format": "heic", "error": str(e)},
            )

        logger.debug("HEIF image decoded", width=image.width, height=image.height)
        return image.tobytes(), image.width, image.height

    def read_size(self, image_data: bytes) -> Optional[Tuple[int, int]]:
        """Read the primary image size without decoding pixels."""
        try:
            heif_file = pillow_heif.open_heif(BytesIO(image_data))
        except (ValueError, RuntimeError, OSError):
            return None
        return heif_file.size
