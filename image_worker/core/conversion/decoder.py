"""Format sniffing and decoding.

The decoder accepts two kinds of input: encoded bytes that Pillow can open
directly, and pre-decoded raw pixel buffers (produced for HEIF containers,
which Pillow cannot read). ``sniff`` picks the variant for a byte string and
``decode`` turns either variant into a Pillow image plus its detected format.
"""

from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple, Union

import structlog
from PIL import Image, UnidentifiedImageError

from image_worker.core.constants import (
    HEIF_DETECTED_FORMAT,
    PIL_FORMAT_ALIASES,
    SUPPORTED_INPUT_FORMATS,
)
from image_worker.core.conversion.formats.heif_handler import HeifHandler
from image_worker.core.exceptions import InvalidInputError

logger = structlog.get_logger()

CHANNEL_MODES = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}
WORKING_MODES = ("RGB", "RGBA", "L", "LA")


@dataclass(frozen=True)
class EncodedBuffer:
    """Encoded image bytes in a format Pillow reads natively."""

    data: bytes


@dataclass(frozen=True)
class RawPixelBuffer:
    """Pre-decoded pixels with an explicit geometry descriptor."""

    data: bytes
    width: int
    height: int
    channels: int = 4
    format: str = HEIF_DETECTED_FORMAT


DecoderInput = Union[EncodedBuffer, RawPixelBuffer]


@dataclass
class DecodedImage:
    """A decoded image handle and the format it was detected as."""

    image: Image.Image
    format: str

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size


def normalize_format_name(format_name: Optional[str]) -> Optional[str]:
    """Lower-case a Pillow format name and fold container aliases."""
    if not format_name:
        return None
    format_lower = format_name.lower()
    return PIL_FORMAT_ALIASES.get(format_lower, format_lower)


class ImageDecoder:
    """Turns raw bytes into a decoded image handle."""

    def __init__(self) -> None:
        self.heif_handler = HeifHandler()

    def sniff(self, image_data: bytes) -> DecoderInput:
        """Choose the decode path for the given bytes."""
        if not image_data:
            raise InvalidInputError("Empty image data")

        if self.heif_handler.validate_image(image_data):
            pixels, width, height = self.heif_handler.decode_to_rgba(image_data)
            return RawPixelBuffer(data=pixels, width=width, height=height, channels=4)

        return EncodedBuffer(data=image_data)

    def decode(self, source: DecoderInput) -> DecodedImage:
        """Decode either input variant."""
        if isinstance(source, RawPixelBuffer):
            return self._decode_raw(source)
        return self._decode_encoded(source)

    def open_image(self, image_data: bytes) -> DecodedImage:
        """Sniff and decode in one step."""
        decoded = self.decode(self.sniff(image_data))
        logger.debug(
            "Image decoded",
            detected_format=decoded.format,
            width=decoded.image.width,
            height=decoded.image.height,
        )
        return decoded

    def probe_size(self, image_data: bytes) -> Optional[Tuple[int, int]]:
        """Read image dimensions from the header, or None if not an image."""
        if self.heif_handler.validate_image(image_data):
            return self.heif_handler.read_size(image_data)
        try:
            with Image.open(BytesIO(image_data)) as img:
                return img.size
        except (UnidentifiedImageError, OSError, ValueError):
            return None

    def _decode_raw(self, source: RawPixelBuffer) -> DecodedImage:
        mode = CHANNEL_MODES.get(source.channels)
        if mode is None:
            raise InvalidInputError(
                f"Unsupported raw pixel layout: {source.channels} channels"
            )

        expected = source.width * source.height * source.channels
        if len(source.data) != expected:
            raise InvalidInputError(
                f"Raw pixel buffer has {len(source.data)} bytes, expected {expected} "
                f"for {source.width}x{source.height}x{source.channels}"
            )

        image = Image.frombytes(mode, (source.width, source.height), source.data)
        return DecodedImage(image=image, format=source.format)

    def _decode_encoded(self, source: EncodedBuffer) -> DecodedImage:
        try:
            image = Image.open(BytesIO(source.data))
        except (
            UnidentifiedImageError,
            OSError,
            ValueError,
            Image.DecompressionBombError,
        ) as e:
            raise InvalidInputError(
                f"Unsupported input format: unable to identify image data ({str(e)})",
                details={"error": str(e)},
            )

        detected_format = normalize_format_name(image.format)
        if not detected_format or detected_format not in SUPPORTED_INPUT_FORMATS:
            image.close()
            raise InvalidInputError(
                f"Unsupported input format: {detected_format}",
                details={
                    "detected_format": str(detected_format),
                    "supported_formats": list(SUPPORTED_INPUT_FORMATS),
                },
            )

        try:
            image.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise InvalidInputError(
                f"Failed to decode {detected_format} image: {str(e)}",
                details={"detected_format": detected_format, "error": str(e)},
            )

        if image.mode not in WORKING_MODES:
            has_alpha = "transparency" in image.info or image.mode in ("PA", "RGBa", "La")
            image = image.convert("RGBA" if has_alpha else "RGB")

        return DecodedImage(image=image, format=detected_format)
