"""Base format handler interface."""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict

from PIL import Image


class BaseFormatHandler(ABC):
    """Abstract base class for output format handlers."""

    def __init__(self) -> None:
        """Initialize format handler."""
        self.format_name: str = ""
        self.mime_type: str = ""

    @abstractmethod
    def save_image(
        self, image: Image.Image, output_buffer: BinaryIO, quality: int
    ) -> None:
        """Encode image into buffer at the given quality (1-100)."""

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get format-specific quality parameters."""
        return {"quality": quality}

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Prepare image for encoding (e.g., convert color mode if needed)."""
        if image.mode in ("P", "PA"):
            has_alpha = image.mode == "PA" or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")

        if image.mode in ("RGBA", "LA") and not self._supports_transparency():
            # Flatten onto a white background
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image.convert("RGB"), mask=image.getchannel("A"))
            return background

        if not self._supports_mode(image.mode):
            keep_alpha = image.mode.endswith("A") and self._supports_transparency()
            return image.convert("RGBA" if keep_alpha else "RGB")

        return image

    def _supports_transparency(self) -> bool:
        """Check if format supports transparency."""
        # Override in subclasses
        return False

    def _supports_mode(self, mode: str) -> bool:
        """Check if format supports the given color mode."""
        # Override in subclasses
        return mode in ("RGB", "RGBA")
