"""Resize and filter operations, delegated to Pillow primitives."""

from typing import Callable, Dict, Iterable, Optional, Tuple

import structlog
from PIL import Image, ImageChops, ImageColor, ImageFilter, ImageOps

from image_worker.core.constants import POSITION_CENTERING
from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.transform import FilterOperation, ResizeOptions

logger = structlog.get_logger()

DEFAULT_BACKGROUND = "black"
RESAMPLE = Image.Resampling.LANCZOS


def _map_color_bands(
    image: Image.Image, func: Callable[[Image.Image], Image.Image]
) -> Image.Image:
    """Apply func to the color bands only, leaving alpha untouched."""
    if image.mode in ("RGBA", "LA"):
        alpha = image.getchannel("A")
        color = image.convert("RGB" if image.mode == "RGBA" else "L")
        result = func(color)
        if result.mode not in ("RGB", "L"):
            result = result.convert("RGB")
        result.putalpha(alpha)
        return result
    return func(image)


class ImageProcessor:
    """Applies a resolved resize plan and filter list to a Pillow image."""

    def __init__(self) -> None:
        self._filters: Dict[str, Callable[..., Image.Image]] = {
            "rotate": self.rotate,
            "flip": self.flip,
            "flop": self.flop,
            "grayscale": self.grayscale,
            "blur": self.blur,
            "sharpen": self.sharpen,
            "gamma": self.gamma,
            "negate": self.negate,
            "normalize": self.normalize,
            "threshold": self.threshold,
            "trim": self.trim,
        }

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def parse_color(self, color: Optional[str], mode: str):
        """Parse a CSS color string for the given image mode."""
        try:
            return ImageColor.getcolor(color or DEFAULT_BACKGROUND, mode)
        except ValueError:
            raise InvalidParamsError(
                f"Invalid background color: {color}",
                details={"field_name": "background", "field_value": str(color)},
            )

    def target_size(
        self, source_size: Tuple[int, int], options: ResizeOptions
    ) -> Optional[Tuple[int, int]]:
        """Compute the scaled size before any crop/pad, or None to skip resizing.

        Returns None when an enlargement/reduction guard blocks the resize.
        """
        src_w, src_h = source_size
        width, height = options.width, options.height

        if width is None and height is None:
            return None

        if width is None or height is None:
            scale = width / src_w if width else height / src_h
            scales = (scale,)
            size = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
        else:
            scale_x, scale_y = width / src_w, height / src_h
            fit = options.fit or "cover"
            if fit == "fill":
                scales = (scale_x, scale_y)
                size = (width, height)
            else:
                if fit in ("cover", "outside"):
                    scale = max(scale_x, scale_y)
                else:
                    scale = min(scale_x, scale_y)
                scales = (scale,)
                size = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))

        if options.without_enlargement and any(s > 1 for s in scales):
            return None
        if options.without_reduction and any(s < 1 for s in scales):
            return None
        return size

    def resize(self, image: Image.Image, options: ResizeOptions) -> Image.Image:
        """Resize according to the fit strategy.

        cover crops to the box, contain pads it with the background color,
        fill stretches, inside/outside keep the aspect ratio so the result
        fits within / covers the box.
        """
        size = self.target_size(image.size, options)
        if size is None:
            return image

        centering = POSITION_CENTERING.get(options.position or "centre", (0.5, 0.5))
        both = options.width is not None and options.height is not None
        fit = options.fit or "cover"

        if both and fit == "cover":
            return ImageOps.fit(
                image, (options.width, options.height), method=RESAMPLE, centering=centering
            )

        if both and fit == "contain":
            scaled = image.resize(size, RESAMPLE)
            canvas = Image.new(
                image.mode,
                (options.width, options.height),
                self.parse_color(options.background, image.mode),
            )
            left = round((options.width - scaled.width) * centering[0])
            top = round((options.height - scaled.height) * centering[1])
            canvas.paste(scaled, (left, top))
            return canvas

        return image.resize(size, RESAMPLE)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def apply_filters(
        self,
        image: Image.Image,
        filters: Iterable[FilterOperation],
        background: Optional[str] = None,
    ) -> Image.Image:
        """Apply filters in the given order."""
        for operation in filters:
            handler = self._filters.get(operation.name)
            if handler is None:
                raise InvalidParamsError(f"Unsupported filter operation: {operation.name}")
            if operation.name == "rotate":
                image = handler(image, operation.value, background)
            elif operation.value is None:
                image = handler(image)
            else:
                image = handler(image, operation.value)
        return image

    def rotate(
        self, image: Image.Image, angle: float, background: Optional[str] = None
    ) -> Image.Image:
        """Rotate clockwise by angle degrees, expanding the canvas."""
        return image.rotate(
            -angle,
            resample=Image.Resampling.BICUBIC,
            expand=True,
            fillcolor=self.parse_color(background, image.mode),
        )

    def flip(self, image: Image.Image) -> Image.Image:
        """Mirror about the horizontal axis (top to bottom)."""
        return ImageOps.flip(image)

    def flop(self, image: Image.Image) -> Image.Image:
        """Mirror about the vertical axis (left to right)."""
        return ImageOps.mirror(image)

    def grayscale(self, image: Image.Image) -> Image.Image:
        return image.convert("LA" if image.mode in ("RGBA", "LA") else "L")

    def blur(self, image: Image.Image, sigma: float) -> Image.Image:
        return image.filter(ImageFilter.GaussianBlur(radius=sigma))

    def sharpen(self, image: Image.Image, sigma: float) -> Image.Image:
        return image.filter(ImageFilter.UnsharpMask(radius=sigma))

    def gamma(self, image: Image.Image, gamma: float) -> Image.Image:
        table = [round(255 * (value / 255) ** (1 / gamma)) for value in range(256)]

        def _apply(color: Image.Image) -> Image.Image:
            return color.point(table * len(color.getbands()))

        return _map_color_bands(image, _apply)

    def negate(self, image: Image.Image) -> Image.Image:
        return _map_color_bands(image, ImageOps.invert)

    def normalize(self, image: Image.Image) -> Image.Image:
        """Stretch contrast to the full 0-255 range."""
        return _map_color_bands(image, ImageOps.autocontrast)

    def threshold(self, image: Image.Image, level: float) -> Image.Image:
        """Grayscale, then set pixels >= level to white and the rest to black."""
        cutoff = int(level)

        def _apply(color: Image.Image) -> Image.Image:
            return color.convert("L").point(lambda v: 255 if v >= cutoff else 0)

        return _map_color_bands(image, _apply)

    def trim(self, image: Image.Image) -> Image.Image:
        """Crop away borders matching the top-left pixel."""
        background = Image.new(image.mode, image.size, image.getpixel((0, 0)))
        # Compare every band, not only alpha
        bbox = ImageChops.difference(image, background).getbbox(alpha_only=False)
        if not bbox or bbox == (0, 0, image.width, image.height):
            return image
        logger.debug("Trimmed image borders", bbox=bbox)
        return image.crop(bbox)
