"""Data models for image transformation."""

from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from image_worker.core.constants import MAX_DIMENSION, MIN_DIMENSION
from image_worker.models.sources import ImageSource


class OutputFormat(str, Enum):
    """Supported output image formats."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"


class FitStrategy(str, Enum):
    """How content is mapped into target dimensions when aspect ratios differ."""

    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"


class Position(str, Enum):
    """Anchor used by cover/contain when cropping or padding."""

    CENTRE = "centre"
    CENTER = "center"
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"
    NORTHEAST = "northeast"
    SOUTHEAST = "southeast"
    SOUTHWEST = "southwest"
    NORTHWEST = "northwest"


class TransformRequest(ImageSource):
    """Arguments of the resize_image tool."""

    format: Optional[OutputFormat] = Field(default=None, description="Output format")
    width: Optional[int] = Field(default=None, ge=MIN_DIMENSION, le=MAX_DIMENSION)
    height: Optional[int] = Field(default=None, ge=MIN_DIMENSION, le=MAX_DIMENSION)
    quality: Optional[int] = Field(default=None, ge=1, le=100)
    fit: Optional[FitStrategy] = None
    position: Optional[Position] = None
    background: Optional[str] = Field(
        default=None, description="Background colour for contain/rotate padding"
    )
    without_enlargement: Optional[bool] = Field(
        default=None, alias="withoutEnlargement"
    )
    without_reduction: Optional[bool] = Field(default=None, alias="withoutReduction")
    rotate: Optional[float] = Field(default=None, description="Rotation in degrees")
    flip: Optional[bool] = Field(default=None, description="Mirror vertically")
    flop: Optional[bool] = Field(default=None, description="Mirror horizontally")
    grayscale: Optional[bool] = None
    blur: Optional[float] = Field(default=None, ge=0.3, le=1000)
    sharpen: Optional[float] = Field(default=None, ge=0.3, le=1000)
    gamma: Optional[float] = Field(default=None, ge=1.0, le=3.0)
    negate: Optional[bool] = None
    normalize: Optional[bool] = None
    threshold: Optional[int] = Field(default=None, ge=0, le=255)
    trim: Optional[bool] = None
    output_path: Optional[str] = Field(
        default=None,
        alias="outputPath",
        description="Path to save the resized image (if not provided, image is only returned)",
    )
    output_image: bool = Field(
        default=False,
        alias="outputImage",
        description="Include the encoded image as a data URL in the result",
    )


class FilterOperation(BaseModel):
    """A single filter step; ``value`` is None for flag-style operations."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Optional[float] = None


class ResizeOptions(BaseModel):
    """Resolved geometry; a None dimension is left to the aspect ratio."""

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = None
    height: Optional[int] = None
    fit: Optional[str] = None
    position: Optional[str] = None
    background: Optional[str] = None
    without_enlargement: bool = False
    without_reduction: bool = False


class TransformPlan(BaseModel):
    """Immutable processing plan derived from a transform request."""

    model_config = ConfigDict(frozen=True)

    resize: ResizeOptions
    filters: Tuple[FilterOperation, ...] = ()
    format: str
    quality: int


class EncodedImage(BaseModel):
    """Final encoded bytes together with authoritative metadata."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    format: str
    mime_type: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)


class TransformResponse(BaseModel):
    """Payload returned by the resize_image tool."""

    model_config = ConfigDict(populate_by_name=True)

    image: Optional[str] = None
    format: str
    width: int
    height: int
    size: int
    saved_to: Optional[str] = Field(default=None, alias="savedTo")
    source: str

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        if self.image is None:
            payload.pop("image")
        return payload
