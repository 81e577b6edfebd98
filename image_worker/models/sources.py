"""Image source models shared by the transform and upload tools."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ImageSource(BaseModel):
    """Exactly one of a local path, a remote URL or an inline base64 payload."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    image_path: Optional[str] = Field(
        default=None, alias="imagePath", description="Path to image"
    )
    image_url: Optional[str] = Field(
        default=None, alias="imageUrl", description="URL to image"
    )
    base64_image: Optional[str] = Field(
        default=None,
        alias="base64Image",
        description="Base64-encoded image data (with or without data URL prefix)",
    )

    @model_validator(mode="after")
    def check_single_source(self) -> "ImageSource":
        provided = [
            name
            for name in ("image_path", "image_url", "base64_image")
            if getattr(self, name)
        ]
        if len(provided) > 1:
            raise ValueError(
                "Only one of imagePath, imageUrl, or base64Image may be provided"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return not (self.image_path or self.image_url or self.base64_image)


class ResolvedSource(BaseModel):
    """Raw bytes obtained from an image source."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    kind: str = Field(..., description="Source kind: file, url or base64")
    suggested_filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)
