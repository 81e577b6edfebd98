"""Unit tests for resize and filter application."""

import pytest
from PIL import Image

from image_worker.core.conversion.image_processor import ImageProcessor
from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.transform import FilterOperation, ResizeOptions


@pytest.fixture
def processor():
    return ImageProcessor()


def two_tone(width=100, height=100, top=(255, 0, 0), bottom=(0, 0, 255)):
    """Top half one colour, bottom half another."""
    img = Image.new("RGB", (width, height), bottom)
    img.paste(top, (0, 0, width, height // 2))
    return img


class TestResize:
    """Test fit strategies and guards."""

    def test_width_only_preserves_aspect_ratio(self, processor):
        result = processor.resize(Image.new("RGB", (200, 150)), ResizeOptions(width=50))
        assert result.size == (50, 38)

    def test_height_only_preserves_aspect_ratio(self, processor):
        result = processor.resize(Image.new("RGB", (200, 100)), ResizeOptions(height=50))
        assert result.size == (100, 50)

    def test_cover_crops_to_box(self, processor):
        result = processor.resize(
            Image.new("RGB", (200, 100)), ResizeOptions(width=50, height=50, fit="cover")
        )
        assert result.size == (50, 50)

    def test_contain_pads_with_background(self, processor):
        # Arrange
        image = Image.new("RGB", (200, 100), (255, 0, 0))
        options = ResizeOptions(width=100, height=100, fit="contain", background="white")

        # Act
        result = processor.resize(image, options)

        # Assert
        assert result.size == (100, 100)
        assert result.getpixel((50, 0)) == (255, 255, 255)
        assert result.getpixel((50, 50)) == (255, 0, 0)

    def test_contain_respects_position(self, processor):
        image = Image.new("RGB", (200, 100), (255, 0, 0))
        options = ResizeOptions(
            width=100, height=100, fit="contain", position="north", background="white"
        )

        result = processor.resize(image, options)

        assert result.getpixel((50, 0)) == (255, 0, 0)
        assert result.getpixel((50, 99)) == (255, 255, 255)

    def test_fill_stretches(self, processor):
        result = processor.resize(
            Image.new("RGB", (200, 100)), ResizeOptions(width=30, height=90, fit="fill")
        )
        assert result.size == (30, 90)

    def test_inside_fits_within_box(self, processor):
        result = processor.resize(
            Image.new("RGB", (200, 100)), ResizeOptions(width=100, height=100, fit="inside")
        )
        assert result.size == (100, 50)

    def test_outside_covers_box(self, processor):
        result = processor.resize(
            Image.new("RGB", (400, 200)), ResizeOptions(width=100, height=100, fit="outside")
        )
        assert result.size == (200, 100)

    def test_without_enlargement(self, processor):
        image = Image.new("RGB", (50, 50))
        result = processor.resize(image, ResizeOptions(width=100, without_enlargement=True))
        assert result.size == (50, 50)

    def test_without_reduction(self, processor):
        image = Image.new("RGB", (200, 200))
        result = processor.resize(image, ResizeOptions(width=100, without_reduction=True))
        assert result.size == (200, 200)

    def test_invalid_background(self, processor):
        options = ResizeOptions(width=10, height=20, fit="contain", background="not-a-colour")

        with pytest.raises(InvalidParamsError) as exc_info:
            processor.resize(Image.new("RGB", (20, 20)), options)

        assert "not-a-colour" in exc_info.value.message


class TestFilters:
    """Test individual filters delegate to Pillow as expected."""

    def test_rotate_is_clockwise_and_expands(self, processor):
        image = two_tone(100, 50)

        result = processor.rotate(image, 90)

        assert result.size == (50, 100)
        # Top (red) half ends up on the right after a clockwise turn
        assert result.getpixel((45, 50)) == (255, 0, 0)
        assert result.getpixel((5, 50)) == (0, 0, 255)

    def test_flip_is_vertical(self, processor):
        result = processor.flip(two_tone())
        assert result.getpixel((50, 5)) == (0, 0, 255)

    def test_flop_is_horizontal(self, processor):
        image = Image.new("RGB", (100, 10), (0, 0, 255))
        image.paste((255, 0, 0), (0, 0, 50, 10))

        result = processor.flop(image)

        assert result.getpixel((5, 5)) == (0, 0, 255)
        assert result.getpixel((95, 5)) == (255, 0, 0)

    def test_grayscale(self, processor):
        assert processor.grayscale(Image.new("RGB", (4, 4))).mode == "L"
        assert processor.grayscale(Image.new("RGBA", (4, 4))).mode == "LA"

    def test_negate_keeps_alpha(self, processor):
        image = Image.new("RGBA", (4, 4), (10, 20, 30, 128))

        result = processor.negate(image)

        assert result.getpixel((0, 0)) == (245, 235, 225, 128)

    def test_gamma_brightens_midtones(self, processor):
        result = processor.gamma(Image.new("L", (4, 4), 64), 2.2)
        assert result.getpixel((0, 0)) > 64

    def test_normalize_stretches_range(self, processor):
        image = Image.new("L", (10, 1), 100)
        image.paste(150, (5, 0, 10, 1))

        result = processor.normalize(image)

        assert result.getextrema() == (0, 255)

    def test_threshold(self, processor):
        image = Image.new("RGB", (4, 4), (100, 100, 100))

        assert processor.threshold(image, 128).getpixel((0, 0)) == 0
        assert processor.threshold(image, 50).getpixel((0, 0)) == 255

    @pytest.mark.parametrize(
        "mode, border, square",
        [
            ("RGB", (255, 255, 255), (255, 0, 0)),
            ("RGBA", (255, 255, 255, 255), (255, 0, 0, 255)),
            ("LA", (255, 255), (0, 255)),
        ],
    )
    def test_trim_removes_uniform_border(self, processor, mode, border, square):
        image = Image.new(mode, (100, 100), border)
        image.paste(square, (40, 40, 60, 60))

        result = processor.trim(image)

        assert result.size == (20, 20)
        assert result.mode == mode

    def test_trim_on_transparent_border(self, processor):
        image = Image.new("RGBA", (40, 40), (0, 0, 0, 0))
        image.paste((0, 0, 255, 255), (10, 5, 30, 15))

        assert processor.trim(image).size == (20, 10)

    def test_trim_uniform_image_unchanged(self, processor):
        image = Image.new("RGBA", (30, 30), (10, 20, 30, 255))
        assert processor.trim(image).size == (30, 30)

    def test_blur_and_sharpen_keep_size(self, processor):
        image = two_tone()
        assert processor.blur(image, 2).size == image.size
        assert processor.sharpen(image, 2).size == image.size

    def test_apply_filters_in_given_order(self, processor):
        image = Image.new("RGB", (100, 50), (100, 100, 100))
        filters = (
            FilterOperation(name="rotate", value=90),
            FilterOperation(name="grayscale"),
            FilterOperation(name="threshold", value=50),
        )

        result = processor.apply_filters(image, filters)

        assert result.size == (50, 100)
        assert result.mode == "L"
        assert result.getpixel((25, 50)) == 255

    def test_unknown_filter(self, processor):
        with pytest.raises(InvalidParamsError):
            processor.apply_filters(Image.new("RGB", (2, 2)), (FilterOperation(name="sepia"),))
