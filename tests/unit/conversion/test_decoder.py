"""Unit tests for format sniffing and decoding."""

from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from image_worker.core.conversion.decoder import (
    EncodedBuffer,
    ImageDecoder,
    RawPixelBuffer,
    normalize_format_name,
)
from image_worker.core.conversion.formats.heif_handler import HeifHandler
from image_worker.core.exceptions import InvalidInputError


class TestSniff:
    """Test choosing the decode path."""

    @pytest.fixture
    def decoder(self):
        return ImageDecoder()

    @pytest.mark.parametrize(
        "brand", [b"heic", b"heix", b"hevc", b"hevx", b"mif1", b"msf1"]
    )
    def test_heif_signatures_detected(self, brand):
        data = b"\x00\x00\x00\x18ftyp" + brand + b"\x00" * 16
        assert HeifHandler().validate_image(data) is True

    def test_non_heif_not_detected(self, image_generator):
        assert HeifHandler().validate_image(image_generator()) is False
        assert HeifHandler().validate_image(b"\x00\x00\x00\x18ftypavif") is False

    def test_encoded_bytes_pass_through(self, decoder, image_generator):
        png = image_generator()
        assert decoder.sniff(png) == EncodedBuffer(data=png)

    def test_heif_becomes_raw_pixel_buffer(self, decoder, heic_bytes):
        pixels = bytes(2 * 3 * 4)
        with patch.object(
            decoder.heif_handler, "decode_to_rgba", return_value=(pixels, 2, 3)
        ):
            source = decoder.sniff(heic_bytes)

        assert source == RawPixelBuffer(data=pixels, width=2, height=3, channels=4)
        assert source.format == "heic"

    def test_empty_data(self, decoder):
        with pytest.raises(InvalidInputError):
            decoder.sniff(b"")


class TestDecode:
    """Test both decode paths."""

    @pytest.fixture
    def decoder(self):
        return ImageDecoder()

    @pytest.mark.parametrize(
        "pil_format, expected",
        [("PNG", "png"), ("JPEG", "jpeg"), ("WEBP", "webp"), ("GIF", "gif"), ("TIFF", "tiff")],
    )
    def test_detects_supported_formats(self, decoder, image_generator, pil_format, expected):
        decoded = decoder.open_image(image_generator(40, 30, format=pil_format))

        assert decoded.format == expected
        assert decoded.size == (40, 30)

    def test_unsupported_format(self, decoder, image_generator):
        with pytest.raises(InvalidInputError) as exc_info:
            decoder.open_image(image_generator(format="BMP"))

        assert exc_info.value.message == "Unsupported input format: bmp"

    def test_garbage_bytes(self, decoder):
        with pytest.raises(InvalidInputError) as exc_info:
            decoder.open_image(b"definitely not an image")

        assert "Unsupported input format" in exc_info.value.message

    def test_palette_image_is_converted(self, decoder):
        img = Image.new("P", (10, 10))
        buffer = BytesIO()
        img.save(buffer, format="GIF")

        decoded = decoder.open_image(buffer.getvalue())

        assert decoded.image.mode in ("RGB", "RGBA")

    def test_raw_pixel_buffer(self, decoder):
        pixels = bytes([255, 0, 0, 255]) * 6

        decoded = decoder.decode(RawPixelBuffer(data=pixels, width=3, height=2))

        assert decoded.format == "heic"
        assert decoded.image.mode == "RGBA"
        assert decoded.size == (3, 2)
        assert decoded.image.getpixel((2, 1)) == (255, 0, 0, 255)

    def test_raw_pixel_buffer_length_mismatch(self, decoder):
        with pytest.raises(InvalidInputError):
            decoder.decode(RawPixelBuffer(data=b"\x00" * 10, width=3, height=2))

    def test_heic_end_to_end_with_mocked_decoder(self, decoder, heic_bytes):
        pixels = bytes([0, 0, 255, 255]) * 4
        with patch.object(
            decoder.heif_handler, "decode_to_rgba", return_value=(pixels, 2, 2)
        ):
            decoded = decoder.open_image(heic_bytes)

        assert decoded.format == "heic"
        assert decoded.image.getpixel((0, 0)) == (0, 0, 255, 255)

    def test_format_aliases(self):
        assert normalize_format_name("MPO") == "jpeg"
        assert normalize_format_name("PNG") == "png"
        assert normalize_format_name(None) is None

    def test_probe_size(self, decoder, image_generator):
        assert decoder.probe_size(image_generator(12, 34)) == (12, 34)
        assert decoder.probe_size(b"not an image") is None


class TestHeifHandler:
    """Test the pillow-heif decode path."""

    def test_decoder_failure(self, heic_bytes):
        with patch(
            "image_worker.core.conversion.formats.heif_handler.pillow_heif.open_heif",
            side_effect=ValueError("corrupt"),
        ):
            with pytest.raises(InvalidInputError) as exc_info:
                HeifHandler().decode_to_rgba(heic_bytes)

        assert exc_info.value.message == "Failed to decode HEIF image: corrupt"

    def test_empty_container(self, heic_bytes):
        empty = MagicMock()
        empty.__len__.return_value = 0
        with patch(
            "image_worker.core.conversion.formats.heif_handler.pillow_heif.open_heif",
            return_value=empty,
        ):
            with pytest.raises(InvalidInputError) as exc_info:
                HeifHandler().decode_to_rgba(heic_bytes)

        assert "produced no images" in exc_info.value.message

    def test_first_image_rendered_as_rgba(self, heic_bytes):
        primary = MagicMock()
        primary.mode = "RGB"
        primary.size = (2, 1)
        primary.data = bytes([10, 20, 30, 40, 50, 60])
        primary.stride = 6
        container = MagicMock()
        container.__len__.return_value = 1
        container.__getitem__.return_value = primary

        with patch(
            "image_worker.core.conversion.formats.heif_handler.pillow_heif.open_heif",
            return_value=container,
        ):
            pixels, width, height = HeifHandler().decode_to_rgba(heic_bytes)

        assert (width, height) == (2, 1)
        assert pixels == bytes([10, 20, 30, 255, 40, 50, 60, 255])
