"""Unit tests for shared storage helpers."""

import pytest

from image_worker.storage.base import build_object_key, get_content_type, get_file_extension


class TestStorageHelpers:
    """Test key, extension and content-type rules."""

    @pytest.mark.parametrize(
        "filename, folder, expected",
        [
            ("a.jpg", None, "a.jpg"),
            ("a.jpg", "", "a.jpg"),
            ("a.jpg", "images", "images/a.jpg"),
            ("a.jpg", "/images/2024/", "images/2024/a.jpg"),
        ],
    )
    def test_build_object_key(self, filename, folder, expected):
        assert build_object_key(filename, folder) == expected

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("photo.PNG", "png"),
            ("archive.tar.gz", "gz"),
            ("noextension", "jpg"),
            ("trailingdot.", "jpg"),
        ],
    )
    def test_get_file_extension(self, filename, expected):
        assert get_file_extension(filename) == expected

    @pytest.mark.parametrize(
        "extension, expected",
        [
            ("jpg", "image/jpeg"),
            ("jpeg", "image/jpeg"),
            ("PNG", "image/png"),
            ("Png", "image/png"),
            ("gif", "image/gif"),
            ("webp", "image/webp"),
            ("avif", "image/avif"),
            ("tiff", "image/tiff"),
            ("heic", "image/heic"),
            ("heif", "image/heif"),
            ("bin", "application/octet-stream"),
        ],
    )
    def test_get_content_type(self, extension, expected):
        assert get_content_type(extension) == expected
