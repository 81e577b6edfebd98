"""Unit tests for the upload service."""

import re
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from image_worker.core.exceptions import InvalidParamsError
from image_worker.models.storage import S3Config, UploadRequest
from image_worker.services.upload_service import UploadService, generate_filename
from image_worker.storage.s3_backend import S3Backend


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.head_object.side_effect = ClientError(
        {"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject"
    )
    client.put_object.return_value = {"ETag": '"etag"'}
    return client


@pytest.fixture
def service(s3_client):
    service = UploadService()
    service.register_backend(
        S3Backend(S3Config(bucket="b", region="us-east-1"), client=s3_client)
    )
    return service


class TestGenerateFilename:
    """Test object name selection."""

    def test_custom_name_with_extension(self):
        assert generate_filename("cat.png", "photo.jpg") == "cat.png"

    def test_custom_name_borrows_original_extension(self):
        assert generate_filename("cat", "photo.webp") == "cat.webp"

    def test_custom_name_defaults_to_jpg(self):
        assert generate_filename("cat", "image") == "cat.jpg"
        assert generate_filename("cat", None) == "cat.jpg"

    def test_original_name(self):
        assert generate_filename(None, "photo.jpg") == "photo.jpg"

    def test_generated_name(self):
        assert re.fullmatch(r"image_\d+_[a-z0-9]{6}\.jpg", generate_filename(None, None))


class TestUploadService:
    """Test the upload path end to end with a mocked client."""

    async def test_upload_file_into_folder(self, service, s3_client, tmp_path, image_generator):
        # Arrange
        source = tmp_path / "x" / "y" / "photo.jpg"
        source.parent.mkdir(parents=True)
        source.write_bytes(image_generator(64, 48, format="JPEG"))
        request = UploadRequest(
            imagePath=str(source), service="s3", folder="2024", overwrite=False
        )

        # Act
        result = await service.upload(request)

        # Assert
        assert result.url.endswith("/2024/photo.jpg")
        assert result.url == "https://b.s3.us-east-1.amazonaws.com/2024/photo.jpg"
        assert result.filename == "photo.jpg"
        assert (result.width, result.height) == (64, 48)
        s3_client.head_object.assert_called_once_with(Bucket="b", Key="2024/photo.jpg")

    async def test_non_image_payload_has_no_dimensions(self, service, data_url):
        request = UploadRequest(base64Image=data_url(b"plain bytes"), filename="notes.txt")

        result = await service.upload(request)

        assert result.width is None
        assert result.format == "txt"

    async def test_custom_filename_gets_source_extension(self, service, data_url, image_generator):
        request = UploadRequest(
            base64Image=data_url(image_generator(format="PNG"), "png"), filename="avatar"
        )

        result = await service.upload(request)

        assert result.filename == "avatar.png"

    async def test_backend_built_from_environment(self, monkeypatch):
        monkeypatch.setenv("S3_BUCKET", "env-bucket")
        service = UploadService()

        backend = service.get_backend("s3")

        assert isinstance(backend, S3Backend)
        assert backend.config.bucket == "env-bucket"
        assert service.get_backend() is backend

    async def test_incomplete_configuration(self):
        with pytest.raises(InvalidParamsError) as exc_info:
            UploadService().get_backend("gcloud")

        assert "GCLOUD_BUCKET" in exc_info.value.message
