"""Unit tests for the S3 backend."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from image_worker.core.exceptions import InternalError, InvalidParamsError
from image_worker.models.storage import S3Config, UploadOptions
from image_worker.storage.s3_backend import S3Backend, encode_tags


def client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.head_object.side_effect = client_error("404")
    client.put_object.return_value = {"ETag": '"abc123"', "VersionId": "v1"}
    return client


@pytest.fixture
def config():
    return S3Config(bucket="b", region="r", access_key="key", secret_key="secret")


@pytest.fixture
def backend(config, s3_client):
    return S3Backend(config, client=s3_client)


class TestS3Upload:
    """Test the upload algorithm against a mocked boto3 client."""

    async def test_upload_new_object(self, backend, s3_client):
        # Act
        result = await backend.upload(b"data", "a.PNG", UploadOptions(folder="images"))

        # Assert
        s3_client.head_object.assert_called_once_with(Bucket="b", Key="images/a.PNG")
        s3_client.put_object.assert_called_once()
        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["Key"] == "images/a.PNG"
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["ACL"] == "public-read"
        assert "Tagging" not in kwargs
        assert result.url == "https://b.s3.r.amazonaws.com/images/a.PNG"
        assert result.format == "png"
        assert result.size == 4
        assert result.service == "s3"
        assert result.metadata == {
            "bucket": "b",
            "key": "images/a.PNG",
            "region": "r",
            "etag": '"abc123"',
            "versionId": "v1",
        }

    async def test_existing_object_rejected(self, backend, s3_client):
        s3_client.head_object.side_effect = None
        s3_client.head_object.return_value = {"ContentLength": 10}

        with pytest.raises(InvalidParamsError) as exc_info:
            await backend.upload(b"data", "a.jpg", UploadOptions(folder="images"))

        assert "images/a.jpg" in exc_info.value.message
        assert "already exists" in exc_info.value.message
        assert "overwrite=true" in exc_info.value.message
        s3_client.put_object.assert_not_called()

    async def test_overwrite_skips_probe(self, backend, s3_client):
        await backend.upload(b"data", "a.jpg", UploadOptions(overwrite=True))

        assert s3_client.head_object.call_count == 0
        assert s3_client.put_object.call_count == 1
        assert len(s3_client.method_calls) == 1

    @pytest.mark.parametrize("code", ["404", "NotFound", "NoSuchKey"])
    async def test_not_found_probe_allows_upload(self, backend, s3_client, code):
        s3_client.head_object.side_effect = client_error(code)

        await backend.upload(b"data", "a.jpg", UploadOptions())

        s3_client.put_object.assert_called_once()

    @pytest.mark.parametrize("code", ["403", "AccessDenied", "InvalidAccessKeyId"])
    async def test_other_probe_errors_propagate(self, backend, s3_client, code):
        s3_client.head_object.side_effect = client_error(code)

        with pytest.raises(InternalError) as exc_info:
            await backend.upload(b"data", "a.jpg", UploadOptions())

        assert exc_info.value.message.startswith("S3 upload failed:")
        s3_client.put_object.assert_not_called()

    async def test_put_failure_wrapped(self, backend, s3_client):
        s3_client.put_object.side_effect = client_error("SlowDown", "PutObject")

        with pytest.raises(InternalError) as exc_info:
            await backend.upload(b"data", "a.jpg", UploadOptions())

        assert "SlowDown" in exc_info.value.message

    async def test_private_with_tags_and_metadata(self, backend, s3_client):
        options = UploadOptions(
            public=False, tags=["env=prod", "cats"], metadata={"owner": "team"}
        )

        await backend.upload(b"data", "a.jpg", options)

        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["ACL"] == "private"
        assert kwargs["Tagging"] == "env=prod&cats="
        assert kwargs["Metadata"] == {"owner": "team"}

    async def test_too_many_tags_rejected_before_any_call(self, backend, s3_client):
        options = UploadOptions(tags=[f"t{i}=v" for i in range(11)])

        with pytest.raises(InvalidParamsError) as exc_info:
            await backend.upload(b"data", "a.jpg", options)

        assert "at most 10 tags" in exc_info.value.message
        s3_client.head_object.assert_not_called()
        s3_client.put_object.assert_not_called()


class TestS3Urls:
    """Test URL construction rules."""

    def test_virtual_host_url(self):
        backend = S3Backend(S3Config(bucket="b", region="r"), client=MagicMock())
        assert backend.generate_url("images/a.jpg") == "https://b.s3.r.amazonaws.com/images/a.jpg"

    def test_custom_endpoint_url(self):
        backend = S3Backend(
            S3Config(bucket="b", region="r", endpoint="https://x"), client=MagicMock()
        )
        assert backend.generate_url("images/a.jpg") == "https://x/b/images/a.jpg"

    def test_default_region(self):
        backend = S3Backend(S3Config(bucket="b"), client=MagicMock())
        assert backend.generate_url("a.jpg") == "https://b.s3.us-east-1.amazonaws.com/a.jpg"


class TestS3Config:
    """Test configuration validation and client construction."""

    def test_bucket_required(self):
        with pytest.raises(InvalidParamsError) as exc_info:
            S3Backend(S3Config()).validate_config()
        assert "S3_BUCKET" in exc_info.value.message

    def test_key_and_secret_together(self):
        with pytest.raises(InvalidParamsError):
            S3Backend(S3Config(bucket="b", access_key="key")).validate_config()

    def test_ambient_credentials_allowed(self):
        S3Backend(S3Config(bucket="b")).validate_config()

    def test_client_params(self):
        backend = S3Backend(
            S3Config(
                bucket="b",
                region="eu-west-1",
                endpoint="http://minio:9000",
                access_key="key",
                secret_key="secret",
            )
        )

        assert backend._client_params() == {
            "region_name": "eu-west-1",
            "endpoint_url": "http://minio:9000",
            "aws_access_key_id": "key",
            "aws_secret_access_key": "secret",
        }


class TestEncodeTags:
    """Test S3 tagging encoding."""

    def test_empty(self):
        assert encode_tags([]) is None

    def test_pairs_and_bare_tags(self):
        assert encode_tags(["a=1", "b", "c d=e&f"]) == "a=1&b=&c+d=e%26f"

    def test_duplicate_keys_collapse(self):
        assert encode_tags(["a=1", "a=2"]) == "a=2"

    def test_too_many_tags(self):
        with pytest.raises(InvalidParamsError):
            encode_tags([f"t{i}" for i in range(11)])
