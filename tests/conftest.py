"""Pytest fixtures for image worker tests."""

import base64
import io
from typing import Tuple

import pytest
from PIL import Image

from image_worker.config import settings
from image_worker.services.upload_service import upload_service

STORAGE_ENV_VARS = (
    "UPLOAD_SERVICE",
    "IMAGE_WORKER_UPLOAD_SERVICE",
    "AWS_ACCESS_KEY_ID",
    "S3_ACCESS_KEY",
    "AWS_SECRET_ACCESS_KEY",
    "S3_SECRET_KEY",
    "S3_BUCKET",
    "S3_REGION",
    "AWS_REGION",
    "S3_ENDPOINT",
    "CLOUDFLARE_R2_ACCESS_KEY_ID",
    "CF_ACCESS_KEY",
    "CLOUDFLARE_R2_SECRET_ACCESS_KEY",
    "CF_SECRET_KEY",
    "CLOUDFLARE_R2_BUCKET",
    "CF_BUCKET",
    "CLOUDFLARE_R2_REGION",
    "CLOUDFLARE_R2_ENDPOINT",
    "CF_ENDPOINT",
    "CLOUDFLARE_R2_PUBLIC_URL",
    "CF_PUBLIC_URL",
    "GCLOUD_BUCKET",
    "GCLOUD_PROJECT_ID",
    "GCLOUD_CREDENTIALS_PATH",
    "GOOGLE_APPLICATION_CREDENTIALS",
)


@pytest.fixture(autouse=True)
def clean_storage_env(monkeypatch, tmp_path):
    """Isolate tests from storage credentials and cached backends."""
    for name in STORAGE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the settings sources
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings, "upload_service", None)
    upload_service.clear_backends()
    yield
    upload_service.clear_backends()


@pytest.fixture
def image_generator():
    """Generate test images on the fly."""

    def _generate(
        width: int = 100,
        height: int = 100,
        format: str = "PNG",
        color: Tuple[int, ...] = (255, 0, 0),
        mode: str = "RGB",
    ) -> bytes:
        img = Image.new(mode, (width, height), color=color)
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        return buffer.getvalue()

    return _generate


@pytest.fixture
def data_url():
    """Encode bytes as a data URL."""

    def _encode(data: bytes, kind: str = "png") -> str:
        return f"data:image/{kind};base64,{base64.b64encode(data).decode('ascii')}"

    return _encode


@pytest.fixture
def heic_bytes():
    """Bytes carrying a HEIC ftyp signature (content is not decodable)."""
    return b"\x00\x00\x00\x18ftypheic\x00\x00\x00\x00mif1heic" + b"\x00" * 64
