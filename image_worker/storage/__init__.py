"""Object-storage backends."""

from image_worker.storage.base import BaseStorageBackend
from image_worker.storage.factory import create_backend, load_backend_config
from image_worker.storage.gcs_backend import GCloudBackend
from image_worker.storage.r2_backend import CloudflareR2Backend
from image_worker.storage.s3_backend import S3Backend

__all__ = [
    "BaseStorageBackend",
    "CloudflareR2Backend",
    "GCloudBackend",
    "S3Backend",
    "create_backend",
    "load_backend_config",
]
