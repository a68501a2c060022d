"""Object storage providers for attachments and avatars."""

from studybuddy.core.config import Settings
from studybuddy.infrastructure.storage.base import StorageError, StoredObject, StorageProvider
from studybuddy.infrastructure.storage.local_storage_provider import LocalStorageProvider
from studybuddy.infrastructure.storage.s3_storage_provider import (
    S3StorageProvider,
    S3StorageSettings,
)


def create_storage_provider(settings: Settings) -> StorageProvider:
    """Build the storage provider selected in settings."""
    if settings.storage_provider == "s3":
        if not settings.s3_bucket_name:
            raise ValueError("STUDYBUDDY_S3_BUCKET_NAME is required for the s3 storage provider")
        return S3StorageProvider(
            S3StorageSettings(
                bucket=settings.s3_bucket_name,
                region=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url,
                object_prefix=settings.s3_object_prefix,
                public_base_url=settings.s3_public_base_url,
            )
        )
    return LocalStorageProvider(settings.storage_path, settings.storage_public_base_url)


__all__ = [
    "LocalStorageProvider",
    "S3StorageProvider",
    "S3StorageSettings",
    "StorageError",
    "StorageProvider",
    "StoredObject",
    "create_storage_provider",
]
