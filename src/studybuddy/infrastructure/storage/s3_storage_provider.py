"""Amazon S3 (or S3-compatible) storage provider."""

import asyncio

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from studybuddy.infrastructure.storage.base import (
    StorageError,
    StoredObject,
    StorageProvider,
    unique_object_name,
)


class S3StorageSettings(BaseModel):
    """Configuration settings for the S3 storage provider.

    Credentials come from the standard boto3 credential chain.
    """

    bucket: str
    region: str = "us-east-1"
    endpoint_url: str | None = None
    object_prefix: str = ""
    public_base_url: str | None = None

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


class S3StorageProvider(StorageProvider):
    """Storage provider implementation for Amazon S3."""

    def __init__(self, settings: S3StorageSettings) -> None:
        self.settings = settings
        self._client = None

    def _get_client(self):
        """Get or create the S3 client."""
        if self._client is None:
            client_kwargs = {"region_name": self.settings.region}
            if self.settings.endpoint_url:
                client_kwargs["endpoint_url"] = self.settings.endpoint_url
            self._client = boto3.client("s3", **client_kwargs)
        return self._client

    def _key(self, path: str) -> str:
        prefix = self.settings.object_prefix.strip("/")
        return f"{prefix}/{path}" if prefix else path

    async def save(self, scope_key: str, content: bytes, filename: str, mime_type: str) -> StoredObject:
        path = f"{scope_key.strip('/')}/{unique_object_name(filename)}"
        key = self._key(path)
        try:
            await asyncio.to_thread(
                self._get_client().put_object,
                Bucket=self.settings.bucket,
                Key=key,
                Body=content,
                ContentType=mime_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload file to S3: {e}") from e

        return StoredObject(
            path=path,
            url=self.settings.public_url(key),
            filename=filename,
            size=len(content),
            mime_type=mime_type,
        )

    async def delete(self, path: str) -> None:
        try:
            await asyncio.to_thread(
                self._get_client().delete_object,
                Bucket=self.settings.bucket,
                Key=self._key(path),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete file from S3: {e}") from e

    async def test_connection(self) -> tuple[bool, str | None]:
        try:
            await asyncio.to_thread(self._get_client().head_bucket, Bucket=self.settings.bucket)
            return True, f"Bucket '{self.settings.bucket}' is reachable."
        except (ClientError, BotoCoreError) as e:
            return False, f"S3 connection failed: {e}"
