"""Local filesystem storage provider."""

import asyncio
from pathlib import Path

from studybuddy.infrastructure.storage.base import (
    StorageError,
    StoredObject,
    StorageProvider,
    unique_object_name,
)


class LocalStorageProvider(StorageProvider):
    """Storage provider that writes under a local directory.

    Files are served by the application's ``/files`` route, so the public
    URL is ``<public_base_url>/<path>``.
    """

    def __init__(self, storage_path: str, public_base_url: str) -> None:
        self.storage_path = Path(storage_path)
        self.public_base_url = public_base_url.rstrip("/")

    def resolve(self, path: str) -> Path:
        """Map a stored path to an absolute file, refusing traversal."""
        root = self.storage_path.resolve()
        absolute_path = (root / path).resolve()
        if not absolute_path.is_relative_to(root):
            raise ValueError("Invalid file path")
        return absolute_path

    def _write(self, target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    async def save(self, scope_key: str, content: bytes, filename: str, mime_type: str) -> StoredObject:
        path = f"{scope_key.strip('/')}/{unique_object_name(filename)}"
        try:
            await asyncio.to_thread(self._write, self.resolve(path), content)
        except OSError as e:
            raise StorageError(f"Failed to write file: {e}") from e

        return StoredObject(
            path=path,
            url=f"{self.public_base_url}/{path}",
            filename=filename,
            size=len(content),
            mime_type=mime_type,
        )

    async def delete(self, path: str) -> None:
        self.resolve(path).unlink(missing_ok=True)

    async def test_connection(self) -> tuple[bool, str | None]:
        """Verify that the configured local storage path is writable."""
        try:
            self.storage_path.mkdir(parents=True, exist_ok=True)
            check_file = self.storage_path / ".storage_provider_check"
            check_file.write_text("ok", encoding="utf-8")
            check_file.unlink(missing_ok=True)
            return True, f"Local storage is writable at '{self.storage_path}'."
        except OSError as e:
            return False, f"Local storage test failed: {e}"
