"""Base abstractions for storage providers."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(slots=True)
class StoredObject:
    """Result of a successful upload."""

    path: str
    url: str
    filename: str
    size: int
    mime_type: str


class StorageError(Exception):
    """Raised when the storage backend fails."""


def unique_object_name(original_filename: str) -> str:
    """Build a collision-free object name that keeps the file extension."""
    suffix = PurePosixPath(original_filename or "").suffix.lower()
    return f"{uuid.uuid4().hex}{suffix}"


class StorageProvider(ABC):
    """Abstract base class for storage providers.

    Objects are grouped under an owner scope key such as ``groups/12`` or
    ``avatars/7`` and are served back through a public URL.
    """

    @abstractmethod
    async def save(self, scope_key: str, content: bytes, filename: str, mime_type: str) -> StoredObject:
        """Store an object under the scope key and return its public URL."""
        ...

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a stored object."""
        ...

    @abstractmethod
    async def test_connection(self) -> tuple[bool, str | None]:
        """Test provider connectivity and credentials."""
        ...
