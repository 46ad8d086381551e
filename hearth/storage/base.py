"""Blob store interface for uploaded resource files."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

DEFAULT_CHUNK_SIZE = 64 * 1024


class BlobStoreError(RuntimeError):
    """Raised when the underlying storage fails to save, read or delete."""


class BlobNotFound(BlobStoreError):
    """Raised when a key has no stored bytes."""


class BlobStore(ABC):
    """Opaque-key byte storage; keys are generated by the store, never by callers."""

    @abstractmethod
    def save(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        """Persist bytes and return the new key."""

    @abstractmethod
    def read_stream(self, key: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the stored bytes in chunks. Raises BlobNotFound before yielding if absent."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove stored bytes. Deleting a missing key is not an error."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """True if bytes are stored under key."""
