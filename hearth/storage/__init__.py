"""Blob storage for uploaded files."""

from hearth.core.config import get_settings
from hearth.storage.base import BlobNotFound, BlobStore, BlobStoreError
from hearth.storage.local import LocalBlobStore


def get_blob_store() -> BlobStore:
    """Dependency returning the configured blob store (overridden in tests)."""
    return LocalBlobStore(get_settings().UPLOAD_DIR)


__all__ = [
    "BlobNotFound",
    "BlobStore",
    "BlobStoreError",
    "LocalBlobStore",
    "get_blob_store",
]
