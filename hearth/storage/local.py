"""Filesystem blob store used for resource uploads."""

import logging
import uuid
from collections.abc import Iterator
from pathlib import Path, PurePath

from hearth.storage.base import DEFAULT_CHUNK_SIZE, BlobNotFound, BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

# Suffixes longer than this are dropped rather than trusted.
MAX_SUFFIX_LEN = 16


def _safe_suffix(filename: str) -> str:
    suffix = PurePath(filename or "").suffix.lower()
    if not suffix or len(suffix) > MAX_SUFFIX_LEN or not suffix[1:].isalnum():
        return ""
    return suffix


class LocalBlobStore(BlobStore):
    """Store blobs as flat files under root, named by a random hex key."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        # Keys are generated here; reject anything that could escape root.
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise BlobNotFound(f"Invalid blob key: {key!r}")
        return self.root / key

    def save(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        key = uuid.uuid4().hex + _safe_suffix(filename)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self._path(key).write_bytes(data)
        except OSError as e:
            raise BlobStoreError(f"Failed to save blob: {e}") from e
        logger.debug("Saved blob key=%s bytes=%s", key, len(data))
        return key

    def read_stream(self, key: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        path = self._path(key)
        try:
            fh = path.open("rb")
        except FileNotFoundError as e:
            raise BlobNotFound(f"Blob not found: {key}") from e
        except OSError as e:
            raise BlobStoreError(f"Failed to open blob: {e}") from e
        return self._iter_file(fh, chunk_size)

    @staticmethod
    def _iter_file(fh, chunk_size: int) -> Iterator[bytes]:
        with fh:
            while True:
                chunk = fh.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete blob: {e}") from e

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).is_file()
        except BlobNotFound:
            return False
