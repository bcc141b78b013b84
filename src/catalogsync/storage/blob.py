"""Keyed byte stores: a local directory or an S3-compatible bucket (R2)."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from catalogsync.errors import ConfigurationError

if TYPE_CHECKING:
    from catalogsync.settings import Settings


class BlobStore(Protocol):
    """Whole-object reads and writes by key."""

    def read(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if ``key`` was never written."""
        ...

    def write(self, key: str, data: bytes) -> None: ...


class LocalBlobStore:
    """Objects stored as files under ``root``; writes are atomic (tempfile + os.replace)."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Key escapes the store root: {key}")
        return path

    def read(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            Path(tmp_path).replace(path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug("Wrote {} bytes to {}", len(data), path)


def can_use_object_store(settings: Settings) -> bool:
    """Check if all required R2 credentials are configured."""

    return (
        settings.r2_endpoint_url is not None
        and settings.r2_access_key_id is not None
        and settings.r2_secret_access_key is not None
        and bool(settings.r2_bucket_name)
    )


class ObjectBlobStore:
    """Objects in an S3-compatible bucket, optionally under a key prefix."""

    def __init__(self, store, prefix: str = "") -> None:
        self._store = store
        self.prefix = prefix.strip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> ObjectBlobStore:
        if not can_use_object_store(settings):
            raise ConfigurationError("R2 credentials are incomplete.")
        from obstore.store import S3Store

        store = S3Store(
            settings.r2_bucket_name,
            endpoint=settings.r2_endpoint_url,
            region="auto",
            access_key_id=settings.r2_access_key_id.get_secret_value(),
            secret_access_key=settings.r2_secret_access_key.get_secret_value(),
        )
        return cls(store, settings.r2_prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    def read(self, key: str) -> bytes | None:
        from obstore.exceptions import NotFoundError

        try:
            result = self._store.get(self._key(key))
        except NotFoundError:
            return None
        return bytes(result.bytes())

    def write(self, key: str, data: bytes) -> None:
        self._store.put(self._key(key), data)
        logger.debug("Uploaded {} bytes to {}", len(data), self._key(key))


def create_blob_store(settings: Settings) -> BlobStore:
    """Build the backend named by ``settings.store_backend``."""

    if settings.store_backend == "r2":
        return ObjectBlobStore.from_settings(settings)
    return LocalBlobStore(settings.data_dir)
