"""Image blob storage backends: local public disk or S3."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from scripts.astros.config import BlobStoreConfig
from scripts.astros.errors import ConfigError, StorageError

logger = logging.getLogger("astros.blob_store")


def _check_path(path: str) -> PurePosixPath:
    p = PurePosixPath(path)
    if p.is_absolute() or ".." in p.parts or not p.parts:
        raise StorageError(f"Refusing to store outside the blob root: {path!r}")
    return p


class BlobStore(ABC):
    """put(path, bytes) -> public URL."""

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store data under path and return a URL it can be read back from."""


class LocalBlobStore(BlobStore):
    """Writes under a directory served at base_url (a "public" storage disk)."""

    def __init__(self, root: str | Path, base_url: str = "/storage") -> None:
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        rel = _check_path(path)
        target = self._root.joinpath(*rel.parts)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {target}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(data), target)
        return f"{self._base_url}/{rel.as_posix()}"


class S3BlobStore(BlobStore):
    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        base_url: Optional[str] = None,
        client=None,
    ) -> None:
        self._bucket = bucket
        self._client = client or boto3.client("s3", region_name=region)
        self._base_url = (
            base_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        ).rstrip("/")

    def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        key = _check_path(path).as_posix()
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=data, **extra)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"S3 put_object failed for s3://{self._bucket}/{key}: {exc}") from exc
        return f"{self._base_url}/{key}"


def build_blob_store(config: BlobStoreConfig) -> BlobStore:
    if config.backend == "s3":
        if not config.bucket:
            raise ConfigError("S3 blob store needs a bucket")
        return S3BlobStore(config.bucket, region=config.region, base_url=config.base_url)
    return LocalBlobStore(config.root, base_url=config.base_url or "/storage")
