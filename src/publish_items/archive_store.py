"""Cold storage for archived weekly windows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from common.aws import get_object_bytes, get_s3_client, list_object_keys, put_object_bytes
from common.config import PipelineConfig
from common.errors import FileIOError

logger = logging.getLogger(__name__)


class ArchiveStore(Protocol):
    def put(self, key: str, body: bytes) -> None:
        ...

    def get(self, key: str) -> Optional[bytes]:
        ...

    def list(self, prefix: str) -> list[str]:
        ...


class S3ArchiveStore:
    """Archive objects in an S3-compatible bucket."""

    def __init__(self, bucket: str, s3=None):
        self.bucket = bucket
        self.s3 = s3 or get_s3_client()

    def put(self, key: str, body: bytes) -> None:
        put_object_bytes(self.s3, self.bucket, key, body)

    def get(self, key: str) -> Optional[bytes]:
        return get_object_bytes(self.s3, self.bucket, key)

    def list(self, prefix: str) -> list[str]:
        return list_object_keys(self.s3, self.bucket, prefix)


class LocalArchiveStore:
    """Archive objects as files below a directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Archive key escapes the archive directory: {key}")
        return path

    def put(self, key: str, body: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
        except OSError as e:
            raise FileIOError(f"Failed to write archive object {path}: {e}") from e
        logger.debug("Wrote %d bytes to %s", len(body), path)

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileIOError(f"Failed to read archive object {path}: {e}") from e

    def list(self, prefix: str) -> list[str]:
        if not self.root.exists():
            return []
        keys = [
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file()
        ]
        return sorted(key for key in keys if key.startswith(prefix))


def build_archive_store(config: PipelineConfig) -> ArchiveStore:
    """Archive store of the configured backend; dev runs use a separate bucket or directory."""
    if config.archive.backend == "s3":
        bucket = f"dev-{config.archive.bucket}" if config.dev else config.archive.bucket
        return S3ArchiveStore(bucket)
    local_path = Path(config.data_dir) / config.archive.local_path
    if config.dev:
        local_path = local_path.with_name(f"dev-{local_path.name}")
    return LocalArchiveStore(local_path)
