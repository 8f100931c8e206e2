"""Object store interface and local implementation."""

from __future__ import annotations

import builtins
import json
import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectInfo:
    bucket: str
    name: str
    size: int = 0
    updated: datetime | None = None
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def meta(self, key: str) -> str | None:
        """Case-insensitive metadata lookup (S3 lower-cases user metadata keys)."""
        value = self.metadata.get(key)
        if value is None:
            lowered = key.lower()
            for k, v in self.metadata.items():
                if k.lower() == lowered:
                    value = v
                    break
        return value or None


class ObjectStore(ABC):
    """Bucket/name object storage with per-object string metadata."""

    uri_scheme: str = "file"

    @abstractmethod
    async def put(
        self,
        bucket: str,
        name: str,
        data: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> str:
        """Create or overwrite an object (metadata replaced) and return its URI."""

    @abstractmethod
    async def get(self, bucket: str, name: str) -> bytes:
        """Load object bytes; raise FileNotFoundError when absent."""

    @abstractmethod
    async def head(self, bucket: str, name: str) -> ObjectInfo | None:
        """Return object info including metadata, or None when absent."""

    @abstractmethod
    async def set_metadata(self, bucket: str, name: str, patch: dict[str, str]) -> None:
        """Merge `patch` into the object's metadata."""

    @abstractmethod
    async def delete(self, bucket: str, name: str) -> None:
        """Delete an object; raise FileNotFoundError when absent."""

    @abstractmethod
    async def list(self, bucket: str, prefix: str = "") -> builtins.list[ObjectInfo]:
        """List objects (metadata not populated)."""

    @abstractmethod
    def open_writer(
        self,
        bucket: str,
        name: str,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> Any:
        """Blocking context manager yielding a writable binary sink.

        The object becomes visible only when the block exits cleanly; on error
        the partial upload is discarded.
        """

    def uri(self, bucket: str, name: str) -> str:
        return f"{self.uri_scheme}://{bucket}/{name}"

    async def put_text(self, bucket: str, name: str, text: str, **kwargs: Any) -> str:
        kwargs.setdefault("content_type", "text/plain; charset=utf-8")
        return await self.put(bucket, name, text.encode("utf-8"), **kwargs)

    async def get_text(self, bucket: str, name: str) -> str:
        return (await self.get(bucket, name)).decode("utf-8")

    async def put_json(self, bucket: str, name: str, obj: Any, **kwargs: Any) -> str:
        kwargs.setdefault("content_type", "application/json")
        raw = json.dumps(obj, ensure_ascii=False, indent=2).encode("utf-8")
        return await self.put(bucket, name, raw, **kwargs)

    async def get_json(self, bucket: str, name: str) -> Any:
        return json.loads(await self.get_text(bucket, name))


class LocalObjectStore(ObjectStore):
    """Local filesystem object store for development and tests.

    Layout: `<base>/<bucket>/<name>` for data, `<base>/.meta/<bucket>/<name>.json`
    for metadata sidecars, `<base>/.tmp/` for in-flight writes.
    """

    def __init__(self, base_dir: str) -> None:
        self.base_dir = Path(base_dir)

    def _path(self, bucket: str, name: str) -> Path:
        safe_name = str(name or "").strip().lstrip("/")
        if not bucket or not safe_name or ".." in Path(safe_name).parts:
            raise ValueError(f"invalid object path: {bucket!r}/{name!r}")
        return self.base_dir / bucket / safe_name

    def _meta_path(self, bucket: str, name: str) -> Path:
        path = self._path(bucket, name)
        return self.base_dir / ".meta" / bucket / f"{path.relative_to(self.base_dir / bucket)}.json"

    def _read_meta(self, bucket: str, name: str) -> dict[str, Any]:
        meta_path = self._meta_path(bucket, name)
        if not meta_path.exists():
            return {}
        return dict(json.loads(meta_path.read_text(encoding="utf-8")))

    def _write_meta(self, bucket: str, name: str, payload: dict[str, Any]) -> None:
        meta_path = self._meta_path(bucket, name)
        meta_path.parent.mkdir(parents=True, exist_ok=True)
        meta_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")

    def _info(self, bucket: str, name: str, path: Path, *, with_metadata: bool) -> ObjectInfo:
        stat = path.stat()
        sidecar = self._read_meta(bucket, name) if with_metadata else {}
        return ObjectInfo(
            bucket=bucket,
            name=name,
            size=int(stat.st_size),
            updated=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            content_type=sidecar.get("content_type"),
            metadata=dict(sidecar.get("metadata") or {}),
        )

    async def put(
        self,
        bucket: str,
        name: str,
        data: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> str:
        with self.open_writer(bucket, name, metadata=metadata, content_type=content_type) as sink:
            sink.write(data)
        return self.uri(bucket, name)

    async def get(self, bucket: str, name: str) -> bytes:
        path = self._path(bucket, name)
        if not path.is_file():
            raise FileNotFoundError(f"object not found: {bucket}/{name}")
        return path.read_bytes()

    async def head(self, bucket: str, name: str) -> ObjectInfo | None:
        path = self._path(bucket, name)
        if not path.is_file():
            return None
        return self._info(bucket, name, path, with_metadata=True)

    async def set_metadata(self, bucket: str, name: str, patch: dict[str, str]) -> None:
        if not self._path(bucket, name).is_file():
            raise FileNotFoundError(f"object not found: {bucket}/{name}")
        sidecar = self._read_meta(bucket, name)
        merged = dict(sidecar.get("metadata") or {})
        merged.update({str(k): str(v) for k, v in patch.items()})
        sidecar["metadata"] = merged
        self._write_meta(bucket, name, sidecar)

    async def delete(self, bucket: str, name: str) -> None:
        path = self._path(bucket, name)
        if not path.is_file():
            raise FileNotFoundError(f"object not found: {bucket}/{name}")
        path.unlink()
        self._meta_path(bucket, name).unlink(missing_ok=True)

    async def list(self, bucket: str, prefix: str = "") -> builtins.list[ObjectInfo]:
        root = self.base_dir / bucket
        if not root.exists():
            return []
        out: builtins.list[ObjectInfo] = []
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            name = path.relative_to(root).as_posix()
            if prefix and not name.startswith(prefix):
                continue
            out.append(self._info(bucket, name, path, with_metadata=False))
        return out

    @contextmanager
    def open_writer(
        self,
        bucket: str,
        name: str,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> Iterator[BinaryIO]:
        final = self._path(bucket, name)
        tmp_dir = self.base_dir / ".tmp"
        tmp_dir.mkdir(parents=True, exist_ok=True)
        tmp = tmp_dir / uuid4().hex
        try:
            with tmp.open("wb") as fh:
                yield fh
            final.parent.mkdir(parents=True, exist_ok=True)
            os.replace(tmp, final)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        self._write_meta(
            bucket,
            name,
            {
                "content_type": content_type,
                "metadata": {str(k): str(v) for k, v in (metadata or {}).items()},
            },
        )

    def wipe(self) -> None:
        """Remove every bucket (used by tests and local resets)."""
        if self.base_dir.exists():
            shutil.rmtree(self.base_dir)
            logger.info("local object store wiped (base_dir=%s)", self.base_dir)
