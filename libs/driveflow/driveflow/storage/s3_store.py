"""S3-compatible object store (AWS S3, MinIO, GCS interoperability)."""

from __future__ import annotations

import asyncio
import builtins
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from botocore.config import Config
from botocore.exceptions import ClientError

from driveflow.storage.object_store import ObjectInfo, ObjectStore
from driveflow.storage.s3_pagination import iter_objects

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "") or "")


class _MultipartWriter:
    """Binary sink that uploads fixed-size parts as data arrives."""

    def __init__(
        self,
        client: Any,
        *,
        bucket: str,
        key: str,
        chunk_bytes: int,
        metadata: dict[str, str],
        content_type: str | None,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._key = key
        self._chunk_bytes = chunk_bytes
        self._metadata = metadata
        self._content_type = content_type
        self._buffer = bytearray()
        self._parts: list[dict[str, Any]] = []
        self._upload_id: str | None = None
        self.bytes_written = 0

    def _extra_args(self) -> dict[str, Any]:
        extra: dict[str, Any] = {"Metadata": self._metadata}
        if self._content_type:
            extra["ContentType"] = self._content_type
        return extra

    def _upload_part(self, body: bytes) -> None:
        if self._upload_id is None:
            resp = self._client.create_multipart_upload(
                Bucket=self._bucket, Key=self._key, **self._extra_args()
            )
            self._upload_id = str(resp["UploadId"])
        part_number = len(self._parts) + 1
        resp = self._client.upload_part(
            Bucket=self._bucket,
            Key=self._key,
            UploadId=self._upload_id,
            PartNumber=part_number,
            Body=body,
        )
        self._parts.append({"ETag": resp["ETag"], "PartNumber": part_number})

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        self.bytes_written += len(data)
        while len(self._buffer) >= self._chunk_bytes:
            chunk = bytes(self._buffer[: self._chunk_bytes])
            del self._buffer[: self._chunk_bytes]
            self._upload_part(chunk)
        return len(data)

    def commit(self) -> None:
        if self._upload_id is None:
            # Small object: a single PUT is cheaper than a one-part upload.
            self._client.put_object(
                Bucket=self._bucket, Key=self._key, Body=bytes(self._buffer), **self._extra_args()
            )
            self._buffer.clear()
            return
        if self._buffer:
            self._upload_part(bytes(self._buffer))
            self._buffer.clear()
        self._client.complete_multipart_upload(
            Bucket=self._bucket,
            Key=self._key,
            UploadId=self._upload_id,
            MultipartUpload={"Parts": self._parts},
        )

    def abort(self) -> None:
        self._buffer.clear()
        if self._upload_id is None:
            return
        try:
            self._client.abort_multipart_upload(
                Bucket=self._bucket, Key=self._key, UploadId=self._upload_id
            )
        except ClientError as exc:
            logger.warning(
                "multipart abort failed (bucket=%s, key=%s, upload_id=%s): %s",
                self._bucket,
                self._key,
                self._upload_id,
                exc,
            )


class S3ObjectStore(ObjectStore):
    """Object store over any S3-compatible endpoint."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        *,
        region: str | None = None,
        uri_scheme: str = "s3",
        chunk_bytes: int = 16 * 1024 * 1024,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.uri_scheme = uri_scheme
        self.chunk_bytes = int(chunk_bytes)

        self._client: Any | None = None
        self._client_lock = threading.Lock()

    def _ensure_client(self) -> Any:
        if self._client is not None:
            return self._client

        with self._client_lock:
            if self._client is None:
                import boto3

                self._client = boto3.client(
                    "s3",
                    endpoint_url=self.endpoint or None,
                    aws_access_key_id=self.access_key or None,
                    aws_secret_access_key=self.secret_key or None,
                    region_name=self.region or None,
                    config=Config(s3={"addressing_style": "path"}),
                )
        return self._client

    async def put(
        self,
        bucket: str,
        name: str,
        data: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> str:
        client = self._ensure_client()
        extra: dict[str, Any] = {"Metadata": {str(k): str(v) for k, v in (metadata or {}).items()}}
        if content_type:
            extra["ContentType"] = content_type

        def _put() -> None:
            client.put_object(Bucket=bucket, Key=name, Body=data, **extra)

        await asyncio.to_thread(_put)
        return self.uri(bucket, name)

    async def get(self, bucket: str, name: str) -> bytes:
        client = self._ensure_client()

        def _get() -> bytes:
            resp = client.get_object(Bucket=bucket, Key=name)
            return bytes(resp["Body"].read())

        try:
            return await asyncio.to_thread(_get)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise FileNotFoundError(f"S3 object not found: {bucket}/{name}") from exc
            raise

    def _head_sync(self, client: Any, bucket: str, name: str) -> ObjectInfo | None:
        try:
            resp = client.head_object(Bucket=bucket, Key=name)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return None
            raise
        return ObjectInfo(
            bucket=bucket,
            name=name,
            size=int(resp.get("ContentLength") or 0),
            updated=resp.get("LastModified"),
            content_type=resp.get("ContentType"),
            metadata=dict(resp.get("Metadata") or {}),
        )

    async def head(self, bucket: str, name: str) -> ObjectInfo | None:
        client = self._ensure_client()
        return await asyncio.to_thread(self._head_sync, client, bucket, name)

    async def set_metadata(self, bucket: str, name: str, patch: dict[str, str]) -> None:
        client = self._ensure_client()

        def _patch() -> None:
            info = self._head_sync(client, bucket, name)
            if info is None:
                raise FileNotFoundError(f"S3 object not found: {bucket}/{name}")
            merged = dict(info.metadata)
            merged.update({str(k): str(v) for k, v in patch.items()})
            extra: dict[str, Any] = {"Metadata": merged, "MetadataDirective": "REPLACE"}
            if info.content_type:
                extra["ContentType"] = info.content_type
            # Managed copy switches to multipart above 5 GB.
            client.copy({"Bucket": bucket, "Key": name}, bucket, name, ExtraArgs=extra)

        await asyncio.to_thread(_patch)

    async def delete(self, bucket: str, name: str) -> None:
        client = self._ensure_client()

        def _delete() -> None:
            if self._head_sync(client, bucket, name) is None:
                raise FileNotFoundError(f"S3 object not found: {bucket}/{name}")
            client.delete_object(Bucket=bucket, Key=name)

        await asyncio.to_thread(_delete)

    async def list(self, bucket: str, prefix: str = "") -> builtins.list[ObjectInfo]:
        client = self._ensure_client()

        def _list() -> builtins.list[ObjectInfo]:
            out: list[ObjectInfo] = []
            for obj in iter_objects(client, bucket=bucket, prefix=prefix):
                key = str(obj.get("Key") or "")
                if not key or key.endswith("/"):
                    continue
                out.append(
                    ObjectInfo(
                        bucket=bucket,
                        name=key,
                        size=int(obj.get("Size") or 0),
                        updated=obj.get("LastModified"),
                    )
                )
            return out

        try:
            return await asyncio.to_thread(_list)
        except ClientError as exc:
            raise RuntimeError(f"Failed to list S3 objects (bucket={bucket!r}, prefix={prefix!r}): {exc}") from exc

    @contextmanager
    def open_writer(
        self,
        bucket: str,
        name: str,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> Iterator[_MultipartWriter]:
        writer = _MultipartWriter(
            self._ensure_client(),
            bucket=bucket,
            key=name,
            chunk_bytes=self.chunk_bytes,
            metadata={str(k): str(v) for k, v in (metadata or {}).items()},
            content_type=content_type,
        )
        try:
            yield writer
            writer.commit()
        except BaseException:
            writer.abort()
            raise
        logger.info(
            "s3 object written (bucket=%s, key=%s, bytes=%d)", bucket, name, writer.bytes_written
        )
