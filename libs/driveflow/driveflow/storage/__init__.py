"""Working-storage backends."""

from driveflow.config import Settings
from driveflow.storage.object_store import LocalObjectStore, ObjectInfo, ObjectStore
from driveflow.storage.s3_store import S3ObjectStore


def get_object_store(settings: Settings) -> ObjectStore:
    cfg = settings.storage
    backend = str(cfg.backend or "s3").strip().lower()
    if backend == "local":
        return LocalObjectStore(cfg.local_dir)
    return S3ObjectStore(
        endpoint=cfg.endpoint,
        access_key=cfg.access_key,
        secret_key=cfg.secret_key,
        region=cfg.region,
        uri_scheme=cfg.uri_scheme,
        chunk_bytes=cfg.multipart_chunk_bytes,
    )


__all__ = ["LocalObjectStore", "ObjectInfo", "ObjectStore", "S3ObjectStore", "get_object_store"]
