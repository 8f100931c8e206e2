"""S3 listing pagination."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


def iter_list_objects_v2(client: Any, *, bucket: str, **kwargs: Any) -> Iterator[dict[str, Any]]:
    """Yield every `list_objects_v2` page, following ContinuationToken."""
    token: str | None = None
    while True:
        call_kwargs: dict[str, Any] = {"Bucket": bucket, **kwargs}
        if token:
            call_kwargs["ContinuationToken"] = token
        page: dict[str, Any] = dict(client.list_objects_v2(**call_kwargs))
        yield page
        token = str(page.get("NextContinuationToken") or "") if page.get("IsTruncated") else None
        if not token:
            return


def iter_objects(client: Any, *, bucket: str, prefix: str = "") -> Iterator[dict[str, Any]]:
    """Yield object entries (`Key`, `Size`, `LastModified`) across all pages."""
    kwargs: dict[str, Any] = {"Prefix": prefix} if prefix else {}
    for page in iter_list_objects_v2(client, bucket=bucket, **kwargs):
        yield from page.get("Contents") or []
