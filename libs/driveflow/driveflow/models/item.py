"""Source items, working records and transfer jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Working Record / Output Record metadata keys.
TRANSCRIPTION_STARTED = "transcriptionStarted"
NOTIFICATION_SENT = "notificationSent"
ORIGINAL_ID = "originalId"
PARENT_FOLDER_ID = "parentFolderId"
PROCESSED_BY = "processedBy"


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """Parse a Drive/ISO timestamp into an aware UTC datetime."""
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("empty timestamp")
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_rfc3339(dt: datetime) -> str:
    """Format as `2024-01-02T03:04:05.678Z` (the shape Drive queries accept)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DriveItem:
    """One source video in the watched Drive tree."""

    id: str
    name: str
    created_time: datetime
    mime_type: str = ""
    size: int | None = None
    duration_ms: int | None = None
    parent_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DriveItem":
        parents = data.get("parents") or []
        media = data.get("videoMediaMetadata") or {}
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            created_time=parse_rfc3339(str(data["createdTime"])),
            mime_type=str(data.get("mimeType") or ""),
            size=_optional_int(data.get("size")),
            duration_ms=_optional_int(media.get("durationMillis")),
            parent_id=str(parents[0]) if parents else None,
        )

    @property
    def duration_s(self) -> float | None:
        if self.duration_ms is None:
            return None
        return self.duration_ms / 1000.0


@dataclass
class WorkingRecord:
    """The item's copy in working storage."""

    bucket: str
    name: str
    size: int = 0
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def original_id(self) -> str | None:
        return self.metadata.get(ORIGINAL_ID) or None

    @property
    def parent_folder_id(self) -> str | None:
        return self.metadata.get(PARENT_FOLDER_ID) or None


@dataclass(frozen=True)
class TransferJob:
    """Out-of-band transfer request for an item above the large-file threshold."""

    file_id: str
    name: str
    bucket: str
    parent_folder_id: str | None = None
    size: int | None = None
    attempt: int = 0

    @property
    def idempotency_key(self) -> str:
        return self.name

    @classmethod
    def for_item(cls, item: DriveItem, bucket: str) -> "TransferJob":
        return cls(
            file_id=item.id,
            name=item.name,
            bucket=bucket,
            parent_folder_id=item.parent_id,
            size=item.size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "name": self.name,
            "bucket": self.bucket,
            "parent_folder_id": self.parent_folder_id,
            "size": self.size,
            "attempt": self.attempt,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransferJob":
        return cls(
            file_id=str(data["file_id"]),
            name=str(data["name"]),
            bucket=str(data["bucket"]),
            parent_folder_id=data.get("parent_folder_id") or None,
            size=_optional_int(data.get("size")),
            attempt=int(data.get("attempt") or 0),
        )
