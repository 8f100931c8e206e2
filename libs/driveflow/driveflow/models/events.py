"""Storage events and stage outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import unquote_plus

from driveflow.exceptions import InvalidPayloadError


class StageOutcome(str, Enum):
    IGNORED = "ignored"
    MISSING = "missing"
    DUPLICATE = "duplicate"
    SUBMITTED = "submitted"
    NOTIFIED = "notified"
    NOTIFIED_INSUFFICIENT = "notified_insufficient"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ObjectEvent:
    """A "record created or overwritten" notification."""

    bucket: str
    name: str
    attempt: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"bucket": self.bucket, "name": self.name, "attempt": self.attempt}

    def retried(self) -> "ObjectEvent":
        return ObjectEvent(bucket=self.bucket, name=self.name, attempt=self.attempt + 1)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ObjectEvent":
        bucket = str(data.get("bucket") or "").strip()
        name = str(data.get("name") or "").strip()
        if not bucket or not name:
            raise InvalidPayloadError("event", "missing bucket or name")
        return cls(bucket=bucket, name=name, attempt=int(data.get("attempt") or 0))

    @classmethod
    def parse_payload(cls, payload: Any) -> list["ObjectEvent"]:
        """Parse a plain, CloudEvent-wrapped or S3/MinIO notification payload."""
        if not isinstance(payload, dict):
            raise InvalidPayloadError("event", f"expected object, got {type(payload).__name__}")

        records = payload.get("Records")
        if isinstance(records, list):
            events: list[ObjectEvent] = []
            for record in records:
                s3 = record.get("s3") if isinstance(record, dict) else None
                if not isinstance(s3, dict):
                    continue
                bucket = str((s3.get("bucket") or {}).get("name") or "")
                key = unquote_plus(str((s3.get("object") or {}).get("key") or ""))
                if bucket and key:
                    events.append(cls(bucket=bucket, name=key))
            if not events:
                raise InvalidPayloadError("event", "no usable records")
            return events

        data = payload.get("data")
        if isinstance(data, dict) and "bucket" not in payload:
            return [cls.from_dict(data)]
        return [cls.from_dict(payload)]
