"""Poller watermark persisted as a small JSON object in working storage."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from driveflow.models.item import parse_rfc3339, to_rfc3339, utcnow
from driveflow.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class WatermarkStore:
    """`{"lastTime": "<RFC3339>"}` at `<bucket>/<name>`."""

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        *,
        name: str = "drive-poller-state.json",
        default_lookback_s: float = 3600,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.bucket = bucket
        self.name = name
        self.default_lookback = timedelta(seconds=float(default_lookback_s))
        self.clock = clock

    async def _read(self) -> datetime | None:
        if await self.store.head(self.bucket, self.name) is None:
            return None
        raw = await self.store.get_text(self.bucket, self.name)
        try:
            return parse_rfc3339(str(json.loads(raw)["lastTime"]))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "watermark unreadable, using default lookback (bucket=%s, name=%s): %s",
                self.bucket,
                self.name,
                exc,
            )
            return None

    async def load(self) -> datetime:
        value = await self._read()
        if value is None:
            value = self.clock() - self.default_lookback
            logger.info("watermark absent, defaulting (last_time=%s)", to_rfc3339(value))
        return value

    async def save(self, value: datetime) -> datetime:
        """Persist `max(current, value)` and return what was written."""
        current = await self._read()
        target = value if current is None or value > current else current
        await self.store.put_json(self.bucket, self.name, {"lastTime": to_rfc3339(target)})
        logger.info("watermark saved (last_time=%s)", to_rfc3339(target))
        return target
