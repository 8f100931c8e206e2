from __future__ import annotations

import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any

import pytest

from driveflow.models.events import ObjectEvent, StageOutcome
from driveflow.models.item import TransferJob, WorkingRecord
from driveflow.services.event_bus import EventBus

_WORKER_ROOT = Path(__file__).resolve().parents[1]
if str(_WORKER_ROOT) not in sys.path:
    sys.path.insert(0, str(_WORKER_ROOT))


class FakeRedis:
    def __init__(self) -> None:
        self._kv: dict[str, str] = {}
        self._lists: dict[str, list[str]] = defaultdict(list)
        self._zsets: dict[str, dict[str, float]] = defaultdict(dict)

    async def get(self, key: str) -> str | None:
        return self._kv.get(str(key))

    async def set(self, key: str, value: str, *, nx: bool = False, ex: int | None = None) -> bool | None:  # noqa: ARG002
        if nx and str(key) in self._kv:
            return None
        self._kv[str(key)] = str(value)
        return True

    async def delete(self, key: str) -> int:
        existed = str(key) in self._kv
        self._kv.pop(str(key), None)
        return 1 if existed else 0

    async def lpush(self, key: str, *values: str) -> int:
        lst = self._lists[str(key)]
        for v in values:
            lst.insert(0, str(v))
        return len(lst)

    async def brpop(self, key: str, timeout: int = 0) -> tuple[str, str] | None:  # noqa: ARG002
        lst = self._lists.get(str(key))
        if not lst:
            return None
        return str(key), lst.pop()

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self._zsets[str(key)]
        added = sum(1 for member in mapping if member not in zset)
        zset.update({str(m): float(s) for m, s in mapping.items()})
        return added

    async def zrangebyscore(self, key: str, min: float | str, max: float | str) -> list[str]:  # noqa: A002
        lo = float(min)
        hi = float(max)
        zset = self._zsets.get(str(key), {})
        return [m for m, s in sorted(zset.items(), key=lambda kv: kv[1]) if lo <= s <= hi]

    async def zrem(self, key: str, *members: str) -> int:
        zset = self._zsets.get(str(key), {})
        return sum(1 for m in members if zset.pop(str(m), None) is not None)

    def dump_delayed(self, key: str) -> list[tuple[dict[str, Any], float]]:
        zset = self._zsets.get(str(key), {})
        return [(json.loads(m), s) for m, s in sorted(zset.items(), key=lambda kv: kv[1])]

    def dump_queue(self, key: str) -> list[dict[str, Any]]:
        return [json.loads(x) for x in list(self._lists.get(str(key), []))]


class FlakyDispatcher:
    """Fails the first `failures` dispatches, then reports NOTIFIED."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.seen: list[ObjectEvent] = []

    async def dispatch(self, event: ObjectEvent) -> StageOutcome:
        self.seen.append(event)
        if len(self.seen) <= self.failures:
            raise RuntimeError(f"stage failed for {event.name}")
        return StageOutcome.NOTIFIED


class FlakyIngestor:
    """Fails the first `failures` transfers."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls: list[tuple[str, str]] = []

    async def transfer(self, job: TransferJob, *, processed_by: str) -> WorkingRecord:
        self.calls.append((job.name, processed_by))
        if len(self.calls) <= self.failures:
            raise OSError(f"connection reset while copying {job.name}")
        return WorkingRecord(bucket=job.bucket, name=job.name, size=job.size or 0, metadata={})


@pytest.fixture()
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def bus(redis: FakeRedis) -> EventBus:
    return EventBus(redis)


@pytest.fixture()
def make_dispatcher():
    return FlakyDispatcher


@pytest.fixture()
def make_ingestor():
    return FlakyIngestor
