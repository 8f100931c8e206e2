"""Redis-backed queues for storage events and out-of-band transfer jobs."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from driveflow.exceptions import InvalidPayloadError
from driveflow.models.events import ObjectEvent
from driveflow.models.item import TransferJob

logger = logging.getLogger(__name__)


def _transfer_key(name: str) -> str:
    return f"driveflow:transfer:{name}"


class EventBus:
    """Redis lists for new-record events and transfer jobs, plus a sorted set of retries.

    `redis` is a `redis.asyncio.Redis` created with `decode_responses=True`.
    """

    def __init__(
        self,
        redis: Any,
        *,
        event_queue: str = "driveflow:events",
        delayed_queue: str = "driveflow:events:delayed",
        transfer_queue: str = "driveflow:transfers",
        transfer_ttl_s: int = 24 * 3600,
    ) -> None:
        self.redis = redis
        self.event_queue = event_queue
        self.delayed_queue = delayed_queue
        self.transfer_queue = transfer_queue
        self.transfer_ttl_s = int(transfer_ttl_s)

    async def publish_event(self, event: ObjectEvent) -> None:
        await self.redis.lpush(self.event_queue, json.dumps(event.to_dict()))
        logger.info(
            "event published (bucket=%s, name=%s, attempt=%d)", event.bucket, event.name, event.attempt
        )

    async def schedule_event(self, event: ObjectEvent, delay_s: float, *, now: float | None = None) -> None:
        """Park `event` in the delayed set until `now + delay_s`."""
        due = (time.time() if now is None else now) + max(0.0, float(delay_s))
        await self.redis.zadd(self.delayed_queue, {json.dumps(event.to_dict()): due})
        logger.info(
            "event scheduled (bucket=%s, name=%s, attempt=%d, delay_s=%.1f)",
            event.bucket,
            event.name,
            event.attempt,
            delay_s,
        )

    async def promote_due_events(self, *, now: float | None = None) -> int:
        """Move delayed events whose time has come onto the event queue."""
        cutoff = time.time() if now is None else now
        due = await self.redis.zrangebyscore(self.delayed_queue, "-inf", cutoff)
        promoted = 0
        for raw in due:
            # zrem decides ownership when several workers promote at once.
            if await self.redis.zrem(self.delayed_queue, raw):
                await self.redis.lpush(self.event_queue, raw)
                promoted += 1
        if promoted:
            logger.info("delayed events promoted (count=%d)", promoted)
        return promoted

    async def enqueue_transfer(self, job: TransferJob) -> bool:
        """Queue `job` unless a job for the same name is already in flight."""
        key = _transfer_key(job.idempotency_key)
        acquired = await self.redis.set(key, job.file_id, nx=True, ex=self.transfer_ttl_s)
        if not acquired:
            logger.info("transfer already queued (name=%s, file_id=%s)", job.name, job.file_id)
            return False
        await self.redis.lpush(self.transfer_queue, json.dumps(job.to_dict()))
        logger.info("transfer queued (name=%s, file_id=%s, size=%s)", job.name, job.file_id, job.size)
        return True

    async def release_transfer(self, name: str) -> None:
        await self.redis.delete(_transfer_key(name))

    async def _pop(self, queue: str, timeout: int) -> dict[str, Any] | None:
        item = await self.redis.brpop(queue, timeout=timeout)
        if not item:
            return None
        _, raw = item
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidPayloadError(queue, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise InvalidPayloadError(queue, f"expected object, got {type(payload).__name__}")
        return payload

    async def pop_event(self, timeout: int = 5) -> ObjectEvent | None:
        payload = await self._pop(self.event_queue, timeout)
        return None if payload is None else ObjectEvent.from_dict(payload)

    async def pop_transfer(self, timeout: int = 5) -> TransferJob | None:
        payload = await self._pop(self.transfer_queue, timeout)
        if payload is None:
            return None
        try:
            return TransferJob.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidPayloadError(self.transfer_queue, f"invalid transfer job: {exc}") from exc
