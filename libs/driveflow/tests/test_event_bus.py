from __future__ import annotations

import pytest

from driveflow.exceptions import InvalidPayloadError
from driveflow.models.events import ObjectEvent
from driveflow.models.item import TransferJob
from driveflow.services.event_bus import EventBus


@pytest.fixture()
def bus(redis) -> EventBus:
    return EventBus(redis, event_queue="q:events", transfer_queue="q:transfers", transfer_ttl_s=60)


@pytest.mark.asyncio
async def test_transfer_is_enqueued_once_per_name(bus, redis) -> None:
    job = TransferJob(file_id="f1", name="big.mp4", bucket="in", size=5_000_000_000)

    assert await bus.enqueue_transfer(job) is True
    assert await bus.enqueue_transfer(TransferJob(file_id="f9", name="big.mp4", bucket="in")) is False
    assert len(redis.dump_queue("q:transfers")) == 1
    assert await redis.get("driveflow:transfer:big.mp4") == "f1"

    popped = await bus.pop_transfer()
    assert popped == job
    assert await bus.pop_transfer() is None

    await bus.release_transfer("big.mp4")
    assert await bus.enqueue_transfer(job) is True


@pytest.mark.asyncio
async def test_events_are_fifo(bus) -> None:
    await bus.publish_event(ObjectEvent("in", "a.mp4"))
    await bus.publish_event(ObjectEvent("in", "b.mp4", attempt=2))

    assert await bus.pop_event() == ObjectEvent("in", "a.mp4")
    assert await bus.pop_event() == ObjectEvent("in", "b.mp4", attempt=2)
    assert await bus.pop_event() is None


@pytest.mark.asyncio
async def test_invalid_queue_payloads_raise(bus, redis) -> None:
    await redis.lpush("q:events", "{broken")
    with pytest.raises(InvalidPayloadError):
        await bus.pop_event()

    await redis.lpush("q:transfers", '{"name": "x.mp4"}')
    with pytest.raises(InvalidPayloadError):
        await bus.pop_transfer()
