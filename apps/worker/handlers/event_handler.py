"""Storage event consumer with bounded, non-blocking redelivery."""

from __future__ import annotations

import logging

from driveflow.exceptions import InvalidPayloadError
from driveflow.models.events import ObjectEvent, StageOutcome
from driveflow.pipeline.dispatcher import EventDispatcher
from driveflow.services.event_bus import EventBus

logger = logging.getLogger(__name__)

_MAX_BACKOFF_S = 300.0


def retry_delay(attempt: int, base_delay_s: float) -> float:
    return min(float(base_delay_s) * (2 ** max(0, int(attempt))), _MAX_BACKOFF_S)


async def process_event(
    event: ObjectEvent,
    *,
    dispatcher: EventDispatcher,
    bus: EventBus,
    max_attempts: int,
    retry_delay_s: float,
) -> StageOutcome | None:
    """Dispatch one event; on failure park it with `attempt + 1` in the delayed set.

    Returns None when the event failed (scheduled or dropped).
    """
    try:
        return await dispatcher.dispatch(event)
    except Exception as exc:
        next_attempt = event.attempt + 1
        if next_attempt >= max_attempts:
            logger.error(
                "event dropped after max attempts (bucket=%s, name=%s, attempts=%d): %s",
                event.bucket,
                event.name,
                next_attempt,
                exc,
            )
            return None
        delay = retry_delay(event.attempt, retry_delay_s)
        logger.warning(
            "event failed, scheduling retry (bucket=%s, name=%s, attempt=%d, delay_s=%.1f): %s",
            event.bucket,
            event.name,
            next_attempt,
            delay,
            exc,
        )
        await bus.schedule_event(event.retried(), delay)
        return None


async def consume_next(
    *,
    dispatcher: EventDispatcher,
    bus: EventBus,
    max_attempts: int,
    retry_delay_s: float,
    timeout: int = 5,
) -> StageOutcome | None:
    """Promote due retries, then handle at most one queued event."""
    await bus.promote_due_events()
    try:
        event = await bus.pop_event(timeout=timeout)
    except InvalidPayloadError as exc:
        logger.error("dropping invalid event payload: %s", exc)
        return None
    if event is None:
        return None
    return await process_event(
        event,
        dispatcher=dispatcher,
        bus=bus,
        max_attempts=max_attempts,
        retry_delay_s=retry_delay_s,
    )
