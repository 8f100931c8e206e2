"""Out-of-band transfer of items above the large-file threshold."""

from __future__ import annotations

import asyncio
import logging

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from driveflow.models.item import TransferJob, WorkingRecord
from driveflow.services.event_bus import EventBus
from driveflow.stages.ingest import PROCESSED_BY_TRANSFER_JOB, Ingestor

logger = logging.getLogger(__name__)

_DEFAULT_WAIT = wait_exponential(min=5, max=120)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    wait_s = state.next_action.sleep if state.next_action else None
    logger.warning(
        "transfer retrying (attempt=%s, wait_s=%s, error=%s)",
        state.attempt_number,
        wait_s,
        exc,
    )


async def process_transfer(
    job: TransferJob,
    *,
    ingestor: Ingestor,
    bus: EventBus,
    max_attempts: int,
    timeout_s: float,
    wait: wait_base | None = None,
) -> WorkingRecord | None:
    """Copy one large item into working storage.

    The idempotency key is released on success and on final failure, so a
    later backfill can enqueue the item again.
    """
    record: WorkingRecord | None = None
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, int(max_attempts))),
            wait=wait or _DEFAULT_WAIT,
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                record = await asyncio.wait_for(
                    ingestor.transfer(job, processed_by=PROCESSED_BY_TRANSFER_JOB),
                    timeout=timeout_s,
                )
    except Exception:
        logger.exception(
            "transfer failed, giving up (name=%s, file_id=%s, attempts=%d)",
            job.name,
            job.file_id,
            max_attempts,
        )
        record = None
    finally:
        await bus.release_transfer(job.name)
    return record
