"""DriveFlow Worker"""

import asyncio
import logging

from redis.asyncio import Redis

from driveflow.config import Settings
from driveflow.exceptions import InvalidPayloadError
from driveflow.pipeline.factory import Pipeline, build_pipeline
from driveflow.utils.logging_setup import setup_logging
from handlers.event_handler import consume_next
from handlers.scan_handler import run_scan
from handlers.transfer_handler import process_transfer

logger = logging.getLogger("driveflow.worker")


async def scan_loop(pipeline: Pipeline, interval_s: float) -> None:
    while True:
        await run_scan(pipeline.poller)
        await asyncio.sleep(interval_s)


async def event_loop(pipeline: Pipeline, settings: Settings) -> None:
    while True:
        await consume_next(
            dispatcher=pipeline.dispatcher,
            bus=pipeline.bus,
            max_attempts=settings.worker.event_max_attempts,
            retry_delay_s=settings.worker.event_retry_delay_s,
        )


async def transfer_loop(pipeline: Pipeline, settings: Settings) -> None:
    bus = pipeline.bus
    while True:
        try:
            job = await bus.pop_transfer()
        except InvalidPayloadError as exc:
            logger.error("dropping invalid transfer payload: %s", exc)
            continue
        if job is None:
            continue
        await process_transfer(
            job,
            ingestor=pipeline.ingestor,
            bus=bus,
            max_attempts=settings.worker.transfer_max_attempts,
            timeout_s=settings.worker.transfer_timeout_s,
        )


async def main():
    """Worker main entry point."""
    settings = Settings()
    setup_logging(settings)
    settings.require(DRIVE_FOLDER_ID=settings.drive.folder_id)
    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    pipeline = build_pipeline(settings, redis=redis)

    logger.info(
        "Worker starting (redis=%s, folder=%s, scan_interval_s=%.0f)",
        settings.redis_url,
        settings.drive.folder_id,
        settings.worker.scan_interval_s,
    )

    try:
        await asyncio.gather(
            scan_loop(pipeline, settings.worker.scan_interval_s),
            event_loop(pipeline, settings),
            transfer_loop(pipeline, settings),
        )
    finally:
        await pipeline.close()
        await redis.aclose()


if __name__ == "__main__":
    asyncio.run(main())
