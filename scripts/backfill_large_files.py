"""Enqueue out-of-band transfers for recent large Drive videos.

Usage:
  uv run scripts/backfill_large_files.py --hours 48 [--dry-run]

Useful after a transfer worker outage: every video created in the lookback
window above DRIVE_LARGE_FILE_BYTES gets a transfer job (already-queued names
are skipped by the queue's idempotency key).
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import timedelta

from redis.asyncio import Redis

from driveflow.config import Settings
from driveflow.models.item import TransferJob, to_rfc3339, utcnow
from driveflow.pipeline.factory import build_pipeline
from driveflow.utils.logging_setup import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill large Drive videos into the transfer queue.")
    parser.add_argument("--hours", type=float, default=48.0, help="Lookback window in hours")
    parser.add_argument("--dry-run", action="store_true", help="Only print what would be enqueued")
    return parser.parse_args()


async def _main() -> int:
    args = _parse_args()
    settings = Settings()
    setup_logging(settings)
    settings.require(DRIVE_FOLDER_ID=settings.drive.folder_id)

    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    pipeline = build_pipeline(settings, redis=redis)
    try:
        since = utcnow() - timedelta(hours=float(args.hours))
        print(f"Looking for videos created after {to_rfc3339(since)}")
        result = await pipeline.poller.scanner.scan(settings.drive.folder_id, since)
        print(f"Scanned {result.folders_scanned} folders, found {result.found} videos")

        queued = 0
        for item in result.items:
            size_gb = (item.size or 0) / (1024**3)
            if not pipeline.ingestor.is_large(item):
                print(f"  skip  {item.name} ({size_gb:.2f} GB, small)")
                continue
            if args.dry_run:
                print(f"  would enqueue {item.name} ({item.id}, {size_gb:.2f} GB)")
                queued += 1
                continue
            job = TransferJob.for_item(item, settings.storage.input_bucket)
            if await pipeline.bus.enqueue_transfer(job):
                print(f"  enqueued {item.name} ({item.id}, {size_gb:.2f} GB)")
                queued += 1
            else:
                print(f"  already queued {item.name}")
        print(f"Done: {queued} transfer(s) {'planned' if args.dry_run else 'enqueued'}")
    finally:
        await pipeline.close()
        await redis.aclose()
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_main()))
