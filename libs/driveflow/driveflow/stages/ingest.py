"""Ingestor: copy discovered Drive items into working storage."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from driveflow.models.events import ObjectEvent
from driveflow.models.item import ORIGINAL_ID, PARENT_FOLDER_ID, PROCESSED_BY, DriveItem, TransferJob, WorkingRecord
from driveflow.providers.drive.base import DriveClient
from driveflow.services.event_bus import EventBus
from driveflow.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

PROCESSED_BY_POLLER = "drive-poller"
PROCESSED_BY_TRANSFER_JOB = "large-transfer-job"

MODE_INLINE = "inline"
MODE_DEFERRED = "deferred"
MODE_ALREADY_QUEUED = "already_queued"


@dataclass(frozen=True)
class IngestResult:
    mode: str
    record: WorkingRecord | None = None


class Ingestor:
    """Small items are streamed inline; large ones go to the transfer queue.

    Both paths end in `transfer`, which overwrites any previous record with
    the same name.
    """

    def __init__(
        self,
        store: ObjectStore,
        drive: DriveClient,
        *,
        bucket: str,
        large_file_bytes: int,
        bus: EventBus | None = None,
    ) -> None:
        self.store = store
        self.drive = drive
        self.bucket = bucket
        self.large_file_bytes = int(large_file_bytes)
        self.bus = bus

    def is_large(self, item: DriveItem) -> bool:
        return item.size is not None and item.size > self.large_file_bytes

    async def ingest(self, item: DriveItem) -> IngestResult:
        job = TransferJob.for_item(item, self.bucket)
        if not self.is_large(item):
            record = await self.transfer(job, processed_by=PROCESSED_BY_POLLER)
            return IngestResult(MODE_INLINE, record)

        if self.bus is None:
            raise RuntimeError(f"no transfer queue configured for large item {item.name!r}")
        queued = await self.bus.enqueue_transfer(job)
        return IngestResult(MODE_DEFERRED if queued else MODE_ALREADY_QUEUED)

    async def transfer(self, job: TransferJob, *, processed_by: str) -> WorkingRecord:
        metadata = {
            ORIGINAL_ID: job.file_id,
            PARENT_FOLDER_ID: job.parent_folder_id or "",
            PROCESSED_BY: processed_by,
        }

        def _copy() -> int:
            with self.store.open_writer(job.bucket, job.name, metadata=metadata) as sink:
                return self.drive.download_to(job.file_id, sink)

        started = time.perf_counter()
        size = await asyncio.to_thread(_copy)
        logger.info(
            "item transferred (name=%s, file_id=%s, bytes=%d, processed_by=%s, elapsed_s=%.1f)",
            job.name,
            job.file_id,
            size,
            processed_by,
            time.perf_counter() - started,
        )
        record = WorkingRecord(bucket=job.bucket, name=job.name, size=size, metadata=metadata)
        if self.bus is not None:
            await self.bus.publish_event(ObjectEvent(bucket=job.bucket, name=job.name))
        return record
