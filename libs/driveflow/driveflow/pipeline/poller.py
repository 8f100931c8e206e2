"""One poll cycle: load watermark, scan, ingest in order, save watermark."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from driveflow.exceptions import ConfigurationError
from driveflow.models.item import to_rfc3339
from driveflow.services.watermark import WatermarkStore
from driveflow.stages.ingest import MODE_INLINE, Ingestor
from driveflow.stages.scanner import FolderScanner

logger = logging.getLogger(__name__)


@dataclass
class PollReport:
    found: int = 0
    ingested: int = 0
    deferred: int = 0
    skipped: int = 0
    watermark: datetime | None = None


class DrivePoller:
    def __init__(
        self,
        scanner: FolderScanner,
        ingestor: Ingestor,
        watermark: WatermarkStore,
        *,
        root_folder_id: str,
    ) -> None:
        self.scanner = scanner
        self.ingestor = ingestor
        self.watermark = watermark
        self.root_folder_id = root_folder_id

    async def run_once(self) -> PollReport:
        """Scan once and ingest everything new.

        If an item fails, the watermark is moved only as far as the newest item
        strictly older than the failing one, and the error is re-raised.
        """
        if not str(self.root_folder_id or "").strip():
            raise ConfigurationError("Missing required settings: DRIVE_FOLDER_ID")
        since = await self.watermark.load()
        result = await self.scanner.scan(self.root_folder_id, since)
        report = PollReport(found=result.found, skipped=len(result.skipped), watermark=since)

        # Skipped items are settled; they may advance a checkpoint.
        settled: list[datetime] = [item.created_time for item in result.skipped]
        for item in result.items:
            try:
                outcome = await self.ingestor.ingest(item)
            except Exception:
                logger.exception("ingest failed (name=%s, file_id=%s)", item.name, item.id)
                candidates = [t for t in settled if t < item.created_time]
                if candidates:
                    report.watermark = await self.watermark.save(max(candidates))
                    logger.warning(
                        "watermark checkpointed before failed item (name=%s, last_time=%s)",
                        item.name,
                        to_rfc3339(report.watermark),
                    )
                raise
            settled.append(item.created_time)
            if outcome.mode == MODE_INLINE:
                report.ingested += 1
            else:
                report.deferred += 1

        if result.new_watermark is not None:
            report.watermark = await self.watermark.save(result.new_watermark)
        logger.info(
            "poll done (found=%d, ingested=%d, deferred=%d, skipped=%d, watermark=%s)",
            report.found,
            report.ingested,
            report.deferred,
            report.skipped,
            to_rfc3339(report.watermark) if report.watermark else None,
        )
        return report
