"""Folder scanner: find new videos under the watched Drive tree."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

from driveflow.models.item import DriveItem, to_rfc3339
from driveflow.providers.drive.base import DriveClient
from driveflow.utils.naming import is_video_name

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    items: list[DriveItem] = field(default_factory=list)
    skipped: list[DriveItem] = field(default_factory=list)
    new_watermark: datetime | None = None
    folders_scanned: int = 0

    @property
    def found(self) -> int:
        return len(self.items) + len(self.skipped)


class FolderScanner:
    """Read-only scan of a folder tree; writes nothing."""

    def __init__(
        self,
        drive: DriveClient,
        *,
        max_duration_s: float = 3 * 3600,
        max_folders: int = 5000,
        video_extensions: list[str] | None = None,
    ) -> None:
        self.drive = drive
        self.max_duration_s = float(max_duration_s)
        self.max_folders = max(1, int(max_folders))
        self.video_extensions = {e.lower() for e in video_extensions} if video_extensions else None

    async def collect_folder_ids(self, root_folder_id: str) -> list[str]:
        """Breadth-first walk of the tree, root first, capped at `max_folders`."""
        folder_ids: list[str] = [root_folder_id]
        visited: set[str] = {root_folder_id}
        queue: deque[str] = deque([root_folder_id])

        while queue and len(folder_ids) < self.max_folders:
            level = list(queue)
            queue.clear()
            for child in await self.drive.list_child_folders(level):
                child_id = str(child.get("id") or "")
                if not child_id or child_id in visited:
                    continue
                visited.add(child_id)
                if len(folder_ids) >= self.max_folders:
                    logger.warning(
                        "folder cap reached, ignoring deeper folders (root=%s, max_folders=%d)",
                        root_folder_id,
                        self.max_folders,
                    )
                    queue.clear()
                    break
                folder_ids.append(child_id)
                queue.append(child_id)
        return folder_ids

    def _is_video(self, item: DriveItem) -> bool:
        return item.mime_type.startswith("video/") or is_video_name(item.name, self.video_extensions)

    def _too_long(self, item: DriveItem) -> bool:
        duration = item.duration_s
        return duration is not None and duration > self.max_duration_s

    async def scan(self, root_folder_id: str, watermark: datetime) -> ScanResult:
        folder_ids = await self.collect_folder_ids(root_folder_id)
        listed = await self.drive.list_videos(folder_ids, watermark)

        result = ScanResult(new_watermark=watermark, folders_scanned=len(folder_ids))
        for item in sorted(listed, key=lambda i: (i.created_time, i.name)):
            if item.created_time <= watermark:
                continue
            if result.new_watermark is None or item.created_time > result.new_watermark:
                result.new_watermark = item.created_time
            if not self._is_video(item):
                continue
            if self._too_long(item):
                logger.info(
                    "skipping item over duration ceiling (name=%s, duration_s=%.1f, max_s=%.0f)",
                    item.name,
                    item.duration_s or 0.0,
                    self.max_duration_s,
                )
                result.skipped.append(item)
                continue
            result.items.append(item)

        logger.info(
            "scan done (root=%s, folders=%d, since=%s, items=%d, skipped=%d, new_watermark=%s)",
            root_folder_id,
            result.folders_scanned,
            to_rfc3339(watermark),
            len(result.items),
            len(result.skipped),
            to_rfc3339(result.new_watermark) if result.new_watermark else None,
        )
        return result
