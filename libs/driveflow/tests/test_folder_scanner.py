from __future__ import annotations

import pytest

from driveflow.models.item import parse_rfc3339
from driveflow.stages.scanner import FolderScanner

WATERMARK = parse_rfc3339("2024-05-01T10:00:00Z")


@pytest.mark.asyncio
async def test_scan_walks_tree_and_orders_items(drive) -> None:
    drive.add_folder("root", "a", "A")
    drive.add_folder("a", "b", "B")
    drive.add_folder("b", "a", "cycle back to A")
    drive.add_video("b", "f2", "late.mp4", "2024-05-01T10:05:00Z")
    drive.add_video("root", "f1", "early.mp4", "2024-05-01T10:01:00Z")
    drive.add_video("a", "f3", "same-time-b.mov", "2024-05-01T10:05:00Z")
    drive.add_video("elsewhere", "f4", "other-tree.mp4", "2024-05-01T10:06:00Z")

    result = await FolderScanner(drive).scan("root", WATERMARK)

    assert result.folders_scanned == 3
    assert [i.name for i in result.items] == ["early.mp4", "late.mp4", "same-time-b.mov"]
    assert result.new_watermark == parse_rfc3339("2024-05-01T10:05:00Z")


@pytest.mark.asyncio
async def test_items_at_or_before_watermark_are_not_returned(drive, monkeypatch) -> None:
    drive.add_video("root", "f1", "new.mp4", "2024-05-01T10:00:01Z")
    drive.add_video("root", "f0", "boundary.mp4", "2024-05-01T10:00:00Z")
    drive.add_video("root", "old", "old.mp4", "2024-04-30T09:00:00Z")

    async def _list_everything(parent_ids, created_after):  # noqa: ARG001
        return list(drive.videos)

    monkeypatch.setattr(drive, "list_videos", _list_everything)
    result = await FolderScanner(drive).scan("root", WATERMARK)

    assert [i.id for i in result.items] == ["f1"]
    assert result.new_watermark == parse_rfc3339("2024-05-01T10:00:01Z")


@pytest.mark.asyncio
@pytest.mark.parametrize("ceiling_s", [60, 3600, 10800])
async def test_duration_ceiling_skips_item_but_advances_watermark(drive, ceiling_s) -> None:
    drive.add_video("root", "ok", "short.mp4", "2024-05-01T10:01:00Z", duration_ms=ceiling_s * 1000)
    drive.add_video("root", "long", "long.mp4", "2024-05-01T10:02:00Z", duration_ms=ceiling_s * 1000 + 1)

    scanner = FolderScanner(drive, max_duration_s=ceiling_s)
    result = await scanner.scan("root", WATERMARK)

    assert [i.id for i in result.items] == ["ok"]
    assert [i.id for i in result.skipped] == ["long"]
    assert result.new_watermark == parse_rfc3339("2024-05-01T10:02:00Z")

    # The next scan starts after the skipped item, so it is never retried.
    again = await scanner.scan("root", result.new_watermark)
    assert again.items == [] and again.skipped == []


@pytest.mark.asyncio
async def test_non_video_listing_is_filtered_but_counts_for_watermark(drive) -> None:
    drive.add_video("root", "doc", "notes.txt", "2024-05-01T10:03:00Z", mime_type="text/plain")
    drive.add_video("root", "vid", "clip.mkv", "2024-05-01T10:01:00Z", mime_type="application/octet-stream")

    result = await FolderScanner(drive).scan("root", WATERMARK)

    assert [i.id for i in result.items] == ["vid"]
    assert result.new_watermark == parse_rfc3339("2024-05-01T10:03:00Z")


@pytest.mark.asyncio
async def test_empty_scan_keeps_watermark(drive) -> None:
    result = await FolderScanner(drive).scan("root", WATERMARK)
    assert result.found == 0
    assert result.new_watermark == WATERMARK


@pytest.mark.asyncio
async def test_folder_cap_limits_walk(drive) -> None:
    for i in range(5):
        drive.add_folder("root", f"c{i}", f"child {i}")
        drive.add_folder(f"c{i}", f"g{i}", f"grandchild {i}")

    ids = await FolderScanner(drive, max_folders=4).collect_folder_ids("root")

    assert ids == ["root", "c0", "c1", "c2"]
