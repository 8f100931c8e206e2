from __future__ import annotations

from pathlib import Path

import pytest

from driveflow.storage import LocalObjectStore


@pytest.mark.asyncio
async def test_put_head_get_and_metadata_merge(tmp_path: Path) -> None:
    store = LocalObjectStore(str(tmp_path))
    uri = await store.put("bkt", "demo.mp4", b"abc", metadata={"originalId": "f1"}, content_type="video/mp4")
    assert uri == "file://bkt/demo.mp4"

    info = await store.head("bkt", "demo.mp4")
    assert info is not None
    assert info.size == 3
    assert info.content_type == "video/mp4"
    assert info.meta("originalId") == "f1"
    assert info.meta("originalid") == "f1"
    assert info.meta("transcriptionStarted") is None

    await store.set_metadata("bkt", "demo.mp4", {"transcriptionStarted": "2024-01-01T00:00:00.000Z"})
    info = await store.head("bkt", "demo.mp4")
    assert info.metadata == {"originalId": "f1", "transcriptionStarted": "2024-01-01T00:00:00.000Z"}
    assert await store.get("bkt", "demo.mp4") == b"abc"


@pytest.mark.asyncio
async def test_missing_objects(tmp_path: Path) -> None:
    store = LocalObjectStore(str(tmp_path))
    assert await store.head("bkt", "nope") is None
    with pytest.raises(FileNotFoundError):
        await store.get("bkt", "nope")
    with pytest.raises(FileNotFoundError):
        await store.delete("bkt", "nope")
    with pytest.raises(FileNotFoundError):
        await store.set_metadata("bkt", "nope", {"a": "b"})
    assert await store.list("bkt") == []


@pytest.mark.asyncio
async def test_writer_discards_partial_object_on_error(tmp_path: Path) -> None:
    store = LocalObjectStore(str(tmp_path))
    with pytest.raises(RuntimeError):
        with store.open_writer("bkt", "big.mp4") as sink:
            sink.write(b"partial")
            raise RuntimeError("stream broke")
    assert await store.head("bkt", "big.mp4") is None
    assert list((tmp_path / ".tmp").iterdir()) == []


@pytest.mark.asyncio
async def test_overwrite_replaces_metadata_and_list_filters_prefix(tmp_path: Path) -> None:
    store = LocalObjectStore(str(tmp_path))
    await store.put("bkt", "a.mp4", b"1", metadata={"transcriptionStarted": "x"})
    await store.put("bkt", "a.mp4", b"22", metadata={"originalId": "f2"})
    await store.put_text("bkt", "_config/prompt.txt", "Summarize.")
    await store.put_json("bkt", "state.json", {"lastTime": "t"})

    info = await store.head("bkt", "a.mp4")
    assert info.metadata == {"originalId": "f2"}
    assert await store.get_text("bkt", "_config/prompt.txt") == "Summarize."
    assert await store.get_json("bkt", "state.json") == {"lastTime": "t"}
    assert [o.name for o in await store.list("bkt", "_config/")] == ["_config/prompt.txt"]
    assert sorted(o.name for o in await store.list("bkt")) == ["_config/prompt.txt", "a.mp4", "state.json"]

    await store.delete("bkt", "a.mp4")
    assert await store.head("bkt", "a.mp4") is None


@pytest.mark.asyncio
async def test_rejects_path_traversal(tmp_path: Path) -> None:
    store = LocalObjectStore(str(tmp_path))
    with pytest.raises(ValueError):
        await store.put("bkt", "../escape.txt", b"x")
