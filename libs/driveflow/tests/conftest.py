from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime
from typing import Any, BinaryIO

import pytest

from driveflow.config import DriveConfig, MailConfig, Settings, StorageConfig
from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.models.item import DriveItem, parse_rfc3339
from driveflow.pipeline.factory import build_pipeline
from driveflow.providers.drive.base import FOLDER_MIME, DriveClient
from driveflow.providers.llm.base import LLMProvider, Message
from driveflow.providers.mail.base import Mailer, MailMessage
from driveflow.providers.transcription.base import TranscriptionProvider, TranscriptionRequest
from driveflow.storage import LocalObjectStore

INPUT_BUCKET = "audio-input"
TRANSCRIPT_BUCKET = "transcripts"
ROOT_FOLDER = "root-folder"


class FakeRedis:
    def __init__(self) -> None:
        self._kv: dict[str, str] = {}
        self._lists: dict[str, list[str]] = defaultdict(list)
        self._zsets: dict[str, dict[str, float]] = defaultdict(dict)

    async def get(self, key: str) -> str | None:
        return self._kv.get(str(key))

    async def set(self, key: str, value: str, *, nx: bool = False, ex: int | None = None) -> bool | None:  # noqa: ARG002
        if nx and str(key) in self._kv:
            return None
        self._kv[str(key)] = str(value)
        return True

    async def delete(self, key: str) -> int:
        existed = str(key) in self._kv
        self._kv.pop(str(key), None)
        return 1 if existed else 0

    async def lpush(self, key: str, *values: str) -> int:
        lst = self._lists[str(key)]
        for v in values:
            lst.insert(0, str(v))
        return len(lst)

    async def brpop(self, key: str, timeout: int = 0) -> tuple[str, str] | None:  # noqa: ARG002
        lst = self._lists.get(str(key))
        if not lst:
            return None
        return str(key), lst.pop()

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self._zsets[str(key)]
        added = sum(1 for member in mapping if member not in zset)
        zset.update({str(m): float(s) for m, s in mapping.items()})
        return added

    async def zrangebyscore(self, key: str, min: float | str, max: float | str) -> list[str]:  # noqa: A002
        lo = float(min)
        hi = float(max)
        zset = self._zsets.get(str(key), {})
        return [m for m, s in sorted(zset.items(), key=lambda kv: kv[1]) if lo <= s <= hi]

    async def zrem(self, key: str, *members: str) -> int:
        zset = self._zsets.get(str(key), {})
        return sum(1 for m in members if zset.pop(str(m), None) is not None)

    def dump_delayed(self, key: str) -> list[tuple[dict[str, Any], float]]:
        zset = self._zsets.get(str(key), {})
        return [(json.loads(m), s) for m, s in sorted(zset.items(), key=lambda kv: kv[1])]

    async def aclose(self) -> None:
        return None

    def dump_queue(self, key: str) -> list[dict[str, Any]]:
        return [json.loads(x) for x in list(self._lists.get(str(key), []))]


class FakeDrive(DriveClient):
    """In-memory folder tree: folders, videos and small text files."""

    def __init__(self) -> None:
        self.folders: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.files: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.videos: list[DriveItem] = []
        self.contents: dict[str, bytes] = {}
        self.failing_downloads: set[str] = set()
        self.uploads: list[tuple[str, str, str]] = []
        self.trashed: list[str] = []
        self.list_video_calls = 0

    def add_folder(self, parent_id: str, folder_id: str, name: str) -> None:
        self.folders[parent_id].append(
            {"id": folder_id, "name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]}
        )

    def add_video(
        self,
        parent_id: str,
        file_id: str,
        name: str,
        created: str,
        *,
        size: int | None = None,
        duration_ms: int | None = None,
        content: bytes = b"\x00video-bytes",
        mime_type: str = "video/mp4",
    ) -> DriveItem:
        item = DriveItem(
            id=file_id,
            name=name,
            created_time=parse_rfc3339(created),
            mime_type=mime_type,
            size=size if size is not None else len(content),
            duration_ms=duration_ms,
            parent_id=parent_id,
        )
        self.videos.append(item)
        self.contents[file_id] = content
        return item

    def add_text_file(self, parent_id: str, file_id: str, name: str, text: str) -> None:
        self.files[parent_id].append(
            {"id": file_id, "name": name, "mimeType": "text/plain", "parents": [parent_id]}
        )
        self.contents[file_id] = text.encode("utf-8")

    async def list_child_folders(self, parent_ids: list[str]) -> list[dict[str, Any]]:
        return [f for p in parent_ids for f in self.folders.get(p, [])]

    async def list_videos(self, parent_ids: list[str], created_after: datetime) -> list[DriveItem]:
        self.list_video_calls += 1
        return [v for v in self.videos if v.parent_id in parent_ids and v.created_time > created_after]

    def download_to(self, file_id: str, sink: BinaryIO) -> int:
        if file_id in self.failing_downloads:
            raise ProviderError("fake_drive", f"download failed: {file_id}", error_code=ErrorCode.TRANSFER_FAILED)
        data = self.contents[file_id]
        sink.write(data)
        return len(data)

    async def find_file(self, parent_id: str, names: list[str], *, folder: bool = False) -> dict[str, Any] | None:
        children = self.folders.get(parent_id, []) if folder else self.files.get(parent_id, [])
        for name in names:
            for child in children:
                if child["name"] == name:
                    return child
        return None

    async def read_text(self, file: dict[str, Any]) -> str:
        return self.contents[str(file["id"])].decode("utf-8")

    async def upload_text(self, parent_id: str, name: str, text: str) -> str:
        self.uploads.append((parent_id, name, text))
        return f"uploaded-{len(self.uploads)}"

    async def trash_file(self, file_id: str) -> None:
        self.trashed.append(file_id)


class FakeTranscriber(TranscriptionProvider):
    def __init__(self) -> None:
        self.requests: list[TranscriptionRequest] = []
        self.error: Exception | None = None
        self.closed = False

    async def submit(self, request: TranscriptionRequest) -> str:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return f"projects/p/locations/us/operations/{len(self.requests)}"

    async def close(self) -> None:
        self.closed = True


class FakeLLM(LLMProvider):
    provider = "fake"

    def __init__(self, owner: "FakeLLMFactory", model: str) -> None:
        self.owner = owner
        self.model = model

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,  # noqa: ARG002
    ) -> str:
        self.owner.calls.append((self.model, [m.content for m in messages]))
        if self.owner.error is not None:
            raise self.owner.error
        return self.owner.reply

    async def close(self) -> None:
        self.owner.closed += 1


class FakeLLMFactory:
    def __init__(self) -> None:
        self.reply = "Key points: the demo went well."
        self.error: Exception | None = None
        self.calls: list[tuple[str, list[str]]] = []
        self.models: list[str] = []
        self.closed = 0

    def __call__(self, model_id: str) -> LLMProvider:
        self.models.append(model_id)
        return FakeLLM(self, model_id)


class FakeMailer(Mailer):
    def __init__(self) -> None:
        self.sent: list[MailMessage] = []
        self.enabled = True

    async def send(self, message: MailMessage) -> bool:
        self.sent.append(message)
        return self.enabled


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        log_dir=str(tmp_path / "logs"),
        storage=StorageConfig(
            backend="local",
            local_dir=str(tmp_path / "buckets"),
            input_bucket=INPUT_BUCKET,
            transcript_bucket=TRANSCRIPT_BUCKET,
        ),
        drive=DriveConfig(folder_id=ROOT_FOLDER, large_file_bytes=1000),
        mail=MailConfig(notify_on_start=False),
    )


@pytest.fixture()
def store(settings: Settings) -> LocalObjectStore:
    return LocalObjectStore(settings.storage.local_dir)


@pytest.fixture()
def drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture()
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture()
def llm() -> FakeLLMFactory:
    return FakeLLMFactory()


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def pipeline(settings, redis, store, drive, transcriber, mailer, llm):
    return build_pipeline(
        settings,
        redis=redis,
        store=store,
        drive=drive,
        transcription_provider=transcriber,
        mailer=mailer,
        llm_factory=llm,
    )


def _speech_segment(text: str, start: float, end: float) -> dict[str, Any]:
    words = text.split()
    step = (end - start) / max(1, len(words))
    timed = []
    for i, word in enumerate(words):
        w_end = end if i == len(words) - 1 else start + (i + 1) * step
        timed.append({"startTime": f"{start + i * step}s", "endTime": f"{w_end}s", "word": word})
    return {"alternatives": [{"transcript": text, "confidence": 0.92, "words": timed}]}


@pytest.fixture()
def make_output():
    """Build an engine output record from `(text, start_s, end_s)` segments."""

    def _make(*segments: tuple[str, float, float]) -> dict[str, Any]:
        return {
            "annotationResults": [
                {
                    "inputUri": "/audio-input/video",
                    "speechTranscriptions": [_speech_segment(*s) for s in segments],
                }
            ]
        }

    return _make
