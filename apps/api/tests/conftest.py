from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from driveflow.config import DashboardConfig, DriveConfig, MailConfig, Settings, StorageConfig
from driveflow.models.item import DriveItem
from driveflow.pipeline.factory import build_pipeline
from driveflow.providers.drive.base import DriveClient
from driveflow.providers.llm.base import LLMProvider, Message
from driveflow.providers.mail.base import Mailer, MailMessage
from driveflow.providers.transcription.base import TranscriptionProvider, TranscriptionRequest
from driveflow.storage import LocalObjectStore

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

INPUT_BUCKET = "audio-input"
TRANSCRIPT_BUCKET = "transcripts"
DASHBOARD_PASSWORD = "s3cret"


class EmptyDrive(DriveClient):
    async def list_child_folders(self, parent_ids: list[str]) -> list[dict[str, Any]]:  # noqa: ARG002
        return []

    async def list_videos(self, parent_ids: list[str], created_after: datetime) -> list[DriveItem]:  # noqa: ARG002
        return []

    def download_to(self, file_id: str, sink: BinaryIO) -> int:  # noqa: ARG002
        raise FileNotFoundError(file_id)

    async def find_file(self, parent_id: str, names: list[str], *, folder: bool = False) -> dict[str, Any] | None:  # noqa: ARG002
        return None

    async def read_text(self, file: dict[str, Any]) -> str:  # noqa: ARG002
        return ""

    async def upload_text(self, parent_id: str, name: str, text: str) -> str:  # noqa: ARG002
        return "uploaded"

    async def trash_file(self, file_id: str) -> None:  # noqa: ARG002
        return None


class RecordingTranscriber(TranscriptionProvider):
    def __init__(self) -> None:
        self.requests: list[TranscriptionRequest] = []
        self.error: Exception | None = None

    async def submit(self, request: TranscriptionRequest) -> str:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return f"operations/{len(self.requests)}"


class EchoLLM(LLMProvider):
    provider = "echo"

    async def complete(self, messages: list[Message], temperature: float = 0.7, max_tokens: int | None = None) -> str:  # noqa: ARG002
        return "analysis"


class RecordingMailer(Mailer):
    def __init__(self) -> None:
        self.sent: list[MailMessage] = []

    async def send(self, message: MailMessage) -> bool:
        self.sent.append(message)
        return True


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
        drive=DriveConfig(folder_id=""),
        mail=MailConfig(notify_on_start=False),
        dashboard=DashboardConfig(password=DASHBOARD_PASSWORD),
    )


@pytest.fixture()
def store(settings: Settings) -> LocalObjectStore:
    return LocalObjectStore(settings.storage.local_dir)


@pytest.fixture()
def transcriber() -> RecordingTranscriber:
    return RecordingTranscriber()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def seed(store: LocalObjectStore):
    """Write objects synchronously from a test body."""

    def _seed(bucket: str, name: str, data: bytes = b"x", **kwargs: Any) -> None:
        asyncio.run(store.put(bucket, name, data, **kwargs))

    return _seed


@pytest.fixture()
def app(settings: Settings, store, transcriber, mailer) -> FastAPI:
    from routes.dashboard import router as dashboard_router
    from routes.events import router as events_router
    from routes.health import router as health_router

    test_app = FastAPI()
    test_app.state.settings = settings
    test_app.state.pipeline = build_pipeline(
        settings,
        store=store,
        drive=EmptyDrive(),
        transcription_provider=transcriber,
        mailer=mailer,
        llm_factory=lambda _model: EchoLLM(),
    )
    test_app.include_router(health_router)
    test_app.include_router(events_router)
    test_app.include_router(dashboard_router)
    return test_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
