"""Pipeline wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from driveflow.config import Settings
from driveflow.pipeline.dispatcher import EventDispatcher
from driveflow.pipeline.poller import DrivePoller
from driveflow.providers.drive.base import DriveClient
from driveflow.providers.google_auth import GoogleCredentials
from driveflow.providers.mail.base import Mailer
from driveflow.providers.registry import (
    get_drive_client,
    get_google_credentials,
    get_llm_provider,
    get_mailer,
    get_transcription_provider,
)
from driveflow.providers.transcription.base import TranscriptionProvider
from driveflow.services.event_bus import EventBus
from driveflow.services.prompt_resolver import ConfigurationResolver
from driveflow.services.settings_store import AnalysisSettingsStore
from driveflow.services.watermark import WatermarkStore
from driveflow.stages.ingest import Ingestor
from driveflow.stages.notification import AnalysisNotificationStage, LLMFactory
from driveflow.stages.scanner import FolderScanner
from driveflow.stages.transcription import TranscriptionStage
from driveflow.storage import ObjectStore, get_object_store


@dataclass
class Pipeline:
    settings: Settings
    store: ObjectStore
    drive: DriveClient
    bus: EventBus | None
    settings_store: AnalysisSettingsStore
    watermark: WatermarkStore
    ingestor: Ingestor
    poller: DrivePoller
    transcription: TranscriptionStage
    notification: AnalysisNotificationStage
    dispatcher: EventDispatcher

    async def close(self) -> None:
        await self.transcription.provider.close()


def build_pipeline(
    settings: Settings,
    *,
    redis: Any | None = None,
    store: ObjectStore | None = None,
    drive: DriveClient | None = None,
    credentials: GoogleCredentials | None = None,
    transcription_provider: TranscriptionProvider | None = None,
    mailer: Mailer | None = None,
    llm_factory: LLMFactory | None = None,
) -> Pipeline:
    """Build every stage from settings; explicit arguments replace the defaults."""
    storage = settings.storage
    settings.require(
        STORAGE_INPUT_BUCKET=storage.input_bucket,
        STORAGE_TRANSCRIPT_BUCKET=storage.transcript_bucket,
    )

    store = store or get_object_store(settings)
    if credentials is None and (drive is None or transcription_provider is None or llm_factory is None):
        credentials = get_google_credentials(settings)
    drive = drive or get_drive_client(settings, credentials)
    transcription_provider = transcription_provider or get_transcription_provider(settings, credentials)
    mailer = mailer or get_mailer(settings)
    if llm_factory is None:
        def llm_factory(model_id: str):
            return get_llm_provider(model_id, settings, credentials)

    bus = None
    if redis is not None:
        bus = EventBus(
            redis,
            event_queue=settings.worker.event_queue,
            delayed_queue=settings.worker.delayed_event_queue,
            transfer_queue=settings.worker.transfer_queue,
            transfer_ttl_s=int(settings.worker.transfer_timeout_s),
        )

    settings_store = AnalysisSettingsStore(store, storage.transcript_bucket, prefix=storage.config_prefix)
    watermark = WatermarkStore(
        store,
        storage.input_bucket,
        name=storage.state_file_name,
        default_lookback_s=settings.drive.default_lookback_s,
    )
    scanner = FolderScanner(
        drive,
        max_duration_s=settings.drive.max_duration_s,
        max_folders=settings.drive.max_folders,
        video_extensions=settings.drive.video_extensions,
    )
    ingestor = Ingestor(
        store,
        drive,
        bucket=storage.input_bucket,
        large_file_bytes=settings.drive.large_file_bytes,
        bus=bus,
    )
    poller = DrivePoller(scanner, ingestor, watermark, root_folder_id=settings.drive.folder_id)

    transcription = TranscriptionStage(
        store,
        transcription_provider,
        input_bucket=storage.input_bucket,
        transcript_bucket=storage.transcript_bucket,
        output_suffix=settings.transcription.output_suffix,
        language_code=settings.transcription.language_code,
        enable_automatic_punctuation=settings.transcription.enable_automatic_punctuation,
        mailer=mailer,
        notify_on_start=settings.mail.notify_on_start,
        video_extensions=settings.drive.video_extensions,
    )
    resolver = ConfigurationResolver(
        settings_store,
        default_model=settings.analysis.default_model,
        drive=drive if settings.drive.folder_id else None,
        root_folder_id=settings.drive.folder_id,
        folder_names=settings.drive.prompt_folder_names,
        file_names=settings.drive.prompt_file_names,
    )
    notification = AnalysisNotificationStage(
        store,
        resolver,
        llm_factory,
        mailer,
        transcript_bucket=storage.transcript_bucket,
        input_bucket=storage.input_bucket,
        output_suffix=settings.transcription.output_suffix,
        config_prefix=storage.config_prefix,
        min_words=settings.analysis.min_words,
        temperature=settings.analysis.temperature,
        max_output_tokens=settings.analysis.max_output_tokens,
        preview_chars=settings.mail.preview_chars,
        drive=drive,
        upload_artifacts=settings.drive.upload_artifacts,
        trash_source=settings.drive.trash_source,
    )
    dispatcher = EventDispatcher(
        transcription,
        notification,
        input_bucket=storage.input_bucket,
        transcript_bucket=storage.transcript_bucket,
    )
    return Pipeline(
        settings=settings,
        store=store,
        drive=drive,
        bus=bus,
        settings_store=settings_store,
        watermark=watermark,
        ingestor=ingestor,
        poller=poller,
        transcription=transcription,
        notification=notification,
        dispatcher=dispatcher,
    )
