"""Analysis & notification stage: finished transcription -> artifacts -> e-mail -> cleanup."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from driveflow.exceptions import InvalidPayloadError
from driveflow.formatters.report import (
    NotificationState,
    compose_notification,
    render_analysis_record,
    render_insufficient_record,
    render_transcript_record,
)
from driveflow.formatters.transcript import count_words, format_transcript, is_sufficient
from driveflow.models.events import ObjectEvent, StageOutcome
from driveflow.models.item import NOTIFICATION_SENT, ORIGINAL_ID, PARENT_FOLDER_ID, to_rfc3339, utcnow
from driveflow.models.transcription import TranscriptionOutput, parse_transcription_output
from driveflow.providers.drive.base import DriveClient
from driveflow.providers.llm.base import LLMProvider, Message
from driveflow.providers.mail.base import Mailer
from driveflow.services.prompt_resolver import ConfigurationResolver
from driveflow.stages.base import EventStage
from driveflow.storage.object_store import ObjectInfo, ObjectStore
from driveflow.utils.naming import (
    analysis_record_name,
    sanitize_folder_id,
    transcript_record_name,
    video_name_from_output,
)

logger = logging.getLogger(__name__)

ANALYSIS_SEPARATOR = "\n\n---\n\nTRANSCRIPT:\n\n"

LLMFactory = Callable[[str], LLMProvider]


def build_analysis_request(prompt: str, transcript: str) -> str:
    return f"{prompt}{ANALYSIS_SEPARATOR}{transcript}"


def analysis_error_text(exc: BaseException) -> str:
    return f"[Error during AI Analysis: {exc}]"


@dataclass
class _Artifacts:
    state: NotificationState
    transcript_record: str
    transcript: str | None
    analysis_record: str | None = None
    analysis: str | None = None


class AnalysisNotificationStage(EventStage):
    name = "notification"

    def __init__(
        self,
        store: ObjectStore,
        resolver: ConfigurationResolver,
        llm_factory: LLMFactory,
        mailer: Mailer,
        *,
        transcript_bucket: str,
        input_bucket: str,
        output_suffix: str = ".json",
        config_prefix: str = "_config/",
        min_words: int = 10,
        temperature: float = 0.4,
        max_output_tokens: int | None = None,
        preview_chars: int = 2000,
        drive: DriveClient | None = None,
        upload_artifacts: bool = False,
        trash_source: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.llm_factory = llm_factory
        self.mailer = mailer
        self.transcript_bucket = transcript_bucket
        self.input_bucket = input_bucket
        self.output_suffix = output_suffix
        self.config_prefix = config_prefix
        self.min_words = int(min_words)
        self.temperature = float(temperature)
        self.max_output_tokens = max_output_tokens
        self.preview_chars = int(preview_chars)
        self.drive = drive
        self.upload_artifacts = upload_artifacts
        self.trash_source = trash_source
        self.clock = clock

    def accepts(self, event: ObjectEvent) -> bool:
        return (
            event.bucket == self.transcript_bucket
            and event.name.endswith(self.output_suffix)
            and not event.name.startswith(self.config_prefix)
        )

    async def _analyze(self, model: str, prompt: str, transcript: str) -> str:
        """One model call; a failed call becomes an inline error string.

        Building the provider is not covered: a missing credential raises
        `ConfigurationError` and the event is redelivered once fixed.
        """
        provider = self.llm_factory(model)
        try:
            return await provider.complete(
                [Message(role="user", content=build_analysis_request(prompt, transcript))],
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
            )
        except Exception as exc:
            logger.warning("ai analysis failed (model=%s): %s", model, exc)
            return analysis_error_text(exc)
        finally:
            await provider.close()

    async def _build_artifacts(self, video_name: str, output: TranscriptionOutput) -> _Artifacts:
        transcript = format_transcript(output)
        words = count_words(transcript)
        duration = output.duration_seconds
        processed_at = self.clock()

        if not is_sufficient(transcript, self.min_words):
            logger.info(
                "transcript insufficient (name=%s, words=%d, min_words=%d)", video_name, words, self.min_words
            )
            record = render_insufficient_record(
                video_name,
                transcript,
                word_count=words,
                min_words=self.min_words,
                duration_s=duration,
                processed_at=processed_at,
            )
            return _Artifacts(NotificationState.INSUFFICIENT, record, transcript)

        transcript_record = render_transcript_record(
            video_name, transcript, duration_s=duration, processed_at=processed_at
        )
        resolution = await self.resolver.resolve_prompt()
        if not resolution.found:
            logger.info("no analysis prompt configured, skipping analysis (name=%s)", video_name)
            return _Artifacts(NotificationState.TRANSCRIPT_ONLY, transcript_record, transcript)

        model = await self.resolver.resolve_model()
        analysis = await self._analyze(model, str(resolution.prompt), transcript)
        analysis_record = render_analysis_record(
            video_name, analysis, model=model, duration_s=duration, processed_at=processed_at
        )
        return _Artifacts(
            NotificationState.ANALYZED,
            transcript_record,
            transcript,
            analysis_record=analysis_record,
            analysis=analysis,
        )

    async def _upload_to_drive(self, video_name: str, source: ObjectInfo | None, artifacts: _Artifacts) -> None:
        parent = sanitize_folder_id(source.meta(PARENT_FOLDER_ID) or "") if source is not None else ""
        if self.drive is None or not parent:
            logger.info("drive upload skipped, no parent folder known (name=%s)", video_name)
            return
        try:
            await self.drive.upload_text(parent, transcript_record_name(video_name), artifacts.transcript_record)
            if artifacts.analysis_record is not None:
                await self.drive.upload_text(parent, analysis_record_name(video_name), artifacts.analysis_record)
        except Exception as exc:
            logger.warning("drive upload failed (name=%s, parent=%s): %s", video_name, parent, exc)

    async def _cleanup(self, video_name: str, source: ObjectInfo | None) -> None:
        try:
            await self.store.delete(self.input_bucket, video_name)
            logger.info("source record deleted (bucket=%s, name=%s)", self.input_bucket, video_name)
        except Exception as exc:
            logger.warning("source cleanup failed (bucket=%s, name=%s): %s", self.input_bucket, video_name, exc)

        original_id = source.meta(ORIGINAL_ID) if source is not None else None
        if not self.trash_source or self.drive is None or not original_id:
            return
        try:
            await self.drive.trash_file(original_id)
            logger.info("drive original trashed (name=%s, file_id=%s)", video_name, original_id)
        except Exception as exc:
            logger.warning("drive trash failed (name=%s, file_id=%s): %s", video_name, original_id, exc)

    async def handle(self, event: ObjectEvent) -> StageOutcome:
        if not self.accepts(event):
            logger.info("skipping non-output record (bucket=%s, name=%s)", event.bucket, event.name)
            return StageOutcome.IGNORED

        info = await self.store.head(event.bucket, event.name)
        if info is None:
            logger.warning("output record missing (bucket=%s, name=%s)", event.bucket, event.name)
            return StageOutcome.MISSING
        if info.meta(NOTIFICATION_SENT):
            logger.info("notification already sent (name=%s, sent=%s)", event.name, info.meta(NOTIFICATION_SENT))
            return StageOutcome.DUPLICATE

        video_name = video_name_from_output(event.name, self.output_suffix)
        try:
            raw = await self.store.get_json(event.bucket, event.name)
            output = parse_transcription_output(raw, name=event.name)
        except (InvalidPayloadError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("rejecting malformed transcription output (name=%s): %s", event.name, exc)
            return StageOutcome.REJECTED

        artifacts = await self._build_artifacts(video_name, output)
        await self.store.put_text(
            self.transcript_bucket, transcript_record_name(video_name), artifacts.transcript_record
        )
        if artifacts.analysis_record is not None:
            await self.store.put_text(
                self.transcript_bucket, analysis_record_name(video_name), artifacts.analysis_record
            )

        message = compose_notification(
            artifacts.state,
            video_name,
            transcript_record=artifacts.transcript_record,
            analysis_record=artifacts.analysis_record,
            analysis=artifacts.analysis,
            transcript=artifacts.transcript,
            preview_chars=self.preview_chars,
        )
        delivered = await self.mailer.send(message)
        await self.store.set_metadata(event.bucket, event.name, {NOTIFICATION_SENT: to_rfc3339(self.clock())})
        logger.info(
            "notification done (name=%s, state=%s, delivered=%s, attachments=%d)",
            video_name,
            artifacts.state.value,
            delivered,
            len(message.attachments),
        )

        # Drive uploads create new files, so they only run once the marker is set.
        source: ObjectInfo | None = None
        if self.upload_artifacts or self.trash_source:
            source = await self.store.head(self.input_bucket, video_name)
        if self.upload_artifacts:
            await self._upload_to_drive(video_name, source, artifacts)
        await self._cleanup(video_name, source)
        if artifacts.state is NotificationState.INSUFFICIENT:
            return StageOutcome.NOTIFIED_INSUFFICIENT
        return StageOutcome.NOTIFIED
