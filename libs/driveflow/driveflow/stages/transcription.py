"""Transcription stage: submit one job per new Working Record."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from driveflow.exceptions import ProviderError
from driveflow.formatters.report import compose_started_notification
from driveflow.models.events import ObjectEvent, StageOutcome
from driveflow.models.item import TRANSCRIPTION_STARTED, to_rfc3339, utcnow
from driveflow.providers.mail.base import Mailer
from driveflow.providers.transcription.base import TranscriptionProvider, TranscriptionRequest
from driveflow.stages.base import EventStage
from driveflow.storage.object_store import ObjectStore
from driveflow.utils.naming import is_video_name, output_record_name

logger = logging.getLogger(__name__)


class TranscriptionStage(EventStage):
    """Submit, then mark, then (optionally) announce.

    The marker is written only after the engine accepted the job, so a crash
    in between leads to a resubmission rather than a lost item.
    """

    name = "transcription"

    def __init__(
        self,
        store: ObjectStore,
        provider: TranscriptionProvider,
        *,
        input_bucket: str,
        transcript_bucket: str,
        output_suffix: str = ".json",
        language_code: str = "en-US",
        enable_automatic_punctuation: bool = True,
        mailer: Mailer | None = None,
        notify_on_start: bool = False,
        video_extensions: list[str] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.provider = provider
        self.input_bucket = input_bucket
        self.transcript_bucket = transcript_bucket
        self.output_suffix = output_suffix
        self.language_code = language_code
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.mailer = mailer
        self.notify_on_start = notify_on_start
        self.video_extensions = set(video_extensions) if video_extensions else None
        self.clock = clock

    def accepts(self, event: ObjectEvent) -> bool:
        return event.bucket == self.input_bucket and is_video_name(event.name, self.video_extensions)

    def build_request(self, name: str) -> TranscriptionRequest:
        return TranscriptionRequest(
            input_uri=self.store.uri(self.input_bucket, name),
            output_uri=self.store.uri(self.transcript_bucket, output_record_name(name, self.output_suffix)),
            language_code=self.language_code,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )

    async def handle(self, event: ObjectEvent) -> StageOutcome:
        if not self.accepts(event):
            logger.info("skipping non-video record (bucket=%s, name=%s)", event.bucket, event.name)
            return StageOutcome.IGNORED

        info = await self.store.head(event.bucket, event.name)
        if info is None:
            logger.warning("working record missing (bucket=%s, name=%s)", event.bucket, event.name)
            return StageOutcome.MISSING
        if info.meta(TRANSCRIPTION_STARTED):
            logger.info(
                "transcription already started (name=%s, started=%s)",
                event.name,
                info.meta(TRANSCRIPTION_STARTED),
            )
            return StageOutcome.DUPLICATE

        request = self.build_request(event.name)
        try:
            operation = await self.provider.submit(request)
            await self.store.set_metadata(
                event.bucket, event.name, {TRANSCRIPTION_STARTED: to_rfc3339(self.clock())}
            )
        except Exception:
            logger.exception("transcription submit failed (name=%s, input=%s)", event.name, request.input_uri)
            raise

        logger.info(
            "transcription started (name=%s, operation=%s, output=%s)",
            event.name,
            operation,
            request.output_uri,
        )

        if self.notify_on_start and self.mailer is not None:
            try:
                await self.mailer.send(compose_started_notification(event.name))
            except ProviderError as exc:
                logger.warning("started notification failed (name=%s): %s", event.name, exc)
        return StageOutcome.SUBMITTED
