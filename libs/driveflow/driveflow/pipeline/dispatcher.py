"""Route storage events to the stage that owns the bucket."""

from __future__ import annotations

import logging

from driveflow.models.events import ObjectEvent, StageOutcome
from driveflow.stages.base import EventStage

logger = logging.getLogger(__name__)


class EventDispatcher:
    """input bucket -> transcription, transcript bucket -> analysis & notification."""

    def __init__(
        self,
        transcription: EventStage,
        notification: EventStage,
        *,
        input_bucket: str,
        transcript_bucket: str,
    ) -> None:
        self.routes: dict[str, EventStage] = {
            input_bucket: transcription,
            transcript_bucket: notification,
        }

    def stage_for(self, event: ObjectEvent) -> EventStage | None:
        return self.routes.get(event.bucket)

    async def dispatch(self, event: ObjectEvent) -> StageOutcome:
        stage = self.stage_for(event)
        if stage is None:
            logger.info("no stage for bucket (bucket=%s, name=%s)", event.bucket, event.name)
            return StageOutcome.IGNORED
        outcome = await stage.handle(event)
        logger.info(
            "event handled (stage=%s, bucket=%s, name=%s, attempt=%d, outcome=%s)",
            stage.name,
            event.bucket,
            event.name,
            event.attempt,
            outcome.value,
        )
        return outcome
