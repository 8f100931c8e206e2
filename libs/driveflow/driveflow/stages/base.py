"""Stage abstractions for event-triggered pipeline steps."""

from __future__ import annotations

from abc import ABC, abstractmethod

from driveflow.models.events import ObjectEvent, StageOutcome


class EventStage(ABC):
    """One stateless handler for one kind of "record created" event."""

    name: str

    @abstractmethod
    def accepts(self, event: ObjectEvent) -> bool:
        """Whether the event names a record this stage processes."""

    @abstractmethod
    async def handle(self, event: ObjectEvent) -> StageOutcome:
        """Process one event; safe to call again for the same event."""
