"""Pipeline wiring: poll cycle, event dispatch and factory.

Keep imports lazy; `driveflow.pipeline.factory` pulls in every provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from driveflow.pipeline.dispatcher import EventDispatcher
    from driveflow.pipeline.factory import Pipeline, build_pipeline
    from driveflow.pipeline.poller import DrivePoller, PollReport

__all__ = ["DrivePoller", "EventDispatcher", "Pipeline", "PollReport", "build_pipeline"]


def __getattr__(name: str) -> Any:
    if name == "EventDispatcher":
        from driveflow.pipeline.dispatcher import EventDispatcher

        return EventDispatcher
    if name in {"DrivePoller", "PollReport"}:
        from driveflow.pipeline import poller

        return getattr(poller, name)
    if name in {"Pipeline", "build_pipeline"}:
        from driveflow.pipeline import factory

        return getattr(factory, name)
    raise AttributeError(name)
