"""Scheduled Drive scan."""

from __future__ import annotations

import logging

from driveflow.pipeline.poller import DrivePoller, PollReport

logger = logging.getLogger(__name__)


async def run_scan(poller: DrivePoller) -> PollReport | None:
    """Run one poll cycle; failures are logged and retried on the next tick."""
    try:
        return await poller.run_once()
    except Exception:
        logger.exception("scan failed, will retry on next tick")
        return None
