"""Storage event ingress: bucket notifications pushed over HTTP."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from driveflow.exceptions import InvalidPayloadError
from driveflow.models.events import ObjectEvent
from driveflow.pipeline.factory import Pipeline

from routes._deps import get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/storage")
async def storage_event(
    payload: Any = Body(...),
    pipeline: Pipeline = Depends(get_pipeline),
) -> dict:
    try:
        events = ObjectEvent.parse_payload(payload)
    except InvalidPayloadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    results: list[dict[str, str]] = []
    for event in events:
        try:
            outcome = await pipeline.dispatcher.dispatch(event)
        except Exception as exc:
            # 5xx makes the pusher redeliver.
            logger.exception("storage event failed (bucket=%s, name=%s)", event.bucket, event.name)
            raise HTTPException(status_code=500, detail=f"{event.name}: {exc}") from exc
        results.append({"bucket": event.bucket, "name": event.name, "outcome": outcome.value})
    return {"results": results}
