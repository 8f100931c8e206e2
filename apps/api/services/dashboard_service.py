"""Dashboard listings and analysis settings backed by working storage."""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any

from driveflow.config import Settings
from driveflow.providers.llm.catalog import AVAILABLE_MODELS, is_known_model
from driveflow.services.settings_store import AnalysisSettingsStore
from driveflow.storage import ObjectInfo, ObjectStore
from driveflow.utils.naming import TRANSCRIPT_SUFFIX, analysis_record_name

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_size(num_bytes: int | None) -> str:
    size = int(num_bytes or 0)
    if size <= 0:
        return "0 Bytes"
    exp = min(int(math.floor(math.log(size, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size / (1024**exp), 2)
    return f"{value:g} {_SIZE_UNITS[exp]}"


def _newest_first(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(items, key=lambda i: i["_updated"] or _EPOCH, reverse=True)


def _created(info: ObjectInfo) -> str | None:
    return info.updated.isoformat() if info.updated else None


class InvalidModelError(ValueError):
    pass


class DashboardService:
    def __init__(self, store: ObjectStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.input_bucket = settings.storage.input_bucket
        self.transcript_bucket = settings.storage.transcript_bucket
        self.config_prefix = settings.storage.config_prefix
        self.output_suffix = settings.transcription.output_suffix
        self.settings_store = AnalysisSettingsStore(
            store, self.transcript_bucket, prefix=self.config_prefix
        )

    def _completed(self, transcript_objects: list[ObjectInfo]) -> list[dict[str, Any]]:
        names = {o.name for o in transcript_objects}
        out: list[dict[str, Any]] = []
        for obj in transcript_objects:
            if not obj.name.endswith(TRANSCRIPT_SUFFIX) or obj.name.startswith(self.config_prefix):
                continue
            video_name = obj.name[: -len(TRANSCRIPT_SUFFIX)]
            analysis_name = analysis_record_name(video_name)
            json_name = f"{video_name}{self.output_suffix}"
            out.append(
                {
                    "name": obj.name,
                    "video_name": video_name,
                    "created": _created(obj),
                    "size": format_size(obj.size),
                    "transcript_uri": self.store.uri(self.transcript_bucket, obj.name),
                    "analysis_uri": self.store.uri(self.transcript_bucket, analysis_name)
                    if analysis_name in names
                    else None,
                    "json_uri": self.store.uri(self.transcript_bucket, json_name)
                    if json_name in names
                    else None,
                    "_updated": obj.updated,
                }
            )
        return _newest_first(out)

    def _pending(self, input_objects: list[ObjectInfo], completed: set[str]) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for obj in input_objects:
            if obj.name == self.settings.storage.state_file_name or obj.name.startswith("_"):
                continue
            if obj.name in completed:
                continue
            out.append(
                {
                    "name": obj.name,
                    "created": _created(obj),
                    "size": format_size(obj.size),
                    "_updated": obj.updated,
                }
            )
        return _newest_first(out)

    async def snapshot(self) -> dict[str, Any]:
        prompt, model, transcript_objects, input_objects = await asyncio.gather(
            self.settings_store.get_prompt(),
            self.settings_store.get_model(),
            self.store.list(self.transcript_bucket),
            self.store.list(self.input_bucket),
        )
        completed = self._completed(transcript_objects)
        pending = self._pending(input_objects, {c["video_name"] for c in completed})
        for row in completed + pending:
            row.pop("_updated", None)
        return {
            "settings": {
                "prompt": prompt or "",
                "model": model or self.settings.analysis.default_model,
                "models": [
                    {"id": m.id, "name": m.name, "description": m.description} for m in AVAILABLE_MODELS
                ],
            },
            "completed": completed,
            "pending": pending,
            "stats": {
                "completed": len(completed),
                "pending": len(pending),
                "analyzed": sum(1 for c in completed if c["analysis_uri"]),
            },
        }

    async def save_settings(self, *, prompt: str, model: str) -> None:
        model = str(model or "").strip() or self.settings.analysis.default_model
        if not is_known_model(model):
            raise InvalidModelError(f"Unknown model: {model}")
        await self.settings_store.save(prompt=str(prompt or ""), model=model)
