"""Layered prompt/model resolution: central override > Drive folder convention > none."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from driveflow.providers.drive.base import DriveClient
from driveflow.services.settings_store import AnalysisSettingsStore
from driveflow.utils.naming import folder_id_candidates

logger = logging.getLogger(__name__)

SOURCE_OVERRIDE = "override"
SOURCE_FOLDER = "folder"


@dataclass(frozen=True)
class PromptResolution:
    prompt: str | None
    source: str | None = None  # "override" | "folder:<path>" | None

    @property
    def found(self) -> bool:
        return bool(self.prompt)


class ConfigurationResolver:
    """Resolves the active analysis prompt and model id.

    Drive errors during the folder lookup propagate; callers treat them as
    transient upstream failures.
    """

    def __init__(
        self,
        settings_store: AnalysisSettingsStore,
        *,
        default_model: str,
        drive: DriveClient | None = None,
        root_folder_id: str | None = None,
        folder_names: list[str] | None = None,
        file_names: list[str] | None = None,
    ) -> None:
        self.settings_store = settings_store
        self.default_model = default_model
        self.drive = drive
        self.root_folder_id = str(root_folder_id or "").strip()
        self.folder_names = list(folder_names or [])
        self.file_names = list(file_names or [])

    async def _read_candidate(self, parent_id: str) -> str | None:
        if self.drive is None:
            return None
        file =await self.drive.find_file(parent_id, self.file_names)
        if file is None:
            return None
        text = (await self.drive.read_text(file)).strip()
        if not text:
            logger.info("prompt file empty, ignoring (file_id=%s, name=%s)", file.get("id"), file.get("name"))
            return None
        return text

    async def _resolve_from_drive(self) -> PromptResolution:
        if self.drive is None or not self.root_folder_id or not self.file_names:
            return PromptResolution(None)

        for root_id in folder_id_candidates(self.root_folder_id):
            for folder_name in self.folder_names:
                folder = await self.drive.find_file(root_id, [folder_name], folder=True)
                if folder is None:
                    continue
                text = await self._read_candidate(str(folder["id"]))
                if text:
                    return PromptResolution(text, f"{SOURCE_FOLDER}:{folder_name}")
            text = await self._read_candidate(root_id)
            if text:
                return PromptResolution(text, f"{SOURCE_FOLDER}:/")
        return PromptResolution(None)

    async def resolve_prompt(self) -> PromptResolution:
        override = await self.settings_store.get_prompt()
        if override:
            resolution = PromptResolution(override, SOURCE_OVERRIDE)
        else:
            resolution = await self._resolve_from_drive()
        logger.info(
            "prompt resolved (source=%s, chars=%s)",
            resolution.source,
            len(resolution.prompt) if resolution.prompt else 0,
        )
        return resolution

    async def resolve_model(self) -> str:
        return await self.settings_store.get_model() or self.default_model
