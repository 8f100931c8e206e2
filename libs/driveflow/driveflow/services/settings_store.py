"""Analysis prompt/model overrides stored as flat text records."""

from __future__ import annotations

import logging

from driveflow.exceptions import ConfigurationError
from driveflow.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

PROMPT_RECORD = "prompt.txt"
MODEL_RECORD = "model.txt"


class AnalysisSettingsStore:
    """Reads and writes `<prefix>prompt.txt` and `<prefix>model.txt`; last write wins."""

    def __init__(self, store: ObjectStore, bucket: str, *, prefix: str = "_config/") -> None:
        self.store = store
        self.bucket = bucket
        self.prefix = prefix if prefix.endswith("/") else f"{prefix}/"

    @property
    def prompt_name(self) -> str:
        return f"{self.prefix}{PROMPT_RECORD}"

    @property
    def model_name(self) -> str:
        return f"{self.prefix}{MODEL_RECORD}"

    async def _read(self, name: str) -> str | None:
        if await self.store.head(self.bucket, name) is None:
            return None
        try:
            text = (await self.store.get_text(self.bucket, name)).strip()
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"{self.bucket}/{name} is not valid UTF-8: {exc}") from exc
        return text or None

    async def get_prompt(self) -> str | None:
        return await self._read(self.prompt_name)

    async def get_model(self) -> str | None:
        return await self._read(self.model_name)

    async def save(self, *, prompt: str, model: str) -> None:
        await self.store.put_text(self.bucket, self.prompt_name, prompt)
        await self.store.put_text(self.bucket, self.model_name, model)
        logger.info(
            "analysis settings saved (bucket=%s, prompt_chars=%d, model=%s)",
            self.bucket,
            len(prompt),
            model,
        )
