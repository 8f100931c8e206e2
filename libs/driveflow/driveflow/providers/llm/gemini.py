"""Gemini analysis provider (google-generativeai SDK, API key auth)."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.providers.llm.base import LLMProvider, Message

logger = logging.getLogger(__name__)

# genai.configure() mutates module-global state.
_GENAI_LOCK = threading.Lock()


def build_contents(messages: list[Message]) -> tuple[str | None, list[dict[str, Any]]]:
    """Split out system text; map the rest to Gemini `{role, parts}` turns."""
    system: list[str] = []
    contents: list[dict[str, Any]] = []
    for m in messages:
        role = str(m.role or "").strip().lower()
        if role == "system":
            if m.content:
                system.append(str(m.content))
            continue
        contents.append(
            {"role": "model" if role in {"assistant", "model"} else "user", "parts": [{"text": str(m.content)}]}
        )
    return ("\n\n".join(system).strip() or None), contents


def extract_candidate_text(response: object) -> str:
    """Concatenate every text part of the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(str(getattr(part, "text", "") or "") for part in parts).strip()


class GeminiProvider(LLMProvider):
    provider = "gemini"

    def __init__(self, api_key: str, model: str) -> None:
        self.api_key = str(api_key or "")
        self.model = str(model or "").strip()
        if not self.api_key:
            raise ValueError("GeminiProvider requires api_key")
        if not self.model:
            raise ValueError("GeminiProvider requires model")

    def _generate_sync(
        self,
        contents: list[dict[str, Any]],
        *,
        system_instruction: str | None,
        generation_config: dict[str, Any],
    ) -> object:
        import google.generativeai as genai

        with _GENAI_LOCK:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(model_name=self.model, system_instruction=system_instruction)
        return model.generate_content(contents, generation_config=genai.GenerationConfig(**generation_config))

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        system_instruction, contents = build_contents(messages)
        generation_config: dict[str, Any] = {"temperature": float(temperature)}
        if max_tokens is not None:
            generation_config["max_output_tokens"] = int(max_tokens)

        started = time.perf_counter()
        try:
            response = await asyncio.to_thread(
                self._generate_sync,
                contents,
                system_instruction=system_instruction,
                generation_config=generation_config,
            )
        except Exception as exc:
            logger.warning("llm request failed (provider=%s, model=%s): %s", self.provider, self.model, exc)
            raise ProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_FAILED) from exc

        text = extract_candidate_text(response)
        logger.info(
            "llm call (provider=%s, model=%s, latency_ms=%s, chars=%s)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
            len(text),
        )
        if not text:
            raise ProviderError(
                self.provider, "No text content in Gemini response", error_code=ErrorCode.LLM_EMPTY_RESPONSE
            )
        return text
