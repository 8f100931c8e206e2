"""Claude on Vertex AI via the raw `rawPredict` endpoint (httpx)."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.providers._http import bearer_headers, format_http_error
from driveflow.providers.google_auth import GoogleCredentials
from driveflow.providers.llm.base import LLMProvider, Message

logger = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_VERSION = "vertex-2023-10-16"
DEFAULT_MAX_TOKENS = 8192


def _split_system_messages(messages: list[Message]) -> tuple[str | None, list[dict[str, str]]]:
    system_chunks: list[str] = []
    out: list[dict[str, str]] = []
    for m in messages:
        role = str(m.role or "").strip().lower()
        if role == "system":
            if m.content:
                system_chunks.append(str(m.content))
            continue
        if role not in {"user", "assistant"}:
            role = "user"
        out.append({"role": role, "content": str(m.content or "")})
    system = "\n\n".join(system_chunks).strip()
    return (system or None), out


def extract_text(payload: Any) -> str:
    """Concatenate the `text` of every `type == "text"` content block."""
    if not isinstance(payload, dict):
        return ""
    blocks = payload.get("content")
    if not isinstance(blocks, list):
        return ""
    return "".join(
        str(block.get("text") or "")
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text"
    ).strip()


class ClaudeVertexProvider(LLMProvider):
    """Anthropic models served from a Vertex AI region."""

    provider = "claude_vertex"

    def __init__(
        self,
        credentials: GoogleCredentials,
        *,
        project_id: str,
        region: str,
        model: str,
        anthropic_version: str = DEFAULT_ANTHROPIC_VERSION,
        timeout: float = 300.0,
    ) -> None:
        self.credentials = credentials
        self.project_id = str(project_id or "").strip()
        self.region = str(region or "").strip()
        self.model = str(model or "").strip()
        if not self.project_id or not self.region:
            raise ValueError("ClaudeVertexProvider requires project_id and region")
        if not self.model:
            raise ValueError("ClaudeVertexProvider requires model")
        self.anthropic_version = anthropic_version
        self.timeout = float(timeout)
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self.region}-aiplatform.googleapis.com/v1/projects/{self.project_id}"
            f"/locations/{self.region}/publishers/anthropic/models/{self.model}:rawPredict"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_body(self, messages: list[Message], *, temperature: float, max_tokens: int | None) -> dict[str, Any]:
        system, payload = _split_system_messages(messages)
        body: dict[str, Any] = {
            "anthropic_version": self.anthropic_version,
            "max_tokens": int(max_tokens or DEFAULT_MAX_TOKENS),
            "temperature": float(temperature),
            "messages": payload,
        }
        if system:
            body["system"] = system
        return body

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        client = await self._get_client()
        headers = await bearer_headers(self.credentials)
        body = self.build_body(messages, temperature=temperature, max_tokens=max_tokens)

        started = time.perf_counter()
        try:
            response = await client.post(self.endpoint, headers=headers, json=body)
        except httpx.HTTPError as exc:
            logger.warning("llm request failed (provider=%s, model=%s): %s", self.provider, self.model, exc)
            raise ProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_FAILED) from exc

        if response.status_code >= 400:
            message = format_http_error(response)
            logger.warning("llm request failed (provider=%s, model=%s): %s", self.provider, self.model, message)
            raise ProviderError(self.provider, message, error_code=ErrorCode.LLM_FAILED)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(
                self.provider, "response is not JSON", error_code=ErrorCode.LLM_FAILED
            ) from exc

        text = extract_text(payload)
        usage = payload.get("usage") if isinstance(payload, dict) else None
        usage = usage if isinstance(usage, dict) else {}
        logger.info(
            "llm call (provider=%s, model=%s, latency_ms=%s, prompt_tokens=%s, completion_tokens=%s)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
            usage.get("input_tokens"),
            usage.get("output_tokens"),
        )
        if not text:
            raise ProviderError(
                self.provider, "No text content in Claude response", error_code=ErrorCode.LLM_EMPTY_RESPONSE
            )
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
