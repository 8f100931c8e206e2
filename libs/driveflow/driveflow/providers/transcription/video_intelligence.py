"""Google Video Intelligence speech transcription (REST, httpx)."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.providers._http import bearer_headers, format_http_error
from driveflow.providers.google_auth import GoogleCredentials
from driveflow.providers.transcription.base import TranscriptionProvider, TranscriptionRequest

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://videointelligence.googleapis.com/v1"


def build_annotate_body(request: TranscriptionRequest) -> dict[str, Any]:
    return {
        "inputUri": request.input_uri,
        "outputUri": request.output_uri,
        "features": ["SPEECH_TRANSCRIPTION"],
        "videoContext": {
            "speechTranscriptionConfig": {
                "languageCode": request.language_code,
                "enableAutomaticPunctuation": bool(request.enable_automatic_punctuation),
            }
        },
    }


class VideoIntelligenceProvider(TranscriptionProvider):
    provider = "video_intelligence"

    def __init__(
        self,
        credentials: GoogleCredentials,
        *,
        base_url: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.credentials = credentials
        self.base_url = (str(base_url or "").strip() or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = float(timeout)
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def submit(self, request: TranscriptionRequest) -> str:
        client = await self._get_client()
        headers = await bearer_headers(self.credentials)
        started = time.perf_counter()
        try:
            response = await client.post(
                f"{self.base_url}/videos:annotate",
                headers=headers,
                json=build_annotate_body(request),
            )
        except httpx.HTTPError as exc:
            raise ProviderError(
                self.provider,
                f"annotate request failed: {exc}",
                error_code=ErrorCode.TRANSCRIPTION_SUBMIT_FAILED,
            ) from exc

        if response.status_code >= 400:
            raise ProviderError(
                self.provider,
                format_http_error(response),
                error_code=ErrorCode.TRANSCRIPTION_SUBMIT_FAILED,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(
                self.provider,
                "annotate response is not JSON",
                error_code=ErrorCode.TRANSCRIPTION_SUBMIT_FAILED,
            ) from exc
        operation = str((payload or {}).get("name") or "").strip() if isinstance(payload, dict) else ""
        if not operation:
            raise ProviderError(
                self.provider,
                "annotate response has no operation name",
                error_code=ErrorCode.TRANSCRIPTION_SUBMIT_FAILED,
            )

        logger.info(
            "transcription submitted (provider=%s, operation=%s, input=%s, output=%s, latency_ms=%s)",
            self.provider,
            operation,
            request.input_uri,
            request.output_uri,
            int((time.perf_counter() - started) * 1000),
        )
        return operation

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
