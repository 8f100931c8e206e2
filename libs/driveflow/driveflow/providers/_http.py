"""Shared helpers for httpx-based providers."""

from __future__ import annotations

import asyncio

import httpx

from driveflow.providers.google_auth import GoogleCredentials


def format_http_error(response: httpx.Response) -> str:
    status = response.status_code
    reason = response.reason_phrase
    detail = response.content.decode("utf-8", errors="replace").strip() if response.content else ""
    if detail:
        if len(detail) > 2000:
            detail = detail[:2000] + "…"
        return f"HTTP {status} {reason}: {detail}"
    return f"HTTP {status} {reason}"


async def bearer_headers(credentials: GoogleCredentials) -> dict[str, str]:
    token = await asyncio.to_thread(credentials.token)
    return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}
