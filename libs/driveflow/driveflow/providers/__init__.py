"""Provider abstractions for external services."""

from driveflow.providers.registry import (
    get_drive_client,
    get_google_credentials,
    get_llm_provider,
    get_mailer,
    get_transcription_provider,
)

__all__ = [
    "get_drive_client",
    "get_google_credentials",
    "get_llm_provider",
    "get_mailer",
    "get_transcription_provider",
]
