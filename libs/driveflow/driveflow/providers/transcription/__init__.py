"""Speech transcription providers."""

from driveflow.providers.transcription.base import TranscriptionProvider, TranscriptionRequest

__all__ = ["TranscriptionProvider", "TranscriptionRequest"]
