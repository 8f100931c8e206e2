"""Core data models for DriveFlow."""

from driveflow.models.events import ObjectEvent, StageOutcome
from driveflow.models.item import (
    NOTIFICATION_SENT,
    ORIGINAL_ID,
    PARENT_FOLDER_ID,
    PROCESSED_BY,
    TRANSCRIPTION_STARTED,
    DriveItem,
    TransferJob,
    WorkingRecord,
)
from driveflow.models.transcription import (
    Alternative,
    AnnotationResult,
    SpeechTranscription,
    TranscriptionOutput,
    WordInfo,
    parse_transcription_output,
)

__all__ = [
    "Alternative",
    "AnnotationResult",
    "DriveItem",
    "NOTIFICATION_SENT",
    "ORIGINAL_ID",
    "ObjectEvent",
    "PARENT_FOLDER_ID",
    "PROCESSED_BY",
    "SpeechTranscription",
    "StageOutcome",
    "TRANSCRIPTION_STARTED",
    "TranscriptionOutput",
    "TransferJob",
    "WordInfo",
    "WorkingRecord",
    "parse_transcription_output",
]
