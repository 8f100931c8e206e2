"""Pipeline stages."""

from driveflow.stages.base import EventStage
from driveflow.stages.ingest import IngestResult, Ingestor
from driveflow.stages.notification import AnalysisNotificationStage
from driveflow.stages.scanner import FolderScanner, ScanResult
from driveflow.stages.transcription import TranscriptionStage

__all__ = [
    "AnalysisNotificationStage",
    "EventStage",
    "FolderScanner",
    "IngestResult",
    "Ingestor",
    "ScanResult",
    "TranscriptionStage",
]
