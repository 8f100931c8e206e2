"""DriveFlow: Drive folder -> transcription -> analysis -> notification pipeline."""

__version__ = "0.1.0"
