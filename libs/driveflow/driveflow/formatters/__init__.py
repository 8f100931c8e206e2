"""Transcript and notification formatters."""

from driveflow.formatters.report import (
    NotificationState,
    compose_notification,
    compose_started_notification,
    render_analysis_record,
    render_insufficient_record,
    render_transcript_record,
)
from driveflow.formatters.transcript import (
    count_words,
    format_time,
    format_transcript,
    is_sufficient,
    strip_time_labels,
)

__all__ = [
    "NotificationState",
    "compose_notification",
    "compose_started_notification",
    "count_words",
    "format_time",
    "format_transcript",
    "is_sufficient",
    "render_analysis_record",
    "render_insufficient_record",
    "render_transcript_record",
    "strip_time_labels",
]
