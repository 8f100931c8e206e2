"""Derived text records and notification messages."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from driveflow.formatters.transcript import format_time
from driveflow.models.item import to_rfc3339
from driveflow.providers.mail.base import Attachment, MailMessage
from driveflow.utils.naming import analysis_record_name, transcript_record_name

INSUFFICIENT_DATA_NOTICE = "INSUFFICIENT DATA: no usable speech was detected in this video."
_RULE = "=" * 60


class NotificationState(str, Enum):
    INSUFFICIENT = "insufficient"
    ANALYZED = "analyzed"
    TRANSCRIPT_ONLY = "transcript_only"


def _header(title: str, video_name: str, duration_s: float | None, processed_at: datetime) -> list[str]:
    return [
        title,
        _RULE,
        f"Video: {video_name}",
        f"Duration: {format_time(duration_s)}",
        f"Processed: {to_rfc3339(processed_at)}",
        _RULE,
        "",
    ]


def render_transcript_record(
    video_name: str, transcript: str, *, duration_s: float | None, processed_at: datetime
) -> str:
    lines = _header("TRANSCRIPT", video_name, duration_s, processed_at)
    lines.append(transcript.strip())
    return "\n".join(lines) + "\n"


def render_insufficient_record(
    video_name: str,
    transcript: str | None,
    *,
    word_count: int,
    min_words: int,
    duration_s: float | None,
    processed_at: datetime,
) -> str:
    lines = _header("TRANSCRIPT", video_name, duration_s, processed_at)
    lines.append(INSUFFICIENT_DATA_NOTICE)
    lines.append(f"Words detected: {word_count} (minimum for analysis: {min_words}).")
    if transcript:
        lines.extend(["", transcript.strip()])
    return "\n".join(lines) + "\n"


def render_analysis_record(
    video_name: str, analysis: str, *, model: str, duration_s: float | None, processed_at: datetime
) -> str:
    lines = _header("AI ANALYSIS", video_name, duration_s, processed_at)
    lines.insert(4, f"Model: {model}")
    lines.append(analysis.strip())
    return "\n".join(lines) + "\n"


def _preview(text: str, limit: int) -> str:
    text = text.strip()
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def compose_notification(
    state: NotificationState,
    video_name: str,
    *,
    transcript_record: str,
    analysis_record: str | None = None,
    analysis: str | None = None,
    transcript: str | None = None,
    preview_chars: int = 2000,
) -> MailMessage:
    """Build the completion e-mail for one of the three terminal states."""
    attachments = [Attachment(transcript_record_name(video_name), transcript_record)]

    if state is NotificationState.INSUFFICIENT:
        subject = f"No Usable Speech Detected: {video_name}"
        body = (
            f"Transcription finished for {video_name}, but it contains too little speech "
            "to analyze.\n\nAI analysis was skipped. The transcript record is attached."
        )
        return MailMessage(subject=subject, body=body, attachments=attachments)

    if state is NotificationState.ANALYZED:
        if analysis_record is not None:
            attachments.append(Attachment(analysis_record_name(video_name), analysis_record))
        subject = f"Transcript & Analysis Ready: {video_name}"
        body = (
            f"Your video {video_name} has been transcribed and analyzed.\n\n"
            f"AI Analysis:\n{_preview(analysis or '', preview_chars)}\n\n"
            "The full transcript and analysis are attached."
        )
        return MailMessage(subject=subject, body=body, attachments=attachments)

    subject = f"Transcript Ready: {video_name}"
    body = (
        f"Your video {video_name} has been transcribed.\n\n"
        "No analysis prompt is configured, so AI analysis was skipped.\n\n"
        f"Preview:\n{_preview(transcript or '', preview_chars)}"
    )
    return MailMessage(subject=subject, body=body, attachments=attachments)


def compose_started_notification(video_name: str) -> MailMessage:
    return MailMessage(
        subject="Transcription Started",
        body=f"Processing file: {video_name}\nWe'll notify you when it's done.",
    )
