from __future__ import annotations

from driveflow.formatters.report import (
    INSUFFICIENT_DATA_NOTICE,
    NotificationState,
    compose_notification,
    compose_started_notification,
    render_analysis_record,
    render_insufficient_record,
    render_transcript_record,
)
from driveflow.models.item import parse_rfc3339

NOW = parse_rfc3339("2024-05-01T12:00:00Z")


def test_transcript_record_header() -> None:
    record = render_transcript_record("demo.mp4", "[0:00–0:05]\nhello there", duration_s=3725, processed_at=NOW)

    lines = record.splitlines()
    assert lines[0] == "TRANSCRIPT"
    assert "Video: demo.mp4" in lines
    assert "Duration: 1:02:05" in lines
    assert "Processed: 2024-05-01T12:00:00.000Z" in lines
    assert record.endswith("hello there\n")


def test_insufficient_record_carries_notice_and_partial_text() -> None:
    record = render_insufficient_record(
        "silent.mov", "um", word_count=1, min_words=10, duration_s=None, processed_at=NOW
    )
    assert INSUFFICIENT_DATA_NOTICE in record
    assert "Words detected: 1 (minimum for analysis: 10)." in record
    assert record.rstrip().endswith("um")

    empty = render_insufficient_record(
        "silent.mov", None, word_count=0, min_words=10, duration_s=None, processed_at=NOW
    )
    assert "Duration: 0:00" in empty


def test_analysis_record_names_model() -> None:
    record = render_analysis_record("demo.mp4", " Key points. ", model="gemini-2.5-flash", duration_s=95, processed_at=NOW)
    assert record.splitlines()[0] == "AI ANALYSIS"
    assert "Model: gemini-2.5-flash" in record
    assert record.endswith("Key points.\n")


def test_notification_subjects_and_attachments() -> None:
    analyzed = compose_notification(
        NotificationState.ANALYZED,
        "demo.mp4",
        transcript_record="T",
        analysis_record="A",
        analysis="x" * 50,
        preview_chars=10,
    )
    assert analyzed.subject == "Transcript & Analysis Ready: demo.mp4"
    assert [a.filename for a in analyzed.attachments] == ["demo.mp4_TRANSCRIPT.txt", "demo.mp4_ANALYSIS.txt"]
    assert "x" * 10 + "..." in analyzed.body
    assert "x" * 11 not in analyzed.body

    only = compose_notification(NotificationState.TRANSCRIPT_ONLY, "demo.mp4", transcript_record="T", transcript="hi")
    assert only.subject == "Transcript Ready: demo.mp4"
    assert len(only.attachments) == 1

    silent = compose_notification(NotificationState.INSUFFICIENT, "silent.mov", transcript_record="T")
    assert silent.subject == "No Usable Speech Detected: silent.mov"
    assert [a.filename for a in silent.attachments] == ["silent.mov_TRANSCRIPT.txt"]


def test_started_notification() -> None:
    message = compose_started_notification("demo.mp4")
    assert message.subject == "Transcription Started"
    assert "demo.mp4" in message.body
    assert message.attachments == []
