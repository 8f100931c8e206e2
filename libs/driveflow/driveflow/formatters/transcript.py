"""Plain-text transcript formatting."""

from __future__ import annotations

import math
import re

from driveflow.models.transcription import TranscriptionOutput

# `[0:00–1:35]` labels (en-dash; a plain hyphen is accepted when stripping).
_LABEL_RE = re.compile(r"\[\d+(?::\d{2}){1,2}\s*[–-]\s*\d+(?::\d{2}){1,2}\]")


def format_time(seconds: float | None) -> str:
    """`H:MM:SS` when the value reaches an hour, `M:SS` otherwise."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "0:00"
    total = int(math.floor(seconds))
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_transcript(output: TranscriptionOutput) -> str | None:
    """Render every segment's best alternative as `[start–end]\\ntext` blocks.

    Returns None when no segment carries text, which callers treat as "no
    speech" rather than an empty transcript.
    """
    blocks: list[str] = []
    for segment in output.segments:
        best = segment.best
        if best is None:
            continue
        text = best.transcript.strip()
        if not text:
            continue
        if best.words:
            label = f"[{format_time(best.words[0].start_time)}–{format_time(best.words[-1].end_time)}]"
            blocks.append(f"{label}\n{text}")
        else:
            blocks.append(text)
    if not blocks:
        return None
    return "\n\n".join(blocks)


def strip_time_labels(text: str) -> str:
    return _LABEL_RE.sub(" ", text or "")


def count_words(text: str | None) -> int:
    """Whitespace-delimited words, ignoring time labels."""
    if not text:
        return 0
    return len(strip_time_labels(text).split())


def is_sufficient(text: str | None, min_words: int) -> bool:
    return text is not None and count_words(text) >= int(min_words)
