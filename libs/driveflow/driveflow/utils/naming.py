"""Object naming conventions shared by the stages and the dashboard."""

from __future__ import annotations

from pathlib import PurePosixPath

VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v", ".wmv", ".flv"}
)

TRANSCRIPT_SUFFIX = "_TRANSCRIPT.txt"
ANALYSIS_SUFFIX = "_ANALYSIS.txt"


def is_video_name(name: str, extensions: frozenset[str] | set[str] | None = None) -> bool:
    allowed = VIDEO_EXTENSIONS if extensions is None else {e.lower() for e in extensions}
    return PurePosixPath(str(name or "")).suffix.lower() in allowed


def output_record_name(video_name: str, suffix: str = ".json") -> str:
    return f"{video_name}{suffix}"


def video_name_from_output(output_name: str, suffix: str = ".json") -> str:
    if suffix and output_name.endswith(suffix):
        return output_name[: -len(suffix)]
    return output_name


def transcript_record_name(video_name: str) -> str:
    return f"{video_name}{TRANSCRIPT_SUFFIX}"


def analysis_record_name(video_name: str) -> str:
    return f"{video_name}{ANALYSIS_SUFFIX}"


def sanitize_folder_id(folder_id: str) -> str:
    """Strip trailing underscores Drive sometimes appends to folder ids."""
    return str(folder_id or "").rstrip("_")


def folder_id_candidates(folder_id: str) -> list[str]:
    """Literal id first, then the sanitized variant (deduplicated, non-empty)."""
    out: list[str] = []
    for candidate in (str(folder_id or "").strip(), sanitize_folder_id(str(folder_id or "").strip())):
        if candidate and candidate not in out:
            out.append(candidate)
    return out
