"""Utility helpers."""

from driveflow.utils.naming import (
    analysis_record_name,
    folder_id_candidates,
    is_video_name,
    output_record_name,
    sanitize_folder_id,
    transcript_record_name,
    video_name_from_output,
)

__all__ = [
    "analysis_record_name",
    "folder_id_candidates",
    "is_video_name",
    "output_record_name",
    "sanitize_folder_id",
    "transcript_record_name",
    "video_name_from_output",
]
