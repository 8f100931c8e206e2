"""Canonical error codes carried by DriveFlow exceptions."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    CONFIGURATION = "CONFIGURATION"

    DRIVE_FAILED = "DRIVE_FAILED"
    TRANSFER_FAILED = "TRANSFER_FAILED"
    TRANSCRIPTION_SUBMIT_FAILED = "TRANSCRIPTION_SUBMIT_FAILED"
    LLM_FAILED = "LLM_FAILED"
    LLM_EMPTY_RESPONSE = "LLM_EMPTY_RESPONSE"
    MAIL_FAILED = "MAIL_FAILED"
