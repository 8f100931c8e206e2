"""DriveFlow exception hierarchy."""

from __future__ import annotations

from driveflow.error_codes import ErrorCode


class DriveFlowError(Exception):
    """Base error for DriveFlow."""


class ConfigurationError(DriveFlowError):
    """Raised when a required setting is missing or invalid."""

    error_code = ErrorCode.CONFIGURATION


class ProviderError(DriveFlowError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code


class InvalidPayloadError(DriveFlowError):
    """Raised when a stored record does not match its expected schema."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"{name}: {message}")
        self.name = name
        self.message = message
        self.error_code = ErrorCode.INVALID_PAYLOAD
