"""Google credential handle shared by the Drive, transcription and Vertex clients."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any

from driveflow.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/drive",
)

_REFRESH_MARGIN = timedelta(minutes=5)


class GoogleCredentials:
    """Lazily built, memoized Google credentials.

    Uses a service-account file when one is configured, Application Default
    Credentials otherwise. Tokens are refreshed five minutes before expiry.
    """

    def __init__(
        self,
        credentials_file: str | None = None,
        *,
        scopes: tuple[str, ...] = DEFAULT_SCOPES,
    ) -> None:
        self.credentials_file = str(credentials_file or "").strip() or None
        self.scopes = tuple(scopes)
        self.project_id: str | None = None
        self._lock = Lock()
        self._credentials: Any | None = None

    def _build(self) -> Any:
        if self.credentials_file:
            from google.oauth2 import service_account

            creds = service_account.Credentials.from_service_account_file(
                self.credentials_file, scopes=list(self.scopes)
            )
            self.project_id = getattr(creds, "project_id", None)
            return creds

        import google.auth
        from google.auth.exceptions import DefaultCredentialsError

        try:
            creds, project_id = google.auth.default(scopes=list(self.scopes))
        except DefaultCredentialsError as exc:
            raise ConfigurationError(f"Google credentials unavailable: {exc}") from exc
        self.project_id = project_id
        return creds

    @staticmethod
    def _needs_refresh(creds: Any) -> bool:
        if not getattr(creds, "token", None):
            return True
        expiry = getattr(creds, "expiry", None)
        if expiry is None:
            return False
        expiry_utc = (
            expiry.replace(tzinfo=timezone.utc)
            if expiry.tzinfo is None
            else expiry.astimezone(timezone.utc)
        )
        return expiry_utc <= datetime.now(timezone.utc) + _REFRESH_MARGIN

    def get(self) -> Any:
        """Return refreshed credentials (blocking; call from a worker thread)."""
        from google.auth.transport.requests import Request

        with self._lock:
            if self._credentials is None:
                self._credentials = self._build()
                logger.info(
                    "google credentials loaded (source=%s, project=%s)",
                    "service_account" if self.credentials_file else "adc",
                    self.project_id,
                )
            if self._needs_refresh(self._credentials):
                self._credentials.refresh(Request())
            return self._credentials

    def token(self) -> str:
        return str(self.get().token)
