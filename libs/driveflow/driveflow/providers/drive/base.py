"""Drive client base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, BinaryIO

from driveflow.models.item import DriveItem

FOLDER_MIME = "application/vnd.google-apps.folder"
GOOGLE_DOC_MIME = "application/vnd.google-apps.document"


class DriveClient(ABC):
    """Narrow view of the cloud drive used by the pipeline."""

    @abstractmethod
    async def list_child_folders(self, parent_ids: list[str]) -> list[dict[str, Any]]:
        """Return non-trashed folders (`id`, `name`, `parents`) directly under any of `parent_ids`."""
        ...

    @abstractmethod
    async def list_videos(self, parent_ids: list[str], created_after: datetime) -> list[DriveItem]:
        """Return non-trashed video files under `parent_ids` created strictly after `created_after`."""
        ...

    @abstractmethod
    def download_to(self, file_id: str, sink: BinaryIO) -> int:
        """Stream the file's bytes into `sink` and return the byte count.

        Blocking; callers run it in a worker thread.
        """
        ...

    @abstractmethod
    async def find_file(
        self, parent_id: str, names: list[str], *, folder: bool = False
    ) -> dict[str, Any] | None:
        """Return the first child of `parent_id` whose name matches, honouring `names` order."""
        ...

    @abstractmethod
    async def read_text(self, file: dict[str, Any]) -> str:
        """Return the file's text content (Google Docs are exported as plain text)."""
        ...

    @abstractmethod
    async def upload_text(self, parent_id: str, name: str, text: str) -> str:
        """Create a text file under `parent_id` and return its id."""
        ...

    @abstractmethod
    async def trash_file(self, file_id: str) -> None: ...
