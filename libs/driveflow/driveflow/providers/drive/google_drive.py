"""Google Drive v3 client (google-api-python-client)."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from datetime import datetime
from typing import Any, BinaryIO

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.models.item import DriveItem, to_rfc3339
from driveflow.providers.drive.base import FOLDER_MIME, GOOGLE_DOC_MIME, DriveClient
from driveflow.providers.google_auth import GoogleCredentials

logger = logging.getLogger(__name__)

_ITEM_FIELDS = "files(id,name,createdTime,mimeType,size,videoMediaMetadata,parents)"
_DOWNLOAD_CHUNK_BYTES = 32 * 1024 * 1024


def _escape_query_value(s: str) -> str:
    """Escape a value for use in Drive API query strings."""
    return s.replace("\\", "\\\\").replace("'", "\\'")


def _parents_clause(parent_ids: list[str]) -> str:
    return " or ".join(f"'{_escape_query_value(pid)}' in parents" for pid in parent_ids)


def _chunks(values: list[str], size: int) -> list[list[str]]:
    unique = list(dict.fromkeys(v for v in values if v))
    return [unique[i : i + size] for i in range(0, len(unique), size)]


class GoogleDriveClient(DriveClient):
    """Drive client bound to one credential handle.

    The discovery client wraps a non-thread-safe HTTP object, so each worker
    thread builds its own service.
    """

    def __init__(self, credentials: GoogleCredentials, *, query_chunk_size: int = 20) -> None:
        self.credentials = credentials
        self.query_chunk_size = max(1, int(query_chunk_size))
        self._local = threading.local()

    def _service(self) -> Any:
        creds = self.credentials.get()
        cached = getattr(self._local, "service", None)
        if cached is None or getattr(self._local, "creds", None) is not creds:
            cached = build("drive", "v3", credentials=creds, cache_discovery=False)
            self._local.service = cached
            self._local.creds = creds
        return cached

    def _query_files(self, q: str, fields: str, *, order_by: str | None = None) -> list[dict[str, Any]]:
        drive = self._service()
        items: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {
                "q": q,
                "fields": f"nextPageToken,{fields}",
                "pageSize": 1000,
                "pageToken": page_token,
                "supportsAllDrives": True,
                "includeItemsFromAllDrives": True,
            }
            if order_by:
                kwargs["orderBy"] = order_by
            response = drive.files().list(**kwargs).execute()
            items.extend(response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        return items

    async def _run(self, op: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except HttpError as exc:
            status = getattr(getattr(exc, "resp", None), "status", None)
            logger.warning("drive call failed (op=%s, status=%s): %s", op, status, exc)
            raise ProviderError(
                "google_drive", f"{op} failed (status={status}): {exc}", error_code=ErrorCode.DRIVE_FAILED
            ) from exc

    async def list_child_folders(self, parent_ids: list[str]) -> list[dict[str, Any]]:
        def _list() -> list[dict[str, Any]]:
            out: list[dict[str, Any]] = []
            for chunk in _chunks(parent_ids, self.query_chunk_size):
                q = f"({_parents_clause(chunk)}) and mimeType = '{FOLDER_MIME}' and trashed = false"
                out.extend(self._query_files(q, "files(id,name,parents)"))
            return out

        return await self._run("list_child_folders", _list)

    async def list_videos(self, parent_ids: list[str], created_after: datetime) -> list[DriveItem]:
        since = to_rfc3339(created_after)

        def _list() -> list[dict[str, Any]]:
            out: list[dict[str, Any]] = []
            for chunk in _chunks(parent_ids, self.query_chunk_size):
                q = (
                    f"({_parents_clause(chunk)}) and createdTime > '{since}' "
                    "and mimeType contains 'video/' and trashed = false"
                )
                out.extend(self._query_files(q, _ITEM_FIELDS, order_by="createdTime"))
            return out

        raw = await self._run("list_videos", _list)
        seen: set[str] = set()
        items: list[DriveItem] = []
        for data in raw:
            file_id = str(data.get("id") or "")
            if not file_id or file_id in seen:
                continue
            seen.add(file_id)
            items.append(DriveItem.from_api(data))
        return items

    def download_to(self, file_id: str, sink: BinaryIO) -> int:
        drive = self._service()
        request = drive.files().get_media(fileId=file_id, supportsAllDrives=True)
        downloader = MediaIoBaseDownload(sink, request, chunksize=_DOWNLOAD_CHUNK_BYTES)
        done = False
        total = 0
        try:
            while not done:
                status, done = downloader.next_chunk()
                if status is not None:
                    total = int(status.resumable_progress)
        except HttpError as exc:
            status_code = getattr(getattr(exc, "resp", None), "status", None)
            raise ProviderError(
                "google_drive",
                f"download failed (file_id={file_id}, status={status_code}): {exc}",
                error_code=ErrorCode.TRANSFER_FAILED,
            ) from exc
        return total

    async def find_file(
        self, parent_id: str, names: list[str], *, folder: bool = False
    ) -> dict[str, Any] | None:
        wanted = [n for n in names if n]
        if not parent_id or not wanted:
            return None
        name_clause = " or ".join(f"name = '{_escape_query_value(n)}'" for n in wanted)
        kind = f"mimeType = '{FOLDER_MIME}'" if folder else f"mimeType != '{FOLDER_MIME}'"
        q = f"'{_escape_query_value(parent_id)}' in parents and ({name_clause}) and {kind} and trashed = false"
        found = await self._run("find_file", self._query_files, q, "files(id,name,mimeType)")
        by_name: dict[str, dict[str, Any]] = {}
        for item in found:
            by_name.setdefault(str(item.get("name") or ""), item)
        for name in wanted:
            if name in by_name:
                return by_name[name]
        return None

    async def read_text(self, file: dict[str, Any]) -> str:
        file_id = str(file["id"])

        def _read() -> bytes:
            drive = self._service()
            if file.get("mimeType") == GOOGLE_DOC_MIME:
                return bytes(drive.files().export(fileId=file_id, mimeType="text/plain").execute())
            buf = io.BytesIO()
            request = drive.files().get_media(fileId=file_id, supportsAllDrives=True)
            downloader = MediaIoBaseDownload(buf, request)
            done = False
            while not done:
                _, done = downloader.next_chunk()
            return buf.getvalue()

        raw = await self._run("read_text", _read)
        return raw.decode("utf-8", errors="replace")

    async def upload_text(self, parent_id: str, name: str, text: str) -> str:
        def _upload() -> str:
            media = MediaIoBaseUpload(io.BytesIO(text.encode("utf-8")), mimetype="text/plain", resumable=False)
            created = (
                self._service()
                .files()
                .create(
                    body={"name": name, "parents": [parent_id]},
                    media_body=media,
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
            return str(created["id"])

        file_id = await self._run("upload_text", _upload)
        logger.info("drive upload done (parent=%s, name=%s, file_id=%s)", parent_id, name, file_id)
        return file_id

    async def trash_file(self, file_id: str) -> None:
        def _trash() -> None:
            self._service().files().update(
                fileId=file_id, body={"trashed": True}, supportsAllDrives=True
            ).execute()

        await self._run("trash_file", _trash)
