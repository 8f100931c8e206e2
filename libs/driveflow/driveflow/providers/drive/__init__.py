"""Cloud drive clients."""

from driveflow.providers.drive.base import FOLDER_MIME, GOOGLE_DOC_MIME, DriveClient
from driveflow.providers.drive.google_drive import GoogleDriveClient

__all__ = ["DriveClient", "FOLDER_MIME", "GOOGLE_DOC_MIME", "GoogleDriveClient"]
