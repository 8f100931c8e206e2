"""Health check route."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from driveflow import __version__
from driveflow.config import Settings

from routes._deps import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "status": "ok",
        "version": __version__,
        "storage_backend": settings.storage.backend,
        "drive_folder_configured": bool(settings.drive.folder_id),
    }
