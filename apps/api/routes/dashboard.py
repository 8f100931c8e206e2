"""Dashboard routes: status page, JSON snapshot and analysis settings."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from driveflow.config import Settings
from driveflow.pipeline.factory import Pipeline
from services.dashboard_page import render_dashboard
from services.dashboard_service import DashboardService, InvalidModelError

from routes._deps import get_pipeline, get_settings, require_dashboard_auth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_dashboard_auth)])


class DashboardAction(BaseModel):
    action: str = ""
    prompt: str = ""
    model: str = ""


def service(
    pipeline: Pipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(pipeline.store, settings)


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(svc: DashboardService = Depends(service)) -> HTMLResponse:
    return HTMLResponse(render_dashboard(await svc.snapshot()))


@router.get("/api/dashboard")
async def dashboard_data(svc: DashboardService = Depends(service)) -> dict:
    return await svc.snapshot()


@router.post("/")
async def dashboard_action(payload: DashboardAction, svc: DashboardService = Depends(service)):
    if payload.action != "saveSettings":
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": f"Unknown action: {payload.action or '<empty>'}"},
        )
    try:
        await svc.save_settings(prompt=payload.prompt, model=payload.model)
    except InvalidModelError as exc:
        return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})
    return {"success": True, "message": "Settings saved successfully"}
