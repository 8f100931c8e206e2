from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from driveflow.config import Settings
from driveflow.pipeline.factory import Pipeline

_basic = HTTPBasic(auto_error=False)


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(status_code=500, detail="settings not initialized")
    return settings


def get_pipeline(request: Request) -> Pipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=500, detail="pipeline not initialized")
    return pipeline


def _matches(candidate: str | None, expected: str) -> bool:
    if not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def require_dashboard_auth(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(_basic),
) -> None:
    """`?p=` / `?password=` or HTTP Basic with the dashboard password (any user)."""
    settings = get_settings(request)
    expected = str(settings.dashboard.password or "")
    if not expected:
        raise HTTPException(status_code=500, detail="DASHBOARD_PASSWORD not configured")

    query_password = request.query_params.get("p") or request.query_params.get("password")
    if _matches(query_password, expected):
        return None
    if credentials is not None and _matches(credentials.password, expected):
        return None

    detail = "Invalid credentials" if credentials is not None else "Authentication required. Or use ?p=PASSWORD in URL."
    raise HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": f'Basic realm="{settings.dashboard.realm}"'},
    )
