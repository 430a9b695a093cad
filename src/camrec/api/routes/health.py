"""Health and session status endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from camrec.api.dependencies import get_camrec_app

if TYPE_CHECKING:
    from camrec.app import Application

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    cameras_total: int
    cameras_running: int


class SessionStatusResponse(BaseModel):
    camera_id: str
    status: str
    healthy: bool
    restart_attempt: int
    total_restarts: int
    last_error: str | None
    pid: int | None
    permanent_failure: bool


class StatusResponse(BaseModel):
    status: str
    uptime_seconds: float
    sessions: list[SessionStatusResponse]


def _overall_status(total: int, running: int) -> str:
    if total == 0 or running == total:
        return "healthy"
    if running == 0:
        return "unhealthy"
    return "degraded"


@router.get("/health", response_model=HealthResponse, include_in_schema=False)
async def get_health(app: Application = Depends(get_camrec_app)) -> HealthResponse:
    """Liveness probe; always 200 while the process serves requests."""
    snapshots = app.session_snapshots()
    running = sum(1 for snap in snapshots if snap.is_healthy)
    return HealthResponse(
        status=_overall_status(len(snapshots), running),
        cameras_total=len(snapshots),
        cameras_running=running,
    )


@router.get("/api/status", response_model=StatusResponse)
async def get_status(app: Application = Depends(get_camrec_app)) -> StatusResponse:
    """Per-camera recording session status."""
    snapshots = app.session_snapshots()
    sessions = [
        SessionStatusResponse(
            camera_id=snap.camera_id,
            status=snap.status.value,
            healthy=snap.is_healthy,
            restart_attempt=snap.restart_attempt,
            total_restarts=snap.total_restarts,
            last_error=snap.last_error,
            pid=snap.pid,
            permanent_failure=snap.permanent_failure,
        )
        for snap in snapshots
    ]
    running = sum(1 for session in sessions if session.healthy)
    return StatusResponse(
        status=_overall_status(len(sessions), running),
        uptime_seconds=app.uptime_seconds,
        sessions=sessions,
    )
