"""Read-only endpoints over the segment store."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query

from camrec.api.dependencies import get_camrec_app

if TYPE_CHECKING:
    from camrec.app import Application

router = APIRouter(tags=["recordings"])


@router.get("/api/recordings/{camera_id}/dates", response_model=list[str])
async def list_dates(camera_id: str, app: Application = Depends(get_camrec_app)) -> list[str]:
    """List recording dates for a camera, newest first."""
    return await asyncio.to_thread(app.layout.list_dates, camera_id)


@router.get("/api/recordings/{camera_id}", response_model=list[str])
async def list_recordings(
    camera_id: str,
    date: str | None = Query(default=None, description="YYYY-MM-DD filename prefix"),
    app: Application = Depends(get_camrec_app),
) -> list[str]:
    """List segment filenames; chronological with a date, newest first without."""
    return await asyncio.to_thread(app.layout.list_segments, camera_id, date)
