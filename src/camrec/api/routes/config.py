"""Camera configuration endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from camrec.api.dependencies import get_camrec_app
from camrec.models.camera import CameraPublic

if TYPE_CHECKING:
    from camrec.app import Application

router = APIRouter(tags=["config"])


@router.get("/api/config", response_model=list[CameraPublic])
async def get_config(app: Application = Depends(get_camrec_app)) -> list[CameraPublic]:
    """List configured cameras in registry order, without source addresses."""
    return [camera.public_view() for camera in app.cameras]
