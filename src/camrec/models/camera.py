"""Camera identity models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Camera(BaseModel):
    """A fixed camera definition loaded once at startup."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(min_length=1, description="Stable id, also the recording directory name.")
    name: str = Field(description="Human-friendly display name.")
    source_address: str = Field(description="Connection URI of the live source.")
    publish_path: str = Field(min_length=1, description="Live-view republish identifier.")

    def public_view(self) -> CameraPublic:
        """Return the API-safe projection (never includes the source URI)."""
        return CameraPublic(id=self.id, name=self.name, rtspPath=self.publish_path)


class CameraPublic(BaseModel):
    """Camera entry exposed by `GET /api/config`."""

    id: str
    name: str
    rtspPath: str  # noqa: N815 - wire name used by the viewer UI
