"""API route registration."""

from __future__ import annotations

from fastapi import FastAPI

from camrec.api.routes import config, health, recordings


def register_routes(app: FastAPI) -> None:
    """Register all API routers."""
    app.include_router(health.router)
    app.include_router(config.router)
    app.include_router(recordings.router)
