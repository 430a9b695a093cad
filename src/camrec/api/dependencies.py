"""Request dependencies for API routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request, status

from camrec.api.errors import APIError, APIErrorCode

if TYPE_CHECKING:
    from camrec.app import Application


def get_camrec_app(request: Request) -> Application:
    """Return the running recorder attached by `create_app`."""
    recorder: Application | None = getattr(request.app.state, "camrec", None)
    if recorder is None:
        raise APIError(
            "Application not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=APIErrorCode.APP_NOT_INITIALIZED,
        )
    return recorder
