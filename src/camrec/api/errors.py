"""JSON error envelope for the query API."""

from __future__ import annotations

import logging
from enum import StrEnum

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from camrec.errors import SegmentStoreError

logger = logging.getLogger(__name__)


class APIErrorCode(StrEnum):
    APP_NOT_INITIALIZED = "APP_NOT_INITIALIZED"
    SEGMENT_STORE_UNAVAILABLE = "SEGMENT_STORE_UNAVAILABLE"
    REQUEST_VALIDATION_FAILED = "REQUEST_VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


class APIErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    detail: str
    error_code: APIErrorCode


class APIError(Exception):
    """Raised by routes and dependencies to return a typed error."""

    def __init__(self, detail: str, *, status_code: int, error_code: APIErrorCode) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code


def error_response(
    status_code: int,
    detail: str,
    error_code: APIErrorCode,
    **extra: object,
) -> JSONResponse:
    body = APIErrorResponse(detail=detail, error_code=error_code).model_dump(mode="json")
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def _code_for_status(status_code: int) -> APIErrorCode:
    if status_code == status.HTTP_404_NOT_FOUND:
        return APIErrorCode.NOT_FOUND
    if status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return APIErrorCode.METHOD_NOT_ALLOWED
    return APIErrorCode.HTTP_ERROR


async def _handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    return error_response(exc.status_code, exc.detail, exc.error_code)


async def _handle_segment_store_error(request: Request, exc: SegmentStoreError) -> JSONResponse:
    # Other cameras keep recording; only this listing fails.
    logger.error("Listing failed for %s (camera=%s): %s", request.url.path, exc.camera_id, exc.cause)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Failed to list recordings",
        APIErrorCode.SEGMENT_STORE_UNAVAILABLE,
    )


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        "Request validation failed",
        APIErrorCode.REQUEST_VALIDATION_FAILED,
        validation_errors=exc.errors(),
    )


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail), _code_for_status(exc.status_code))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error serving %s", request.url.path, exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        APIErrorCode.INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the JSON envelope.

    FastAPI's HTTPException subclasses Starlette's, so one handler covers both.
    """
    app.add_exception_handler(APIError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(SegmentStoreError, _handle_segment_store_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
