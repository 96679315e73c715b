"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from linkme.api.request_id import get_request_id
from linkme.domain.errors import (
    ConnectionForbidden,
    ConnectionNotFound,
    DataUnavailable,
    DuplicateConnection,
    GateClosed,
    InvalidInput,
    InvalidTransition,
    LinkMeError,
    NoVisibleProfile,
    RateLimited,
)

logger = logging.getLogger(__name__)

# Subclasses before their bases.
_STATUS_BY_ERROR = (
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (NoVisibleProfile, status.HTTP_404_NOT_FOUND),
    (ConnectionNotFound, status.HTTP_404_NOT_FOUND),
    (ConnectionForbidden, status.HTTP_403_FORBIDDEN),
    (GateClosed, status.HTTP_403_FORBIDDEN),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (DuplicateConnection, status.HTTP_409_CONFLICT),
    (RateLimited, status.HTTP_429_TOO_MANY_REQUESTS),
    (DataUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: LinkMeError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LinkMeError)
    async def domain_exc_handler(request: Request, exc: LinkMeError):  # type: ignore[override]
        code = status_for(exc)
        if code >= 500:
            logger.warning("request failed reason=%s", exc.reason)
        payload = {"detail": exc.reason, "request_id": get_request_id(request)}
        return JSONResponse(status_code=code, content=payload)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        payload = {"detail": exc.detail, "request_id": get_request_id(request)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {
            "detail": "validation_error",
            "errors": jsonable_encoder(exc.errors()),
            "request_id": get_request_id(request),
        }
        return JSONResponse(status_code=422, content=payload)
