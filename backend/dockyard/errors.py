"""Uniform error bodies for every failure response.

All request-time failures, whatever layer raised them, are converted into a
single :class:`ApiError` by :func:`to_api_error` and rendered as
:class:`~dockyard.schemas.schemas.NormalizedErrorResponse`.  Only 500-class
failures are logged here; 4xx responses are expected and stay quiet.
"""

from __future__ import annotations

import traceback
from http import HTTPStatus
from typing import Any
from typing import Optional

from fastapi import FastAPI
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dockyard.metrics import http_error_responses_total
from dockyard.schemas.schemas import NormalizedErrorResponse
from dockyard.utils.log import log


def status_phrase(status_code: int) -> str:
    """Return the HTTP reason phrase for *status_code* (``"Unknown"`` if none)."""

    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"


class ApiError(Exception):
    """An application-level failure carrying an HTTP status.

    ``message`` defaults to the reason phrase; ``data`` is an optional
    structured payload that is copied verbatim into the response body.
    """

    def __init__(self, status_code: int, message: Optional[str] = None, data: Any = None):
        self.status_code = status_code
        self.error = status_phrase(status_code)
        self.message = message if message is not None else self.error
        if data is not None:
            self.data = data
        super().__init__(self.message)

    @property
    def has_data(self) -> bool:
        return "data" in self.__dict__

    @classmethod
    def internal(cls, cause: BaseException) -> "ApiError":
        err = cls(500, "An internal server error occurred")
        err.__cause__ = cause
        err.__traceback__ = cause.__traceback__
        return err


def to_api_error(exc: BaseException) -> ApiError:
    """Map any failure raised while handling a request onto :class:`ApiError`."""

    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, RequestValidationError):
        err = ApiError(400, "Invalid request", data=jsonable_encoder(exc.errors()))
        err.__traceback__ = exc.__traceback__
        return err

    if isinstance(exc, StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else status_phrase(exc.status_code)
        data = None if isinstance(exc.detail, str) else jsonable_encoder(exc.detail)
        err = ApiError(exc.status_code, message, data=data)
        err.__traceback__ = exc.__traceback__
        return err

    return ApiError.internal(exc)


def loggable_detail(err: ApiError) -> str:
    """Return the formatted traceback of *err* (or of its cause) or just its message."""

    source: BaseException = err.__cause__ if err.__cause__ is not None else err
    if source.__traceback__ is not None:
        return "".join(traceback.format_exception(type(source), source, source.__traceback__))
    return err.message


def normalize(err: ApiError) -> NormalizedErrorResponse:
    """Build the response body for *err*, logging it when it is a 500."""

    if err.status_code == 500:
        log.error("request failed", tags=["server", "error"], detail=loggable_detail(err))

    fields = {"statusCode": err.status_code, "error": err.error, "message": err.message}
    if err.has_data:
        fields["data"] = err.data
    return NormalizedErrorResponse(**fields)


async def normalized_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler rendering the uniform error body."""

    err = to_api_error(exc)
    http_error_responses_total.labels(status=str(err.status_code)).inc()
    response = normalize(err)

    headers = getattr(exc, "headers", None)
    return JSONResponse(
        status_code=err.status_code,
        content=jsonable_encoder(response.body()),
        headers=headers,
    )


def install_error_handlers(app: FastAPI) -> None:
    """Route the framework and application failure kinds through :func:`normalized_error_handler`."""

    app.add_exception_handler(ApiError, normalized_error_handler)
    app.add_exception_handler(StarletteHTTPException, normalized_error_handler)
    app.add_exception_handler(RequestValidationError, normalized_error_handler)
    # Anything else is rendered by UnhandledErrorMiddleware, which sits
    # inside CORSMiddleware (see RunningServer).
