"""Exception handlers rendering every failure as ``{success, message, stack?}``."""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import AuthServiceError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal Server Error"
NOT_FOUND_MESSAGE = "Resource not found"


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return ", ".join(messages) or "Validation failed"


class ErrorResponder:
    """Logs failures and renders them in the service's uniform error shape."""

    def __init__(self, *, include_stack: bool) -> None:
        self.include_stack = include_stack

    def render(self, exc: BaseException, status_code: int, message: str) -> JSONResponse:
        content: dict[str, Any] = {"success": False, "message": message}
        if self.include_stack:
            content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=status_code, content=content)

    def register_handlers(self, app: FastAPI) -> None:
        @app.exception_handler(AuthServiceError)
        async def service_error_handler(request: Request, exc: AuthServiceError) -> JSONResponse:
            logger.error(
                "Error: %s (%s %s)", exc.message, request.method, request.url.path, exc_info=exc
            )
            return self.render(exc, exc.status_code, exc.message)

        @app.exception_handler(RequestValidationError)
        async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
            message = _format_validation_errors(exc)
            logger.error("Validation error: %s (%s %s)", message, request.method, request.url.path)
            return self.render(exc, status.HTTP_400_BAD_REQUEST, message)

        @app.exception_handler(StarletteHTTPException)
        async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
            if exc.status_code == status.HTTP_404_NOT_FOUND:
                message = NOT_FOUND_MESSAGE
            else:
                message = str(exc.detail)
            logger.error("HTTP error %s: %s (%s %s)", exc.status_code, message, request.method, request.url.path)
            return self.render(exc, exc.status_code, message)

        @app.exception_handler(Exception)
        async def unclassified_error_handler(request: Request, exc: Exception) -> JSONResponse:
            logger.error(
                "Unhandled exception: %s (%s %s)", exc, request.method, request.url.path, exc_info=exc
            )
            return self.render(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI, *, include_stack: bool = False) -> None:
    """Attach the uniform error handlers to ``app``."""
    ErrorResponder(include_stack=include_stack).register_handlers(app)
