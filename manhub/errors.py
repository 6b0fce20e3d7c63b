"""Error taxonomy shared by all request handlers.

Each error maps to one HTTP status and renders as ``{"error": message}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class DependencyError(AppError):
    """Downstream data store or Telegram API failure.

    The message is logged but never sent to the caller.
    """

    status_code = 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, DependencyError):
        logger.error("Dependency failure on %s: %s", request.url.path, exc.message)
        return error_response(exc.status_code, INTERNAL_ERROR_MESSAGE)
    return error_response(exc.status_code, exc.message)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(400, message)


async def _catch_unexpected_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s", request.url.path)
        return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers. Call before adding CORSMiddleware so even
    unexpected 500s pass back through CORS and carry its headers.
    """
    app.add_exception_handler(AppError, _handle_app_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.middleware("http")(_catch_unexpected_errors)
