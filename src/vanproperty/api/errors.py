"""
API Errors

Application exceptions and the handlers that render every failure in the
``{success: false, message, ...}`` envelope.
"""
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from src.vanproperty.api.middleware import SECURITY_HEADERS, RequestIDMiddleware
from src.vanproperty.db.exceptions import InvalidSortError, NoFieldsToUpdateError
from src.vanproperty.utils.logger import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    """Error with an HTTP status and a client-facing message."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(ApiError):
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


def require_fields(payload, *fields: str) -> None:
    """
    Presence check for request bodies.

    None and empty strings count as missing. The message names every required
    field, not just the absent ones.

    Raises:
        BadRequestError: any field missing
    """
    missing = [name for name in fields if getattr(payload, name, None) in (None, "")]
    if missing:
        label = "field" if len(fields) == 1 else "fields"
        raise BadRequestError(f"Missing required {label}: {', '.join(fields)}")


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def invalid_sort_handler(request: Request, exc: InvalidSortError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body(f"Invalid sort option: {exc.value}", allowed=exc.allowed),
    )


async def no_fields_handler(request: Request, exc: NoFieldsToUpdateError) -> JSONResponse:
    return JSONResponse(status_code=400, content=error_body(str(exc)))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    logger.info("request_validation_failed", path=request.url.path, errors=errors)
    return JSONResponse(status_code=400, content=error_body("Invalid request", errors=errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content=error_body("Endpoint not found", path=request.url.path),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    body = error_body("Internal server error", error=str(exc))
    if not settings.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    # Runs outside the middleware stack, so the headers it would add are set here.
    headers = dict(SECURITY_HEADERS)
    request_id = getattr(request.state, "request_id", None) or request.headers.get(RequestIDMiddleware.header)
    if request_id:
        headers[RequestIDMiddleware.header] = request_id
    return JSONResponse(status_code=500, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(InvalidSortError, invalid_sort_handler)
    app.add_exception_handler(NoFieldsToUpdateError, no_fields_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
