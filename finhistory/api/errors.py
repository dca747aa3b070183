"""
Exception handlers rendering every failure as the error envelope.

    {"error": {"code": "...", "message": "...", "details": {...}}}

- FinHistoryError subclasses carry their own code and status
- Request validation failures become VALIDATION_ERROR / 400
- Plain HTTP exceptions (unknown route, wrong method) keep their status
- Anything else is INTERNAL_ERROR / 500 and is logged, unless the
  availability classifier recognises it, in which case it is
  SERVICE_UNAVAILABLE / 503
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finhistory.core.errors import FinHistoryError, ServiceUnavailableError
from finhistory.core.logging import get_logger
from finhistory.services.availability import is_store_unavailable

logger = get_logger(__name__)

HTTP_STATUS_CODES: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    503: "SERVICE_UNAVAILABLE",
}


def error_response(status: int, code: str, message: str, details: dict[str, Any] | None = None) -> JSONResponse:
    """Build an error envelope response."""
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "details": details or {}}},
    )


def _location(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI adds.
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts)


async def finhistory_error_handler(request: Request, exc: FinHistoryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", code=exc.code, message=exc.message, details=exc.details)
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": _location(tuple(error.get("loc", ()))), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    if errors:
        first = errors[0]
        message = f"{first['loc']}: {first['msg']}" if first["loc"] else first["msg"]
    else:
        message = "invalid request"
    return error_response(400, "VALIDATION_ERROR", message, {"errors": errors})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: classified store outages become 503, everything else 500."""
    if is_store_unavailable(exc):
        unavailable = ServiceUnavailableError.from_exception(exc)
        logger.warning("Live store unavailable", path=request.url.path, error=unavailable.details)
        return error_response(unavailable.status_code, unavailable.code, unavailable.message, unavailable.details)

    logger.exception("Unhandled error", path=request.url.path, error_type=type(exc).__name__)
    return error_response(500, "INTERNAL_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinHistoryError, finhistory_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
