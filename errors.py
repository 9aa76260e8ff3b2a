"""
errors.py - API error types and the exception handlers that render them.

Every error leaves the process as the failure envelope:
    {"success": false, "error": "<message>"}
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from logger import get_logger
from responses import fail

log = get_logger(__name__)


class ApiError(HTTPException):
    """Base class for errors that map to a fixed status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message


class BadRequestError(ApiError):
    """Malformed input, malformed identifier, schema or storage failure."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT


def describe_schema_error(exc: SchemaValidationError) -> str:
    """Render a pydantic error as "<Model> validation failed: <field>: <msg>".

    Only the first failing field is reported, which keeps the message short
    enough to show to a client.
    """
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "document"
    return f"{exc.title} validation failed: {field}: {first['msg']}"


# ── Handlers ─────────────────────────────────────────────────────────────────

async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=fail(str(exc.detail)), headers=exc.headers)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        # Drop the leading "body" segment, clients only care about the field
        loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
        message = f"{'.'.join(loc)}: {errors[0]['msg']}" if loc else errors[0]["msg"]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=fail(message))


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "Unhandled error",
        exc_info=exc,
        extra={"props": {"method": request.method, "path": request.url.path}},
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=fail("Server Error"))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unhandled_error)
