import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from wabroker.errors import (
    BackendError,
    FetchError,
    QRRenderError,
    SessionTimeoutError,
    SessionVanishedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"error": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    error_type = "validation_error" if isinstance(exc, ValidationError) else "bad_request"
    return create_json_error_response(status_code=400, message=str(exc), error_type=error_type)


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Handle malformed request bodies (wrong JSON or field types) as 400."""
    message = "Invalid request body"
    if isinstance(exc, RequestValidationError) and exc.errors():
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return create_json_error_response(status_code=400, message=message, error_type="validation_error")


async def broker_error_handler(_: Request, exc: Exception) -> Response:
    """Handle downstream failures (500), passing the message through."""
    if isinstance(exc, SessionTimeoutError):
        error_type = "timeout"
    elif isinstance(exc, SessionVanishedError):
        error_type = "session_vanished"
    elif isinstance(exc, BackendError):
        error_type = "backend_error"
    elif isinstance(exc, FetchError):
        error_type = "fetch_error"
    elif isinstance(exc, QRRenderError):
        error_type = "qr_render_error"
    else:
        error_type = "downstream_error"

    logger.warning("Request failed (%s): %s", error_type, exc)
    return create_json_error_response(status_code=500, message=str(exc), error_type=error_type)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
