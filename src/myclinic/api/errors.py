"""Translation of scraping errors into HTTP error responses.

Upstream error text (URLs, status lines, transport messages) goes to the log,
never to the response body.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from myclinic.api.models import ErrorResponse
from myclinic.errors import (
    AuthenticationError,
    NotAuthenticatedError,
    ScrapingError,
    SessionExpiredError,
    UpstreamError,
)
from myclinic.logging import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    """An error with a fixed HTTP status and public message."""

    def __init__(self, status_code: int, error: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message


def public_message(exc: Exception) -> str:
    """Client-safe description of a scraping failure."""
    if isinstance(exc, SessionExpiredError):
        return "Myclinic session expired and re-login failed"
    if isinstance(exc, UpstreamError):
        if exc.status_code is None:
            return "Myclinic is unreachable"
        return f"Myclinic returned HTTP {exc.status_code}"
    if isinstance(exc, (NotAuthenticatedError, AuthenticationError)):
        return "Valid authentication session required"
    return "Internal server error"


def to_api_error(exc: ScrapingError, error: str) -> ApiError:
    """Map a scraping failure raised by an operation to its HTTP response."""
    if isinstance(exc, (NotAuthenticatedError, AuthenticationError)):
        return ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized", public_message(exc))
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, error, public_message(exc))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error, message=exc.message).model_dump(),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with standard error format."""
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal Server Error", message=public_message(exc)
        ).model_dump(),
    )
