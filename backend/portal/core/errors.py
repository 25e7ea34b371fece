"""
Error taxonomy for the API.

Every error leaves the service as ``{"error": "<message>"}``. Authentication and
reset failures use fixed messages so callers cannot tell which check failed.
"""

import logging

from fastapi import HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class AppHTTPException(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"

    def __init__(self, detail: str | None = None, headers: dict | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.message, headers=headers)


class Unauthorized(AppHTTPException):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class Forbidden(AppHTTPException):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class ValidationFailed(AppHTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class Conflict(AppHTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Already exists"


class NotFound(AppHTTPException):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UpstreamError(AppHTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong"


class AuthFailure(AppHTTPException):
    """Credential check failed. The message is fixed; callers cannot override it."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"

    def __init__(self, reason: str = ""):
        super().__init__()
        # Kept for server-side logging only
        self.reason = reason


class ResetTokenInvalid(AuthFailure):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid or expired reset token"


def error_body(message: str) -> dict:
    return {"error": message}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        if loc and loc[-1] not in fields:
            fields.append(loc[-1])
    message = f"Invalid or missing field(s): {', '.join(fields)}" if fields else "Invalid request body"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )
