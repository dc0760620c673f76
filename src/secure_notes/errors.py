import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from secure_notes import messages

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map to an envelope response."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = messages.SERVER_ERROR

    def __init__(self, message: Optional[str] = None, data: Any = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.data = data


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = messages.VALIDATION_ERROR


class DuplicateError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = messages.EMAIL_ALREADY_EXISTS


class InvalidCredentialError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = messages.INVALID_CREDENTIAL


class TokenMissingError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = messages.TOKEN_REQUIRED


class TokenMalformedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = messages.INVALID_TOKEN


class TokenSignatureError(TokenMalformedError):
    """Well-formed token whose signature does not verify."""


class TokenExpiredError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = messages.TOKEN_EXPIRED


class IdentityNotFoundError(AppError):
    """Token verified but its subject no longer exists."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = messages.INVALID_TOKEN


class ResourceNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = messages.NOTE_NOT_FOUND


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = messages.UNAUTHORIZED_NOTE_ACCESS


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = messages.SERVER_ERROR


def envelope(message: str, data: Any = None, success: bool = False) -> dict:
    return {"success": success, "message": message, "data": data}


async def app_error_handler(request: Request, exc: AppError):
    """Map domain errors to the response envelope."""
    if exc.status_code >= 500:
        # The cause stays in the server log; the client only sees the generic message
        logger.error(
            "[%s] %s >> %s: %s",
            request.method, request.url.path, type(exc).__name__, exc.__cause__ or exc,
            exc_info=exc.__cause__,
        )
    else:
        logger.warning(
            "[%s] %s >> StatusCode:: %s, Message:: %s",
            request.method, request.url.path, exc.status_code, exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content=envelope(exc.message, exc.data))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body/query validation errors as bad requests."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", messages.VALIDATION_ERROR),
        }
        for err in exc.errors()
    ]
    message = errors[0]["message"] if errors else messages.VALIDATION_ERROR
    logger.warning("Validation error: %s - %s", errors, request.url.path)
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=envelope(message, {"errors": errors}),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Routing-level HTTP errors (unknown path, wrong method) in the envelope shape."""
    message = messages.NOT_FOUND if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
    logger.warning("HTTP %s: %s - %s", exc.status_code, exc.detail, request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(message),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error("Unexpected error: %s - %s", exc, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope(messages.SERVER_ERROR),
    )


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope-producing exception handlers on an application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
