"""
Domain errors raised by the service layer.

Each error carries the HTTP status and a short error label so the web
layer can translate it with a single exception handler.  Storage and
cache transport errors (SQLAlchemy, redis-py) are not wrapped: they
propagate unchanged from primary operations.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    """Base class for every error the core surfaces to callers."""

    status_code: int = 400
    error: str = "Bad Request"
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailed(ServiceError):
    # One message for unknown email and wrong password alike.
    status_code = 401
    error = "Unauthorized"
    default_message = "Invalid credentials"


class InvalidToken(ServiceError):
    status_code = 401
    error = "Unauthorized"
    default_message = "Invalid or expired token"


class NotOwner(ServiceError):
    status_code = 403
    error = "Forbidden"
    default_message = "Only the author can modify the article"


class ResourceNotFound(ServiceError):
    status_code = 404
    error = "Not Found"
    default_message = "Article not found"


class DuplicateEmail(ServiceError):
    status_code = 409
    error = "Conflict"
    default_message = "Email already exists"


class ValidationFailed(ServiceError):
    status_code = 422
    error = "Unprocessable Entity"
    default_message = "Validation failed"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "statusCode": exc.status_code,
            "error": exc.error,
            "message": exc.message,
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
