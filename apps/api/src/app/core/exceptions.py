"""
Service Errors

Base exception hierarchy shared by every module's service layer.
Routers convert these into structured HTTP responses of the form
``{"error": <code>, "message": <text>}``.
"""

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Malformed or missing required input."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="VALIDATION_ERROR", status_code=422)


class ForbiddenError(ServiceError):
    """Caller does not own the resource or lacks the admin role."""

    def __init__(self, message: str = "You do not have access to this resource."):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class NotFoundError(ServiceError):
    """A referenced resource does not exist."""

    def __init__(self, resource: str, identifier: object | None = None):
        message = f"{resource} {identifier} not found" if identifier is not None else f"{resource} not found"
        error_code = f"{resource.upper().replace(' ', '_')}_NOT_FOUND"
        super().__init__(message=message, error_code=error_code, status_code=404)


class InvalidStateError(ServiceError):
    """Operation attempted outside its allowed status."""

    def __init__(self, message: str, expected_state: str | None = None):
        detail = message
        if expected_state:
            detail = f"{message} Expected state: {expected_state}"
        super().__init__(message=detail, error_code="INVALID_APPLICATION_STATE", status_code=409)


def to_http_exception(e: ServiceError) -> HTTPException:
    """Convert a service error to an HTTPException."""
    return HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    )


__all__ = [
    "ServiceError",
    "ValidationError",
    "ForbiddenError",
    "NotFoundError",
    "InvalidStateError",
    "to_http_exception",
]
