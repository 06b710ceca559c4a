"""Application errors raised by the invoice services."""

from typing import Any, Dict

from fastapi import status


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class InvalidArgumentError(AppError):
    """A query parameter or identifier is malformed or out of range."""

    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message, "invalid_argument", status.HTTP_400_BAD_REQUEST)


class NotFoundError(AppError):
    """The requested apartment, user or booking does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found", status.HTTP_404_NOT_FOUND)


class AccessDeniedError(AppError):
    """The requester's visibility scope excludes the requested entity."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, "access_denied", status.HTTP_403_FORBIDDEN)


class UnauthenticatedError(AppError):
    """No verified identity accompanies the request."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "unauthenticated", status.HTTP_401_UNAUTHORIZED)


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "AppError",
    "InvalidArgumentError",
    "NotFoundError",
    "AccessDeniedError",
    "UnauthenticatedError",
    "error_response",
]
