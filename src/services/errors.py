"""Application errors raised by the ledger services and rendered by the API."""

from typing import Any, Dict

from fastapi import status


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        code: str,
        http_status: int = 400,
        field: str | None = None,
    ):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        self.field = field
        super().__init__(message)


class ValidationError(AppError):
    """A command argument is missing or out of range."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, "validation_error", status.HTTP_400_BAD_REQUEST, field)


class AuthorizationError(AppError):
    """Requester has the wrong role or does not own the lease/unit."""

    def __init__(self, message: str = "You are not allowed to do this action."):
        super().__init__(message, "forbidden", status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    """Lease, unit or renter does not exist."""

    def __init__(self, message: str = "Not found."):
        super().__init__(message, "not_found", status.HTTP_404_NOT_FOUND)


class StorageError(AppError):
    """Persistence failed; nothing from the command was kept."""

    def __init__(self, message: str = "Something went wrong."):
        super().__init__(message, "storage_error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response."""
    body: Dict[str, Any] = {
        "code": error.code,
        "message": error.message,
    }
    if error.field:
        body["field"] = error.field
    return {"error": body}


__all__ = [
    "AppError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "StorageError",
    "error_response",
]
