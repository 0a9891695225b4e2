"""Domain error taxonomy shared by both services.

Services raise these; the API layer maps them to HTTP responses.
"""

from enum import Enum

from fastapi import status


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    CONFLICT = "CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.CONFLICT
    status_code: int = status.HTTP_409_CONFLICT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Malformed input."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(DomainError):
    """Caller lacks ownership or role."""

    code = ErrorCode.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(DomainError):
    """Operation is illegal for the current lifecycle state."""

    code = ErrorCode.INVALID_STATE
    status_code = status.HTTP_409_CONFLICT


class ConflictError(DomainError):
    """Batch references already-resolved requests, or a uniqueness clash."""

    code = ErrorCode.CONFLICT
    status_code = status.HTTP_409_CONFLICT


class CapacityExceededError(DomainError):
    """No seats remain on the event."""

    code = ErrorCode.CAPACITY_EXCEEDED
    status_code = status.HTTP_409_CONFLICT
