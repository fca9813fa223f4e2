"""Domain error codes for the reservations module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    PERFORMANCE_NOT_FOUND = "PERFORMANCE_NOT_FOUND"
    STAGE_NOT_FOUND = "STAGE_NOT_FOUND"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    ACCESS_DENIED = "ACCESS_DENIED"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when booking input is missing or malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)
        self.field = field


class NotFoundError(DomainError):
    """Base for stale links and unknown identifiers."""


class PerformanceNotFoundError(NotFoundError):
    """Raised when a performance is not found."""

    def __init__(self, performance_id: str) -> None:
        super().__init__(
            code=ErrorCode.PERFORMANCE_NOT_FOUND,
            message="Performance not found",
        )
        self.performance_id = performance_id


class StageNotFoundError(NotFoundError):
    """Raised when a stage index is outside the performance's stage list."""

    def __init__(self, performance_id: str, stage_id: int) -> None:
        super().__init__(
            code=ErrorCode.STAGE_NOT_FOUND,
            message="Stage not found for performance",
        )
        self.performance_id = performance_id
        self.stage_id = stage_id


class ReservationNotFoundError(NotFoundError):
    """Raised when a reservation id or cancellation token matches nothing."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.RESERVATION_NOT_FOUND,
            message="Reservation not found",
        )


class CapacityError(DomainError):
    """Raised when a stage cannot seat the requested party."""

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message=f"Only {max(available, 0)} seat(s) left, {requested} requested",
        )
        self.available = available
        self.requested = requested


class AccessDeniedError(DomainError):
    """Raised when a troupe acts on a performance it does not own."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.ACCESS_DENIED,
            message="Performance belongs to another troupe",
        )


class BackendError(DomainError):
    """Raised when storage is unavailable or a write failed."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.BACKEND_UNAVAILABLE,
            message="Reservation storage is temporarily unavailable",
        )
