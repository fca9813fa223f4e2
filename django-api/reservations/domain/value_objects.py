"""Domain primitives that enforce validity at creation time."""

import re
import secrets
from dataclasses import dataclass
from typing import Any, Self
from uuid import UUID

_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{64}$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class PerformanceId:
    """Unique identifier for a Performance."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ReservationId:
    """Unique identifier for a Reservation."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SeatLimit:
    """Maximum aggregate party size for a stage. Zero means unlimited."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Seat limit cannot be negative")

    @property
    def is_unlimited(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class PartySize:
    """Number of people covered by one reservation."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Party size must be an integer")
        if self.value < 1:
            raise ValueError("Party size must be at least 1")

    @classmethod
    def coerce(cls, raw: Any) -> Self:
        """Read a stored party size, counting absent or unusable values as 1.

        Records written before party size was mandatory may lack it or carry a
        string; those always occupy one seat.
        """
        try:
            return cls(value=int(raw))
        except (TypeError, ValueError, OverflowError):
            return cls(value=1)


@dataclass(frozen=True)
class EmailAddress:
    """Syntactically plausible email address."""

    value: str

    def __post_init__(self) -> None:
        if not _EMAIL_PATTERN.match(self.value):
            raise ValueError("Invalid email address")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ContactInfo:
    """How to reach the person holding a reservation."""

    name: str
    email: EmailAddress

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Name is required")


@dataclass(frozen=True)
class CancellationToken:
    """Unguessable 256-bit credential rendered as 64 lowercase hex characters."""

    value: str

    def __post_init__(self) -> None:
        if not _TOKEN_PATTERN.match(self.value):
            raise ValueError("Malformed cancellation token")

    @classmethod
    def generate(cls) -> Self:
        return cls(value=secrets.token_hex(32))

    def __str__(self) -> str:
        return self.value
