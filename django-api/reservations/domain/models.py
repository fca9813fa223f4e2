"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in reservations/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from reservations.domain.value_objects import (
    CancellationToken,
    ContactInfo,
    PartySize,
    PerformanceId,
    ReservationId,
    SeatLimit,
)

RESERVATION_SCHEMA_VERSION = 1


class ReservationStatus(Enum):
    """Lifecycle status. Only CANCELLED releases seats."""

    ACTIVE = "active"
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"

    @property
    def is_cancelled(self) -> bool:
        return self is ReservationStatus.CANCELLED


@dataclass(frozen=True)
class Stage:
    """One dated occurrence of a performance. Identified by its list index."""

    stage_id: int
    date: date
    start: time
    end: time | None
    seat_limit: SeatLimit


@dataclass(frozen=True)
class Performance:
    """Domain representation of a Performance and its stages."""

    id: PerformanceId
    title: str
    venue: str
    troupe_id: str
    stages: tuple[Stage, ...] = ()

    def stage(self, stage_id: int) -> Stage | None:
        if 0 <= stage_id < len(self.stages):
            return self.stages[stage_id]
        return None


@dataclass(frozen=True)
class ReservationDraft:
    """A reservation that passed validation but has not been written yet."""

    performance_id: PerformanceId
    stage_id: int
    party_size: PartySize
    contact: ContactInfo
    note: str
    cancellation_token: CancellationToken


@dataclass(frozen=True)
class Reservation:
    """Domain representation of a Reservation."""

    id: ReservationId
    performance_id: PerformanceId
    stage_id: int
    party_size: PartySize
    contact: ContactInfo
    note: str
    status: ReservationStatus
    cancellation_token: CancellationToken
    created_at: datetime
    checked_in: bool = False
    checked_in_at: datetime | None = None
    cancelled_at: datetime | None = None
    schema_version: int = RESERVATION_SCHEMA_VERSION

    @property
    def is_cancelled(self) -> bool:
        return self.status.is_cancelled


@dataclass(frozen=True)
class MailNotification:
    """Outgoing mail waiting for the delivery collaborator."""

    type: str
    recipient: str
    subject: str
    body: str
    reservation_id: ReservationId
    status: str = "pending"
    id: UUID | None = None
    created_at: datetime | None = None
