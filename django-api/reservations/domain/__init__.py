from reservations.domain.capacity import Occupancy, StageCapacity
from reservations.domain.models import (
    MailNotification,
    Performance,
    Reservation,
    ReservationDraft,
    ReservationStatus,
    Stage,
)
from reservations.domain.value_objects import (
    CancellationToken,
    ContactInfo,
    EmailAddress,
    PartySize,
    PerformanceId,
    ReservationId,
    SeatLimit,
)

__all__ = [
    "Performance",
    "Stage",
    "Reservation",
    "ReservationDraft",
    "ReservationStatus",
    "MailNotification",
    "PerformanceId",
    "ReservationId",
    "PartySize",
    "SeatLimit",
    "EmailAddress",
    "ContactInfo",
    "CancellationToken",
    "Occupancy",
    "StageCapacity",
]
