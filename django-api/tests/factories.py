"""Builders for domain objects used across test modules."""

import uuid
from datetime import date, datetime, time, timedelta, timezone

from reservations.domain import (
    Performance,
    PerformanceId,
    SeatLimit,
    Stage,
)
from reservations.services.booking_service import ContactForm

TROUPE = "troupe-a"
OTHER_TROUPE = "troupe-b"
CANCEL_URL = "https://stagebook.test/cancel"


class TickingClock:
    """Clock that advances one second per call, so created_at is strictly ordered."""

    def __init__(self, start: datetime = datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def make_performance(*seat_limits: int, troupe_id: str = TROUPE, title: str = "Hamlet") -> Performance:
    stages = tuple(
        Stage(
            stage_id=index,
            date=date(2026, 6, 1) + timedelta(days=index),
            start=time(19, 30),
            end=time(21, 45),
            seat_limit=SeatLimit(value=limit),
        )
        for index, limit in enumerate(seat_limits)
    )
    return Performance(
        id=PerformanceId(value=uuid.uuid4()),
        title=title,
        venue="Studio Theater",
        troupe_id=troupe_id,
        stages=stages,
    )


def contact(name: str = "Ada Lovelace", email: str = "ada@example.com") -> ContactForm:
    return ContactForm(name=name, email=email, email_confirmation=email)
