"""Django ORM implementation of the store interfaces.

Rows are converted to domain models before they leave this module. Database
failures surface as StoreError; the services decide what they mean.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

from django.db import DatabaseError, transaction
from django.utils import timezone

from reservations import models
from reservations.domain import (
    CancellationToken,
    ContactInfo,
    EmailAddress,
    MailNotification,
    PartySize,
    Performance,
    PerformanceId,
    Reservation,
    ReservationDraft,
    ReservationId,
    ReservationStatus,
    SeatLimit,
    Stage,
)
from reservations.stores.interfaces import (
    AdmissionCheck,
    NotificationOutbox,
    PerformanceStore,
    ReservationLedger,
    StoreError,
)


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


def _performance_to_domain(row: models.Performance) -> Performance:
    # Stage identity is the index in position order, not the stored position.
    stages = tuple(
        Stage(
            stage_id=index,
            date=stage.date,
            start=stage.start_time,
            end=stage.end_time,
            seat_limit=SeatLimit(value=stage.seat_limit),
        )
        for index, stage in enumerate(row.stages.all())
    )
    return Performance(
        id=PerformanceId(value=row.id),
        title=row.title,
        venue=row.venue,
        troupe_id=row.troupe_id,
        stages=stages,
    )


def _reservation_to_domain(row: models.Reservation) -> Reservation:
    status = ReservationStatus(row.status)
    return Reservation(
        id=ReservationId(value=row.id),
        performance_id=PerformanceId(value=row.performance_id),
        stage_id=row.stage_index,
        party_size=PartySize.coerce(row.party_size),
        contact=ContactInfo(name=row.name, email=EmailAddress(value=row.email)),
        note=row.note,
        status=status,
        cancellation_token=CancellationToken(value=row.cancellation_token),
        created_at=row.created_at,
        checked_in=row.checked_in and not status.is_cancelled,
        checked_in_at=row.checked_in_at,
        cancelled_at=row.cancelled_at,
        schema_version=row.schema_version,
    )


class DjangoPerformanceStore(PerformanceStore):
    """Performance store backed by the Performance and Stage tables."""

    def get_performance(self, performance_id: PerformanceId) -> Performance | None:
        with _store_errors():
            row = (
                models.Performance.objects.prefetch_related("stages")
                .filter(pk=performance_id.value)
                .first()
            )
            return _performance_to_domain(row) if row else None

    def list_performances_for_troupe(self, troupe_id: str) -> list[Performance]:
        with _store_errors():
            rows = models.Performance.objects.prefetch_related("stages").filter(
                troupe_id=troupe_id
            )
            return [_performance_to_domain(row) for row in rows]


class DjangoReservationLedger(ReservationLedger):
    """Reservation ledger backed by the Reservation table.

    With ``lock_stage`` set, bookings take a row lock on the stage before the
    admission check, so concurrent bookings for one stage run one at a time.
    Without it the check and insert share a transaction but not a lock, and
    two bookings racing for the last seats can both succeed.
    """

    def __init__(self, lock_stage: bool = False) -> None:
        self._lock_stage = lock_stage

    def list_for_stage(
        self, performance_id: PerformanceId, stage_id: int
    ) -> list[Reservation]:
        with _store_errors():
            rows = models.Reservation.objects.filter(
                performance_id=performance_id.value, stage_index=stage_id
            ).order_by("created_at")
            return [_reservation_to_domain(row) for row in rows]

    def list_for_performance(self, performance_id: PerformanceId) -> list[Reservation]:
        with _store_errors():
            rows = models.Reservation.objects.filter(
                performance_id=performance_id.value
            ).order_by("created_at")
            return [_reservation_to_domain(row) for row in rows]

    def get_reservation(self, reservation_id: ReservationId) -> Reservation | None:
        with _store_errors():
            row = models.Reservation.objects.filter(pk=reservation_id.value).first()
            return _reservation_to_domain(row) if row else None

    def find_by_token(self, token: CancellationToken) -> Reservation | None:
        with _store_errors():
            row = models.Reservation.objects.filter(
                cancellation_token=token.value
            ).first()
            return _reservation_to_domain(row) if row else None

    def add_reservation(
        self, draft: ReservationDraft, check: AdmissionCheck
    ) -> Reservation:
        with _store_errors(), transaction.atomic():
            if self._lock_stage:
                self._lock_stage_row(draft.performance_id, draft.stage_id)
            check(self.list_for_stage(draft.performance_id, draft.stage_id))
            row = models.Reservation.objects.create(
                performance_id=draft.performance_id.value,
                stage_index=draft.stage_id,
                party_size=draft.party_size.value,
                name=draft.contact.name,
                email=str(draft.contact.email),
                note=draft.note,
                status=models.Reservation.Status.ACTIVE,
                cancellation_token=draft.cancellation_token.value,
            )
            return _reservation_to_domain(row)

    def mark_cancelled(self, reservation_id: ReservationId) -> Reservation | None:
        with _store_errors(), transaction.atomic():
            row = self._locked_row(reservation_id)
            if row is None:
                return None
            if row.status != models.Reservation.Status.CANCELLED:
                row.status = models.Reservation.Status.CANCELLED
                row.cancelled_at = timezone.now()
                row.save(update_fields=["status", "cancelled_at"])
            return _reservation_to_domain(row)

    def set_check_in(
        self, reservation_id: ReservationId, checked_in: bool
    ) -> Reservation | None:
        with _store_errors(), transaction.atomic():
            row = self._locked_row(reservation_id)
            if row is None:
                return None
            if row.status != models.Reservation.Status.CANCELLED:
                row.checked_in = checked_in
                row.checked_in_at = timezone.now() if checked_in else None
                row.save(update_fields=["checked_in", "checked_in_at"])
            return _reservation_to_domain(row)

    def _locked_row(self, reservation_id: ReservationId) -> models.Reservation | None:
        return (
            models.Reservation.objects.select_for_update()
            .filter(pk=reservation_id.value)
            .first()
        )

    def _lock_stage_row(self, performance_id: PerformanceId, stage_id: int) -> None:
        # Evaluated for the side effect: the row lock lasts until commit.
        list(
            models.Stage.objects.select_for_update()
            .filter(performance_id=performance_id.value)
            .order_by("position")[stage_id : stage_id + 1]
        )


class DjangoOutbox(NotificationOutbox):
    """Outbox backed by the MailNotification table."""

    def enqueue(self, notification: MailNotification) -> MailNotification:
        with _store_errors():
            row = models.MailNotification.objects.create(
                type=notification.type,
                recipient=notification.recipient,
                subject=notification.subject,
                body=notification.body,
                status=notification.status,
                reservation_id=notification.reservation_id.value,
            )
        return replace(notification, id=row.id, created_at=row.created_at)
