"""In-process document store.

Reservations are kept as encoded documents, the same shape a document database
would hold, and decoded on every read. A single re-entrant lock serialises
writes, so the commit-time admission check and the insert it guards are
atomic with respect to every other writer on this instance.
"""

import logging
import threading
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from reservations.domain import (
    CancellationToken,
    MailNotification,
    Performance,
    PerformanceId,
    Reservation,
    ReservationDraft,
    ReservationId,
    ReservationStatus,
)
from reservations.live import notify_ledger_changed
from reservations.stores.interfaces import (
    AdmissionCheck,
    NotificationOutbox,
    PerformanceStore,
    ReservationLedger,
)
from reservations.stores.records import (
    RecordError,
    decode_reservation,
    document_performance_id,
    document_token,
    encode_reservation,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryPerformanceStore(PerformanceStore):
    """Performance store backed by a dict, for tests and local tooling."""

    def __init__(self, performances: Iterable[Performance] = ()) -> None:
        self._performances: dict[PerformanceId, Performance] = {}
        for performance in performances:
            self.put(performance)

    def put(self, performance: Performance) -> None:
        self._performances[performance.id] = performance

    def get_performance(self, performance_id: PerformanceId) -> Performance | None:
        return self._performances.get(performance_id)

    def list_performances_for_troupe(self, troupe_id: str) -> list[Performance]:
        # Insertion order stands in for creation time.
        matches = [p for p in self._performances.values() if p.troupe_id == troupe_id]
        return list(reversed(matches))


class InMemoryReservationLedger(ReservationLedger):
    """Reservation ledger holding encoded documents keyed by id."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._documents: dict[str, dict[str, Any]] = {}

    def load_documents(self, documents: Iterable[Mapping[str, Any]]) -> None:
        """Import raw documents, e.g. records written by an older client."""
        with self._lock:
            for document in documents:
                self._documents[str(document["id"])] = dict(document)

    def list_for_stage(
        self, performance_id: PerformanceId, stage_id: int
    ) -> list[Reservation]:
        return [
            r
            for r in self.list_for_performance(performance_id)
            if r.stage_id == stage_id
        ]

    def list_for_performance(self, performance_id: PerformanceId) -> list[Reservation]:
        key = str(performance_id)
        with self._lock:
            documents = [
                d for d in self._documents.values() if document_performance_id(d) == key
            ]
        matches = [r for r in map(_decode_or_skip, documents) if r is not None]
        return sorted(matches, key=lambda r: r.created_at)

    def get_reservation(self, reservation_id: ReservationId) -> Reservation | None:
        with self._lock:
            document = self._documents.get(str(reservation_id))
            return decode_reservation(document) if document else None

    def find_by_token(self, token: CancellationToken) -> Reservation | None:
        with self._lock:
            documents = list(self._documents.values())
        for document in documents:
            if document_token(document) == token.value:
                reservation = _decode_or_skip(document)
                if reservation is not None:
                    return reservation
        return None

    def add_reservation(
        self, draft: ReservationDraft, check: AdmissionCheck
    ) -> Reservation:
        with self._lock:
            check(self.list_for_stage(draft.performance_id, draft.stage_id))
            reservation = Reservation(
                id=ReservationId(value=uuid.uuid4()),
                performance_id=draft.performance_id,
                stage_id=draft.stage_id,
                party_size=draft.party_size,
                contact=draft.contact,
                note=draft.note,
                status=ReservationStatus.ACTIVE,
                cancellation_token=draft.cancellation_token,
                created_at=self._clock(),
            )
            self._documents[str(reservation.id)] = encode_reservation(reservation)
        notify_ledger_changed(self, reservation.performance_id, reservation.stage_id)
        return reservation

    def mark_cancelled(self, reservation_id: ReservationId) -> Reservation | None:
        with self._lock:
            current = self.get_reservation(reservation_id)
            if current is None or current.is_cancelled:
                return current
            updated = replace(
                current,
                status=ReservationStatus.CANCELLED,
                cancelled_at=self._clock(),
            )
            self._store(updated)
        notify_ledger_changed(self, updated.performance_id, updated.stage_id)
        return updated

    def set_check_in(
        self, reservation_id: ReservationId, checked_in: bool
    ) -> Reservation | None:
        with self._lock:
            current = self.get_reservation(reservation_id)
            if current is None or current.is_cancelled:
                return current
            updated = replace(
                current,
                checked_in=checked_in,
                checked_in_at=self._clock() if checked_in else None,
            )
            self._store(updated)
        notify_ledger_changed(self, updated.performance_id, updated.stage_id)
        return updated

    def _store(self, reservation: Reservation) -> None:
        # Rewriting a legacy document upgrades it to the current schema.
        self._documents[str(reservation.id)] = encode_reservation(reservation)


class InMemoryOutbox(NotificationOutbox):
    """Outbox that keeps queued notifications in a list."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self.notifications: list[MailNotification] = []

    def enqueue(self, notification: MailNotification) -> MailNotification:
        stored = replace(notification, id=uuid.uuid4(), created_at=self._clock())
        self.notifications.append(stored)
        return stored


def _decode_or_skip(document: Mapping[str, Any]) -> Reservation | None:
    try:
        return decode_reservation(document)
    except RecordError as exc:
        logger.warning("Skipping reservation document %s: %s", document.get("id"), exc)
        return None
