"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from reservations.domain import (
    CancellationToken,
    MailNotification,
    Performance,
    PerformanceId,
    Reservation,
    ReservationDraft,
    ReservationId,
)

AdmissionCheck = Callable[[Sequence[Reservation]], None]


class StoreError(Exception):
    """Raised by a store when the backend cannot serve the request."""


class PerformanceStore(ABC):
    """Read-only access to performances and their stages."""

    @abstractmethod
    def get_performance(self, performance_id: PerformanceId) -> Performance | None:
        """Return a performance with its stages in index order, or None."""
        ...

    @abstractmethod
    def list_performances_for_troupe(self, troupe_id: str) -> list[Performance]:
        """Return the troupe's performances, newest first."""
        ...


class ReservationLedger(ABC):
    """Interface for reservation persistence operations."""

    @abstractmethod
    def list_for_stage(
        self, performance_id: PerformanceId, stage_id: int
    ) -> list[Reservation]:
        """Return every reservation for one stage, cancelled ones included."""
        ...

    @abstractmethod
    def list_for_performance(self, performance_id: PerformanceId) -> list[Reservation]:
        """Return every reservation for a performance ordered by created_at."""
        ...

    @abstractmethod
    def get_reservation(self, reservation_id: ReservationId) -> Reservation | None:
        """Return a reservation by ID, or None if not found."""
        ...

    @abstractmethod
    def find_by_token(self, token: CancellationToken) -> Reservation | None:
        """Return the reservation issued ``token``, or None."""
        ...

    @abstractmethod
    def add_reservation(
        self, draft: ReservationDraft, check: AdmissionCheck
    ) -> Reservation:
        """Write ``draft`` as an active reservation.

        ``check`` receives the stage's reservations as read immediately before
        the write and raises to veto it. Nothing is written when it raises.
        """
        ...

    @abstractmethod
    def mark_cancelled(self, reservation_id: ReservationId) -> Reservation | None:
        """Cancel a reservation, stamping cancelled_at with server time.

        Already-cancelled reservations are returned untouched.
        """
        ...

    @abstractmethod
    def set_check_in(
        self, reservation_id: ReservationId, checked_in: bool
    ) -> Reservation | None:
        """Set the check-in flag unless the reservation is cancelled.

        checked_in_at is set to server time when checking in and cleared when
        checking out. Returns the reservation as stored after the call.
        """
        ...


class NotificationOutbox(ABC):
    """Queue of mails for the delivery collaborator."""

    @abstractmethod
    def enqueue(self, notification: MailNotification) -> MailNotification:
        """Persist a pending notification and return it with id and created_at."""
        ...
