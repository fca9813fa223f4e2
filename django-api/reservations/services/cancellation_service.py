"""Cancellation by credential.

Cancellation is logical: the record stays in the ledger with status
``cancelled`` so check-in history and reporting keep seeing it, while the
capacity calculator stops counting its seats.
"""

import logging
from dataclasses import dataclass

from reservations.domain import (
    CancellationToken,
    Performance,
    Reservation,
    ReservationId,
    Stage,
)
from reservations.domain.errors import BackendError, ReservationNotFoundError
from reservations.stores.interfaces import (
    PerformanceStore,
    ReservationLedger,
    StoreError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationView:
    """What the cancellation page shows for a token."""

    reservation: Reservation
    performance: Performance | None = None

    @property
    def stage(self) -> Stage | None:
        if self.performance is None:
            return None
        return self.performance.stage(self.reservation.stage_id)


class CancellationService:
    """Service for resolving and cancelling reservations."""

    def __init__(self, ledger: ReservationLedger, performances: PerformanceStore) -> None:
        self._ledger = ledger
        self._performances = performances

    def resolve_by_credential(self, token: str) -> Reservation:
        """Return the reservation issued ``token``.

        Raises:
            ReservationNotFoundError: If the token is malformed or unknown.
            BackendError: If the ledger cannot be read.
        """
        try:
            credential = CancellationToken(value=(token or "").strip())
        except ValueError as exc:
            raise ReservationNotFoundError() from exc
        try:
            reservation = self._ledger.find_by_token(credential)
        except StoreError as exc:
            logger.exception("Token lookup failed")
            raise BackendError() from exc
        if reservation is None:
            raise ReservationNotFoundError()
        return reservation

    def cancel(self, reservation_id: ReservationId) -> None:
        """Cancel a reservation. Cancelling twice is a no-op.

        Raises:
            ReservationNotFoundError: If the reservation does not exist.
            BackendError: If the ledger write fails.
        """
        try:
            reservation = self._ledger.mark_cancelled(reservation_id)
        except StoreError as exc:
            logger.exception("Cancelling reservation %s failed", reservation_id)
            raise BackendError() from exc
        if reservation is None:
            raise ReservationNotFoundError()
        logger.info(
            "Reservation %s cancelled at %s", reservation.id, reservation.cancelled_at
        )

    def cancel_by_credential(self, token: str) -> Reservation:
        reservation = self.resolve_by_credential(token)
        if not reservation.is_cancelled:
            self.cancel(reservation.id)
            reservation = self.resolve_by_credential(token)
        return reservation

    def describe(self, token: str) -> CancellationView:
        """Reservation plus its performance for display.

        The performance is best effort: if it cannot be loaded the view still
        carries the reservation so the holder can cancel.
        """
        reservation = self.resolve_by_credential(token)
        try:
            performance = self._performances.get_performance(reservation.performance_id)
        except StoreError:
            logger.warning(
                "Performance %s unavailable for cancellation page",
                reservation.performance_id,
                exc_info=True,
            )
            performance = None
        return CancellationView(reservation=reservation, performance=performance)
