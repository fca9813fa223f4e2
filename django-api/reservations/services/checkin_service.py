"""Attendee check-in for troupe staff.

A tracker belongs to one staff session and one troupe. It keeps a local view
of who is checked in so the admission screen can update instantly, and writes
each toggle through to the ledger. Toggles are optimistic: the view flips
first and flips back if the write fails.
"""

import logging
import threading
from enum import Enum

from reservations.domain import (
    PerformanceId,
    Reservation,
    ReservationId,
)
from reservations.domain.errors import (
    AccessDeniedError,
    BackendError,
    PerformanceNotFoundError,
    ReservationNotFoundError,
)
from reservations.live import ledger_changed
from reservations.services.commands import OptimisticExecutor, SetCheckIn
from reservations.stores.interfaces import (
    PerformanceStore,
    ReservationLedger,
    StoreError,
)

logger = logging.getLogger(__name__)


class ToggleOutcome(Enum):
    """Result of a toggle request as shown to staff."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    DISABLED = "disabled"


class InFlightGuard:
    """Reservation ids with a check-in write in progress.

    Shared by every tracker in a process so a second toggle of the same
    reservation is ignored even when it arrives through another request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: set[ReservationId] = set()

    def claim(self, reservation_id: ReservationId) -> bool:
        with self._lock:
            if reservation_id in self._ids:
                return False
            self._ids.add(reservation_id)
            return True

    def release(self, reservation_id: ReservationId) -> None:
        with self._lock:
            self._ids.discard(reservation_id)

    def __contains__(self, reservation_id: object) -> bool:
        with self._lock:
            return reservation_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)


class CheckInTracker:
    """Per-session check-in state for one troupe's performances."""

    def __init__(
        self,
        ledger: ReservationLedger,
        performances: PerformanceStore,
        troupe_id: str,
        in_flight: InFlightGuard | None = None,
    ) -> None:
        self._ledger = ledger
        self._performances = performances
        self._troupe_id = troupe_id
        self._lock = threading.Lock()
        self._view: dict[ReservationId, bool] = {}
        self._in_flight = in_flight if in_flight is not None else InFlightGuard()
        self._owned: set[PerformanceId] = set()
        self._loaded: set[PerformanceId] = set()
        self._executor = OptimisticExecutor(state=self._view, lock=self._lock)

    @property
    def troupe_id(self) -> str:
        return self._troupe_id

    def load(self, performance_id: str | PerformanceId) -> None:
        """Seed the view with the performance's current check-in state.

        Raises:
            PerformanceNotFoundError: If the performance does not exist.
            AccessDeniedError: If it belongs to another troupe.
            BackendError: If the ledger cannot be read.
        """
        pid = _performance_id(performance_id)
        self._authorize(pid)
        self._loaded.add(pid)
        self.reconcile(pid)

    def reconcile(self, performance_id: PerformanceId) -> None:
        """Replace the view with ledger state, leaving in-flight toggles alone."""
        try:
            reservations = self._ledger.list_for_performance(performance_id)
        except StoreError as exc:
            logger.exception("Check-in view refresh failed for %s", performance_id)
            raise BackendError() from exc
        with self._lock:
            for reservation in reservations:
                if reservation.id not in self._in_flight:
                    self._view[reservation.id] = _is_checked_in(reservation)

    def start_live_updates(self) -> None:
        ledger_changed.connect(self._on_ledger_changed, weak=False)

    def close(self) -> None:
        ledger_changed.disconnect(self._on_ledger_changed)

    def is_checked_in(self, reservation_id: ReservationId) -> bool:
        with self._lock:
            return self._view.get(reservation_id, False)

    def is_saving(self, reservation_id: ReservationId) -> bool:
        return reservation_id in self._in_flight

    def checked_in_ids(self) -> frozenset[ReservationId]:
        with self._lock:
            return frozenset(rid for rid, checked in self._view.items() if checked)

    def toggle_check_in(
        self, reservation_id: str | ReservationId, desired_state: bool
    ) -> ToggleOutcome:
        """Mark a reservation as attended (True) or not (False).

        Raises:
            ReservationNotFoundError: If the reservation does not exist.
            AccessDeniedError: If it belongs to another troupe's performance.
            BackendError: If the write fails; the local view is rolled back.
        """
        rid = _reservation_id(reservation_id)
        if not self._in_flight.claim(rid):
            return ToggleOutcome.IGNORED
        try:
            return self._toggle(rid, desired_state)
        finally:
            self._in_flight.release(rid)

    def _toggle(self, rid: ReservationId, desired_state: bool) -> ToggleOutcome:
        reservation = self._read(rid)
        self._authorize(reservation.performance_id)
        if reservation.is_cancelled:
            self._set_view(rid, False)
            return ToggleOutcome.DISABLED
        if reservation.checked_in == desired_state:
            self._set_view(rid, desired_state)
            return ToggleOutcome.UNCHANGED

        stored = self._executor.run(
            SetCheckIn(rid, desired_state), lambda: self._write(rid, desired_state)
        )
        if stored.is_cancelled:
            # Cancelled between our read and the write; the ledger refused it.
            self._set_view(rid, False)
            return ToggleOutcome.DISABLED
        logger.info(
            "Reservation %s %s by troupe %s",
            rid, "checked in" if desired_state else "checked out", self._troupe_id,
        )
        return ToggleOutcome.APPLIED

    def _read(self, rid: ReservationId) -> Reservation:
        try:
            reservation = self._ledger.get_reservation(rid)
        except StoreError as exc:
            logger.exception("Could not read reservation %s", rid)
            raise BackendError() from exc
        if reservation is None:
            raise ReservationNotFoundError()
        return reservation

    def _write(self, rid: ReservationId, desired_state: bool) -> Reservation:
        try:
            stored = self._ledger.set_check_in(rid, desired_state)
        except StoreError as exc:
            logger.exception("Check-in write failed for reservation %s", rid)
            raise BackendError() from exc
        if stored is None:
            raise ReservationNotFoundError()
        return stored

    def _set_view(self, rid: ReservationId, checked_in: bool) -> None:
        with self._lock:
            self._view[rid] = checked_in

    def _authorize(self, performance_id: PerformanceId) -> None:
        if performance_id in self._owned:
            return
        try:
            performance = self._performances.get_performance(performance_id)
        except StoreError as exc:
            logger.exception("Could not load performance %s", performance_id)
            raise BackendError() from exc
        if performance is None:
            raise PerformanceNotFoundError(str(performance_id))
        if performance.troupe_id != self._troupe_id:
            logger.warning(
                "Troupe %s denied check-in access to performance %s",
                self._troupe_id, performance_id,
            )
            raise AccessDeniedError()
        self._owned.add(performance_id)

    def _on_ledger_changed(self, sender, performance_id: PerformanceId, **kwargs) -> None:
        if performance_id not in self._loaded:
            return
        try:
            self.reconcile(performance_id)
        except BackendError:
            logger.warning("Live check-in refresh skipped for %s", performance_id)


def _is_checked_in(reservation: Reservation) -> bool:
    return reservation.checked_in and not reservation.is_cancelled


def _performance_id(value: str | PerformanceId) -> PerformanceId:
    if isinstance(value, PerformanceId):
        return value
    try:
        return PerformanceId.from_string(value)
    except ValueError as exc:
        raise PerformanceNotFoundError(str(value)) from exc


def _reservation_id(value: str | ReservationId) -> ReservationId:
    if isinstance(value, ReservationId):
        return value
    try:
        return ReservationId.from_string(value)
    except ValueError as exc:
        raise ReservationNotFoundError() from exc
