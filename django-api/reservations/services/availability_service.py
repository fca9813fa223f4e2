"""Read-side queries: audience availability and the troupe dashboard."""

import logging
from dataclasses import dataclass

from reservations.domain import (
    Performance,
    PerformanceId,
    Reservation,
    StageCapacity,
)
from reservations.domain.capacity import seat_limit_total, stage_capacity
from reservations.domain.errors import (
    AccessDeniedError,
    BackendError,
    PerformanceNotFoundError,
)
from reservations.stores.interfaces import (
    PerformanceStore,
    ReservationLedger,
    StoreError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageSummary:
    capacity: StageCapacity
    checked_in_count: int
    roster: tuple[Reservation, ...]

    @property
    def stage_id(self) -> int:
        return self.capacity.stage_id


@dataclass(frozen=True)
class PerformanceSummary:
    """Per-stage occupancy and roster for one performance."""

    performance: Performance
    stages: tuple[StageSummary, ...]

    @property
    def total_reserved(self) -> int:
        return sum(s.capacity.reserved for s in self.stages)

    @property
    def total_seat_limit(self) -> int:
        return seat_limit_total(self.performance.stages)

    @property
    def has_seat_limit(self) -> bool:
        return self.total_seat_limit > 0


class AvailabilityService:
    """Service for capacity and roster queries."""

    def __init__(self, performances: PerformanceStore, ledger: ReservationLedger) -> None:
        self._performances = performances
        self._ledger = ledger

    def stage_availability(self, performance_id: str) -> list[StageCapacity]:
        """Capacity of every stage of a performance, in stage order.

        Raises:
            PerformanceNotFoundError: If the id is malformed or unknown.
            BackendError: If a store cannot be read.
        """
        performance = self._load_performance(performance_id)
        reservations = self._reservations(performance.id)
        return [stage_capacity(stage, reservations) for stage in performance.stages]

    def performance_summary(self, performance_id: str, troupe_id: str) -> PerformanceSummary:
        """Dashboard view of a performance for the troupe that owns it.

        Raises:
            PerformanceNotFoundError: If the id is malformed or unknown.
            AccessDeniedError: If the performance belongs to another troupe.
            BackendError: If a store cannot be read.
        """
        performance = self._load_performance(performance_id)
        if performance.troupe_id != troupe_id:
            logger.warning(
                "Troupe %s denied access to performance %s", troupe_id, performance.id
            )
            raise AccessDeniedError()

        reservations = self._reservations(performance.id)
        stages = []
        for stage in performance.stages:
            roster = tuple(r for r in reservations if r.stage_id == stage.stage_id)
            stages.append(
                StageSummary(
                    capacity=stage_capacity(stage, roster),
                    checked_in_count=sum(
                        1 for r in roster if r.checked_in and not r.is_cancelled
                    ),
                    roster=roster,
                )
            )
        return PerformanceSummary(performance=performance, stages=tuple(stages))

    def troupe_reservations(self, troupe_id: str) -> list[tuple[Performance, list[Reservation]]]:
        """Reservations for each of the troupe's performances, newest first."""
        try:
            performances = self._performances.list_performances_for_troupe(troupe_id)
        except StoreError as exc:
            logger.exception("Could not list performances for troupe %s", troupe_id)
            raise BackendError() from exc
        result = []
        for performance in performances:
            reservations = self._reservations(performance.id)
            result.append(
                (performance, sorted(reservations, key=lambda r: r.created_at, reverse=True))
            )
        return result

    def _load_performance(self, performance_id: str) -> Performance:
        try:
            pid = PerformanceId.from_string(performance_id)
        except ValueError as exc:
            raise PerformanceNotFoundError(str(performance_id)) from exc
        try:
            performance = self._performances.get_performance(pid)
        except StoreError as exc:
            logger.exception("Could not load performance %s", pid)
            raise BackendError() from exc
        if performance is None:
            raise PerformanceNotFoundError(str(pid))
        return performance

    def _reservations(self, performance_id: PerformanceId) -> list[Reservation]:
        try:
            return self._ledger.list_for_performance(performance_id)
        except StoreError as exc:
            logger.exception("Could not read ledger for %s", performance_id)
            raise BackendError() from exc
