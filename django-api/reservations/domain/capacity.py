"""Seat accounting derived from the reservation ledger.

Everything here is pure and synchronous. The booking path, the troupe
dashboard and the audience availability page all call the same functions so
the three can never disagree about how many seats are left.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from reservations.domain.models import Reservation, Stage
from reservations.domain.value_objects import PartySize

FEW_SEATS_THRESHOLD = 5


class Occupancy(Enum):
    """Label shown to audiences for a stage."""

    AVAILABLE = "available"
    FEW = "few"
    FULL = "full"


def seats_held(reservation: Reservation) -> int:
    """Seats a reservation occupies; 0 once cancelled."""
    if reservation.is_cancelled:
        return 0
    party_size = getattr(reservation, "party_size", None)
    if isinstance(party_size, PartySize):
        return party_size.value
    return PartySize.coerce(party_size).value


def reserved_count(reservations: Iterable[Reservation]) -> int:
    return sum(seats_held(r) for r in reservations)


def seat_limit_total(stages: Iterable[Stage]) -> int:
    """Sum of seat limits over capped stages. Unlimited stages are skipped."""
    return sum(s.seat_limit.value for s in stages if not s.seat_limit.is_unlimited)


def available_count(limit: int, reserved: int) -> int | None:
    """Seats left, or None when the stage is unlimited. May be negative."""
    if limit <= 0:
        return None
    return limit - reserved


def classify(reserved: int, limit: int) -> Occupancy:
    available = available_count(limit, reserved)
    if available is None:
        return Occupancy.AVAILABLE
    if available <= 0:
        return Occupancy.FULL
    if available <= FEW_SEATS_THRESHOLD:
        return Occupancy.FEW
    return Occupancy.AVAILABLE


@dataclass(frozen=True)
class StageCapacity:
    """Capacity view of one stage at the moment it was computed."""

    stage: Stage
    reserved: int

    @property
    def stage_id(self) -> int:
        return self.stage.stage_id

    @property
    def seat_limit(self) -> int:
        return self.stage.seat_limit.value

    @property
    def available(self) -> int | None:
        return available_count(self.seat_limit, self.reserved)

    @property
    def occupancy(self) -> Occupancy:
        return classify(self.reserved, self.seat_limit)

    @property
    def is_full(self) -> bool:
        return self.occupancy is Occupancy.FULL

    def admits(self, party_size: int) -> bool:
        available = self.available
        return available is None or party_size <= available


def stage_capacity(stage: Stage, reservations: Iterable[Reservation]) -> StageCapacity:
    """Capacity of ``stage`` given ledger entries, which may span other stages."""
    reserved = reserved_count(r for r in reservations if r.stage_id == stage.stage_id)
    return StageCapacity(stage=stage, reserved=reserved)
