"""Unit tests for AvailabilityService (audience availability and troupe dashboard)."""

import uuid

import pytest

from factories import OTHER_TROUPE, TROUPE, contact, make_performance
from reservations.domain import Occupancy
from reservations.domain.errors import (
    AccessDeniedError,
    BackendError,
    PerformanceNotFoundError,
)
from reservations.services.availability_service import AvailabilityService
from reservations.stores.interfaces import StoreError
from reservations.stores.memory_store import InMemoryReservationLedger


@pytest.fixture
def availability(performance_store, ledger) -> AvailabilityService:
    return AvailabilityService(performance_store, ledger)


class TestStageAvailability:
    """Tests for AvailabilityService.stage_availability."""

    def test_one_entry_per_stage_in_order(self, availability, performance):
        capacities = availability.stage_availability(str(performance.id))
        assert [c.stage_id for c in capacities] == [0, 1, 2]

    def test_labels(self, availability, performance, book):
        book(stage_id=0, party_size=2)
        book(stage_id=2, party_size=6)
        full, unlimited, few = availability.stage_availability(str(performance.id))
        assert full.occupancy is Occupancy.FULL
        assert unlimited.occupancy is Occupancy.AVAILABLE
        assert unlimited.available is None
        assert few.occupancy is Occupancy.FEW
        assert few.available == 4

    def test_unknown_performance(self, availability):
        with pytest.raises(PerformanceNotFoundError):
            availability.stage_availability(str(uuid.uuid4()))

    def test_malformed_id(self, availability):
        with pytest.raises(PerformanceNotFoundError):
            availability.stage_availability("nope")

    def test_ledger_failure(self, performance_store, performance):
        class BrokenLedger(InMemoryReservationLedger):
            def list_for_performance(self, performance_id):
                raise StoreError("down")

        service = AvailabilityService(performance_store, BrokenLedger())
        with pytest.raises(BackendError):
            service.stage_availability(str(performance.id))


class TestPerformanceSummary:
    """Tests for AvailabilityService.performance_summary."""

    def test_numbers_per_stage(self, availability, performance, book, ledger):
        first = book(stage_id=0, party_size=1, name="First")
        book(stage_id=0, party_size=1, name="Second")
        book(stage_id=2, party_size=3, name="Third")
        ledger.set_check_in(first.id, True)

        summary = availability.performance_summary(str(performance.id), TROUPE)

        stage0, stage1, stage2 = summary.stages
        assert (stage0.capacity.reserved, stage0.capacity.seat_limit) == (2, 2)
        assert stage0.capacity.available == 0
        assert stage0.capacity.is_full
        assert stage0.checked_in_count == 1
        assert [r.contact.name for r in stage0.roster] == ["First", "Second"]
        assert stage1.capacity.reserved == 0
        assert stage1.capacity.available is None
        assert stage2.capacity.available == 7
        assert summary.total_reserved == 5
        assert summary.total_seat_limit == 12
        assert summary.has_seat_limit

    def test_cancelled_reservations_stay_on_roster_but_not_in_counts(
        self, availability, performance, book, ledger
    ):
        held = book(stage_id=0, party_size=2)
        ledger.set_check_in(held.id, True)
        ledger.mark_cancelled(held.id)

        stage0 = availability.performance_summary(str(performance.id), TROUPE).stages[0]
        assert stage0.capacity.reserved == 0
        assert stage0.checked_in_count == 0
        assert [r.id for r in stage0.roster] == [held.id]

    def test_without_seat_limits(self, performance_store, ledger):
        open_air = make_performance(0, 0)
        performance_store.put(open_air)
        summary = AvailabilityService(performance_store, ledger).performance_summary(
            str(open_air.id), TROUPE
        )
        assert summary.total_seat_limit == 0
        assert not summary.has_seat_limit

    def test_other_troupe_is_denied(self, availability, performance):
        with pytest.raises(AccessDeniedError):
            availability.performance_summary(str(performance.id), OTHER_TROUPE)


class TestTroupeReservations:
    """Tests for AvailabilityService.troupe_reservations."""

    def test_grouped_by_performance_newest_first(
        self, availability, performance_store, booking_service, performance, book
    ):
        later = make_performance(5, title="Macbeth")
        performance_store.put(later)
        performance_store.put(make_performance(5, troupe_id=OTHER_TROUPE))

        early = book(name="Early")
        late = book(name="Late")
        booking_service.create_reservation(str(later.id), 0, 1, contact(name="Elsewhere"))

        grouped = availability.troupe_reservations(TROUPE)

        assert [p.title for p, _ in grouped] == ["Macbeth", "Hamlet"]
        hamlet_reservations = grouped[1][1]
        assert [r.id for r in hamlet_reservations] == [late.id, early.id]

    def test_unknown_troupe_has_nothing(self, availability):
        assert availability.troupe_reservations("nobody") == []
