"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from factories import CANCEL_URL, TickingClock, contact, make_performance
from reservations.domain import Performance
from reservations.services.booking_service import BookingService
from reservations.stores.memory_store import (
    InMemoryOutbox,
    InMemoryPerformanceStore,
    InMemoryReservationLedger,
)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def performance() -> Performance:
    """Three stages: limit 2, unlimited, limit 10."""
    return make_performance(2, 0, 10)


@pytest.fixture
def performance_store(performance) -> InMemoryPerformanceStore:
    return InMemoryPerformanceStore([performance])


@pytest.fixture
def ledger(clock) -> InMemoryReservationLedger:
    return InMemoryReservationLedger(clock=clock)


@pytest.fixture
def outbox(clock) -> InMemoryOutbox:
    return InMemoryOutbox(clock=clock)


@pytest.fixture
def booking_service(performance_store, ledger, outbox) -> BookingService:
    return BookingService(performance_store, ledger, outbox, cancel_url=CANCEL_URL)


@pytest.fixture
def book(booking_service, performance):
    """Book on the default performance: book(stage_id, party_size, **contact kwargs)."""

    def _book(stage_id: int = 0, party_size: int = 1, **contact_fields):
        return booking_service.create_reservation(
            str(performance.id), stage_id, party_size, contact(**contact_fields)
        )

    return _book
