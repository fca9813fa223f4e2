"""Ledger change channel and live capacity recomputation.

Every committed ledger mutation sends ``ledger_changed``. Consumers that keep a
view of the ledger (the troupe dashboard, check-in trackers) subscribe here
instead of polling.
"""

import logging
import threading
from collections.abc import Callable

from django.dispatch import Signal

from reservations.domain import PerformanceId, StageCapacity
from reservations.domain.errors import DomainError
from reservations.services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

# Sent with performance_id (PerformanceId) and stage_id (int).
ledger_changed = Signal()

CapacityCallback = Callable[[list[StageCapacity]], None]


def notify_ledger_changed(sender, performance_id: PerformanceId, stage_id: int) -> None:
    """Announce a committed mutation. Receiver failures are logged, never raised."""
    responses = ledger_changed.send_robust(
        sender=sender, performance_id=performance_id, stage_id=stage_id
    )
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "Ledger change receiver %r failed for %s",
                receiver,
                performance_id,
                exc_info=response,
            )


class LiveCapacityFeed:
    """Recomputes stage capacities whenever a watched performance changes."""

    def __init__(self, availability: AvailabilityService) -> None:
        self._availability = availability
        self._lock = threading.Lock()
        self._subscribers: dict[PerformanceId, list[CapacityCallback]] = {}
        ledger_changed.connect(self._on_ledger_changed, weak=False)

    def subscribe(self, performance_id: PerformanceId, callback: CapacityCallback) -> None:
        with self._lock:
            self._subscribers.setdefault(performance_id, []).append(callback)

    def unsubscribe(self, performance_id: PerformanceId, callback: CapacityCallback) -> None:
        with self._lock:
            callbacks = self._subscribers.get(performance_id, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(performance_id, None)

    def close(self) -> None:
        ledger_changed.disconnect(self._on_ledger_changed)
        with self._lock:
            self._subscribers.clear()

    def _on_ledger_changed(self, sender, performance_id: PerformanceId, **kwargs) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(performance_id, []))
        if not callbacks:
            return
        try:
            capacities = self._availability.stage_availability(str(performance_id))
        except DomainError as exc:
            logger.warning(
                "Could not recompute capacity for %s: %s", performance_id, exc.code.value
            )
            return
        for callback in callbacks:
            try:
                callback(capacities)
            except Exception:
                # One broken subscriber must not starve the others.
                logger.exception("Capacity subscriber failed for %s", performance_id)
