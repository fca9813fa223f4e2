"""Optimistic local commands.

A command is applied to a local view first, then dispatched to the store. If
dispatch raises, the inverse command is applied so the view returns to what it
was before, and the error propagates.
"""

from collections.abc import Callable, MutableMapping
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from reservations.domain import ReservationId

S = TypeVar("S")
R = TypeVar("R")


class LocalCommand(Protocol[S]):
    def apply(self, state: S) -> None: ...

    def inverse(self) -> "LocalCommand[S]": ...


@dataclass(frozen=True)
class SetCheckIn:
    """Set one reservation's check-in flag in a view keyed by reservation id."""

    reservation_id: ReservationId
    checked_in: bool

    def apply(self, state: MutableMapping[ReservationId, bool]) -> None:
        state[self.reservation_id] = self.checked_in

    def inverse(self) -> "SetCheckIn":
        return SetCheckIn(self.reservation_id, not self.checked_in)


@dataclass
class OptimisticExecutor(Generic[S]):
    """Runs commands against ``state`` with rollback on dispatch failure.

    ``lock`` guards the state; it is released while dispatch runs.
    """

    state: S
    lock: AbstractContextManager

    def run(self, command: LocalCommand[S], dispatch: Callable[[], R]) -> R:
        with self.lock:
            command.apply(self.state)
        try:
            return dispatch()
        except Exception:
            with self.lock:
                command.inverse().apply(self.state)
            raise
