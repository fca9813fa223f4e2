from reservations.handlers.views import (
    AvailabilityView,
    CancellationView,
    CheckInView,
    ReservationCreateView,
    TroupePerformanceReservationsView,
    TroupeReservationListView,
)

__all__ = [
    "AvailabilityView",
    "ReservationCreateView",
    "CancellationView",
    "TroupePerformanceReservationsView",
    "TroupeReservationListView",
    "CheckInView",
]
