from django.urls import path

from reservations.handlers import (
    AvailabilityView,
    CancellationView,
    CheckInView,
    ReservationCreateView,
    TroupePerformanceReservationsView,
    TroupeReservationListView,
)

urlpatterns = [
    path(
        "performances/<str:performance_id>/availability",
        AvailabilityView.as_view(),
        name="performance-availability",
    ),
    path(
        "performances/<str:performance_id>/stages/<str:stage_id>/reservations",
        ReservationCreateView.as_view(),
        name="reservation-create",
    ),
    path("reservations/cancel", CancellationView.as_view(), name="reservation-cancel"),
    path(
        "troupe/performances/<str:performance_id>/reservations",
        TroupePerformanceReservationsView.as_view(),
        name="troupe-performance-reservations",
    ),
    path(
        "troupe/reservations",
        TroupeReservationListView.as_view(),
        name="troupe-reservations",
    ),
    path(
        "troupe/reservations/<str:reservation_id>/check-in",
        CheckInView.as_view(),
        name="reservation-check-in",
    ),
]
