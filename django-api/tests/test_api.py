"""Integration tests for the reservations HTTP API.

These validate status codes and payload shapes of the thin HTTP adapter.
Run with: pytest tests/test_api.py -v
"""

import uuid
from datetime import date, time

import pytest
from rest_framework.test import APIClient

from factories import OTHER_TROUPE, TROUPE
from reservations import models
from reservations.handlers import views
from reservations.stores.django_store import DjangoReservationLedger
from reservations.stores.interfaces import StoreError


@pytest.fixture
def performance_row() -> models.Performance:
    performance = models.Performance.objects.create(
        title="Hamlet", venue="Studio Theater", troupe_id=TROUPE
    )
    models.Stage.objects.create(
        performance=performance, position=0, date=date(2026, 6, 1),
        start_time=time(19, 30), end_time=time(21, 45), seat_limit=2,
    )
    models.Stage.objects.create(
        performance=performance, position=1, date=date(2026, 6, 2),
        start_time=time(15, 0), seat_limit=0,
    )
    return performance


def booking_url(performance, stage_id) -> str:
    return f"/api/performances/{performance.pk}/stages/{stage_id}/reservations"


def booking_payload(party_size=1, **overrides) -> dict:
    payload = {
        "party_size": party_size,
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "email_confirmation": "ada@example.com",
        "note": "",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def book(api_client: APIClient, performance_row):
    def _book(stage_id=0, party_size=1, **overrides):
        return api_client.post(
            booking_url(performance_row, stage_id),
            booking_payload(party_size, **overrides),
            format="json",
        )

    return _book


@pytest.fixture
def troupe_client() -> APIClient:
    client = APIClient()
    client.credentials(HTTP_X_TROUPE_ID=TROUPE)
    return client


def token_of(reservation_id) -> str:
    return models.Reservation.objects.get(pk=reservation_id).cancellation_token


@pytest.mark.django_db
class TestAvailability:
    """Tests for GET /api/performances/{id}/availability"""

    def test_lists_stages_with_occupancy(self, api_client, performance_row, book):
        book(stage_id=0, party_size=2)
        response = api_client.get(f"/api/performances/{performance_row.pk}/availability")

        assert response.status_code == 200
        assert response.data["performance_id"] == str(performance_row.pk)
        limited, unlimited = response.data["stages"]
        assert limited["occupancy"] == "full"
        assert limited["available"] == 0
        assert limited["start"] == "19:30"
        assert unlimited["available"] is None
        assert unlimited["occupancy"] == "available"
        assert unlimited["end"] is None

    def test_unknown_performance(self, api_client):
        response = api_client.get(f"/api/performances/{uuid.uuid4()}/availability")
        assert response.status_code == 404
        assert response.data["error"]["code"] == "PERFORMANCE_NOT_FOUND"

    def test_malformed_id_is_not_found(self, api_client):
        response = api_client.get("/api/performances/not-a-uuid/availability")
        assert response.status_code == 404


@pytest.mark.django_db
class TestCreateReservation:
    """Tests for POST /api/performances/{id}/stages/{n}/reservations"""

    def test_created(self, book):
        response = book(stage_id=0, party_size=2, note="front row")

        assert response.status_code == 201
        reservation = response.data["reservation"]
        assert reservation["party_size"] == 2
        assert reservation["status"] == "active"
        assert reservation["note"] == "front row"
        assert "cancellation_token" not in reservation
        token = token_of(reservation["id"])
        assert response.data["cancellation_url"].endswith(f"?token={token}")
        assert models.MailNotification.objects.filter(reservation_id=reservation["id"]).exists()

    def test_capacity_conflict_reports_counts(self, book):
        book(stage_id=0, party_size=1)
        response = book(stage_id=0, party_size=2)

        assert response.status_code == 409
        error = response.data["error"]
        assert error["code"] == "CAPACITY_EXCEEDED"
        assert (error["available"], error["requested"]) == (1, 2)

    def test_mismatched_email_confirmation(self, book):
        response = book(email_confirmation="other@example.com")
        assert response.status_code == 400
        assert response.data["error"]["field"] == "email_confirmation"

    def test_missing_party_size(self, api_client, performance_row):
        payload = booking_payload()
        del payload["party_size"]
        response = api_client.post(booking_url(performance_row, 0), payload, format="json")
        assert response.status_code == 400
        assert response.data["error"]["field"] == "party_size"

    def test_zero_party_size(self, book):
        response = book(party_size=0)
        assert response.status_code == 400
        assert response.data["error"]["field"] == "party_size"

    def test_unknown_stage(self, book):
        response = book(stage_id=7)
        assert response.status_code == 404
        assert response.data["error"]["code"] == "STAGE_NOT_FOUND"

    def test_storage_failure_is_503_without_details(self, book, monkeypatch):
        def broken(self, performance_id, stage_id):
            raise StoreError("connection to 10.0.0.5 refused")

        monkeypatch.setattr(DjangoReservationLedger, "list_for_stage", broken)
        response = book()

        assert response.status_code == 503
        assert response.data["error"]["code"] == "BACKEND_UNAVAILABLE"
        assert "10.0.0.5" not in str(response.data)


@pytest.mark.django_db
class TestCancellation:
    """Tests for GET and POST /api/reservations/cancel"""

    def test_describe(self, api_client, book):
        reservation_id = book(stage_id=0).data["reservation"]["id"]
        response = api_client.get("/api/reservations/cancel", {"token": token_of(reservation_id)})

        assert response.status_code == 200
        assert response.data["reservation"]["id"] == reservation_id
        assert response.data["performance"]["title"] == "Hamlet"
        assert response.data["stage"]["date"] == "2026-06-01"

    def test_unknown_token(self, api_client):
        response = api_client.get("/api/reservations/cancel", {"token": "f" * 64})
        assert response.status_code == 404
        assert response.data["error"]["code"] == "RESERVATION_NOT_FOUND"

    def test_cancel_is_idempotent_and_frees_seats(self, api_client, book):
        reservation_id = book(stage_id=0, party_size=2).data["reservation"]["id"]
        token = token_of(reservation_id)

        first = api_client.post("/api/reservations/cancel", {"token": token}, format="json")
        second = api_client.post("/api/reservations/cancel", {"token": token}, format="json")

        assert first.status_code == second.status_code == 200
        assert first.data["status"] == "cancelled"
        assert second.data["cancelled_at"] == first.data["cancelled_at"]
        assert book(stage_id=0, party_size=2).status_code == 201

    def test_missing_token(self, api_client):
        response = api_client.post("/api/reservations/cancel", {}, format="json")
        assert response.status_code == 400
        assert response.data["error"]["field"] == "token"


@pytest.mark.django_db
class TestTroupeDashboard:
    """Tests for the troupe reservation endpoints."""

    def test_summary(self, troupe_client, performance_row, book):
        book(stage_id=0, party_size=1, name="First")
        book(stage_id=1, party_size=4, name="Second")

        response = troupe_client.get(f"/api/troupe/performances/{performance_row.pk}/reservations")

        assert response.status_code == 200
        stage0, stage1 = response.data["stages"]
        assert (stage0["reserved"], stage0["seat_limit"], stage0["available"]) == (1, 2, 1)
        assert stage0["is_full"] is False
        assert [r["name"] for r in stage0["roster"]] == ["First"]
        assert stage1["available"] is None
        assert response.data["total_reserved"] == 5
        assert response.data["total_seat_limit"] == 2
        assert response.data["has_seat_limit"] is True

    def test_requires_troupe_identity(self, api_client, performance_row):
        response = api_client.get(f"/api/troupe/performances/{performance_row.pk}/reservations")
        assert response.status_code == 403

    def test_other_troupe_is_forbidden(self, performance_row):
        client = APIClient()
        client.credentials(HTTP_X_TROUPE_ID=OTHER_TROUPE)
        response = client.get(f"/api/troupe/performances/{performance_row.pk}/reservations")
        assert response.status_code == 403
        assert response.data["error"]["code"] == "ACCESS_DENIED"

    def test_reservation_list(self, troupe_client, performance_row, book):
        first = book(name="First").data["reservation"]["id"]
        second = book(stage_id=1, name="Second").data["reservation"]["id"]

        response = troupe_client.get("/api/troupe/reservations")

        assert response.status_code == 200
        (entry,) = response.data
        assert entry["performance"]["title"] == "Hamlet"
        assert [r["id"] for r in entry["reservations"]] == [second, first]


@pytest.mark.django_db
class TestCheckIn:
    """Tests for PUT /api/troupe/reservations/{id}/check-in"""

    def url(self, reservation_id) -> str:
        return f"/api/troupe/reservations/{reservation_id}/check-in"

    def test_toggle(self, troupe_client, book):
        reservation_id = book().data["reservation"]["id"]

        applied = troupe_client.put(self.url(reservation_id), {"checked_in": True}, format="json")
        repeated = troupe_client.put(self.url(reservation_id), {"checked_in": True}, format="json")

        assert applied.status_code == 200
        assert applied.data["outcome"] == "applied"
        assert applied.data["checked_in"] is True
        assert repeated.data["outcome"] == "unchanged"
        row = models.Reservation.objects.get(pk=reservation_id)
        assert row.checked_in and row.checked_in_at is not None

    def test_cancelled_reservation_is_disabled(self, api_client, troupe_client, book):
        reservation_id = book().data["reservation"]["id"]
        api_client.post(
            "/api/reservations/cancel", {"token": token_of(reservation_id)}, format="json"
        )

        response = troupe_client.put(self.url(reservation_id), {"checked_in": True}, format="json")

        assert response.status_code == 200
        assert response.data["outcome"] == "disabled"
        assert response.data["checked_in"] is False

    def test_missing_state(self, troupe_client, book):
        reservation_id = book().data["reservation"]["id"]
        response = troupe_client.put(self.url(reservation_id), {}, format="json")
        assert response.status_code == 400

    def test_unknown_reservation(self, troupe_client):
        response = troupe_client.put(self.url(uuid.uuid4()), {"checked_in": True}, format="json")
        assert response.status_code == 404

    def test_other_troupe_is_forbidden(self, book):
        reservation_id = book().data["reservation"]["id"]
        client = APIClient()
        client.credentials(HTTP_X_TROUPE_ID=OTHER_TROUPE)
        response = client.put(self.url(reservation_id), {"checked_in": True}, format="json")
        assert response.status_code == 403

    def test_trackers_are_not_retained_between_requests(self, book):
        """Unknown troupe ids leave nothing behind once their requests finish."""
        reservation_id = book().data["reservation"]["id"]
        for n in range(5):
            client = APIClient()
            client.credentials(HTTP_X_TROUPE_ID=f"stranger-{n}")
            client.put(self.url(reservation_id), {"checked_in": True}, format="json")

        assert len(views._in_flight) == 0
        assert views.get_check_in_tracker(TROUPE) is not views.get_check_in_tracker(TROUPE)
