"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.core.cache import cache
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from reservations import conf
from reservations.cache_keys import availability_generation, availability_key
from reservations.domain import PerformanceId, ReservationId
from reservations.domain.errors import (
    AccessDeniedError,
    BackendError,
    CapacityError,
    DomainError,
    NotFoundError,
    PerformanceNotFoundError,
    ValidationError,
)
from reservations.handlers.serializers import (
    CancelRequestSerializer,
    CancellationViewSerializer,
    CheckInRequestSerializer,
    PerformanceSerializer,
    PerformanceSummarySerializer,
    ReservationRequestSerializer,
    ReservationSerializer,
    StageAvailabilitySerializer,
)
from reservations.services.availability_service import AvailabilityService
from reservations.services.booking_service import BookingService, ContactForm
from reservations.services.cancellation_service import CancellationService
from reservations.services.checkin_service import CheckInTracker, InFlightGuard, ToggleOutcome
from reservations.stores.django_store import (
    DjangoOutbox,
    DjangoPerformanceStore,
    DjangoReservationLedger,
)

TROUPE_HEADER = "X-Troupe-Id"

# Only writes in progress are shared between requests; each request builds
# its own tracker view.
_in_flight = InFlightGuard()


def _ledger() -> DjangoReservationLedger:
    return DjangoReservationLedger(lock_stage=conf.get("LOCK_STAGE_ON_COMMIT"))


def get_booking_service() -> BookingService:
    return BookingService(
        performances=DjangoPerformanceStore(),
        ledger=_ledger(),
        outbox=DjangoOutbox(),
        cancel_url=conf.get("CANCEL_URL"),
        mail_subject=conf.get("MAIL_SUBJECT"),
    )


def get_cancellation_service() -> CancellationService:
    return CancellationService(ledger=_ledger(), performances=DjangoPerformanceStore())


def get_availability_service() -> AvailabilityService:
    return AvailabilityService(performances=DjangoPerformanceStore(), ledger=_ledger())


def get_check_in_tracker(troupe_id: str) -> CheckInTracker:
    return CheckInTracker(
        ledger=_ledger(),
        performances=DjangoPerformanceStore(),
        troupe_id=troupe_id,
        in_flight=_in_flight,
    )


_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (CapacityError, status.HTTP_409_CONFLICT),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (BackendError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def error_response(error: DomainError) -> Response:
    body: dict = {"code": error.code.value, "message": error.message}
    if isinstance(error, ValidationError):
        body["field"] = error.field
    if isinstance(error, CapacityError):
        body["available"] = error.available
        body["requested"] = error.requested
    http_status = next(
        (code for cls, code in _STATUS_BY_ERROR if isinstance(error, cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return Response({"error": body}, status=http_status)


def invalid_input_response(errors: dict) -> Response:
    field = next(iter(errors), None)
    message = str(errors[field][0]) if field else "Invalid request"
    return error_response(ValidationError(field or "non_field_errors", message))


def troupe_id_from(request: Request) -> str:
    troupe_id = (request.headers.get(TROUPE_HEADER) or "").strip()
    if not troupe_id:
        raise AccessDeniedError()
    return troupe_id


class AvailabilityView(APIView):
    """Handler for GET /api/performances/{performance_id}/availability"""

    def get(self, request: Request, performance_id: str) -> Response:
        try:
            pid = PerformanceId.from_string(performance_id)
        except ValueError:
            return error_response(PerformanceNotFoundError(performance_id))

        key = availability_key(pid)
        generation = availability_generation(pid)
        entry = cache.get(key)
        if entry is not None and entry["generation"] == generation:
            return Response(entry["data"])

        try:
            capacities = get_availability_service().stage_availability(performance_id)
        except DomainError as exc:
            return error_response(exc)
        data = {
            "performance_id": str(pid),
            "stages": StageAvailabilitySerializer(capacities, many=True).data,
        }
        cache.set(
            key,
            {"generation": generation, "data": data},
            conf.get("AVAILABILITY_CACHE_TIMEOUT"),
        )
        return Response(data)


class ReservationCreateView(APIView):
    """Handler for POST /api/performances/{performance_id}/stages/{stage_id}/reservations"""

    def post(self, request: Request, performance_id: str, stage_id: str) -> Response:
        serializer = ReservationRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer.errors)
        payload = serializer.validated_data

        service = get_booking_service()
        try:
            reservation = service.create_reservation(
                performance_id=performance_id,
                stage_id=stage_id,
                party_size=payload["party_size"],
                contact=ContactForm(
                    name=payload["name"],
                    email=payload["email"],
                    email_confirmation=payload["email_confirmation"],
                ),
                note=payload["note"],
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            {
                "reservation": ReservationSerializer(reservation).data,
                "cancellation_url": service.cancellation_url(reservation),
            },
            status=status.HTTP_201_CREATED,
        )


class CancellationView(APIView):
    """Handler for GET and POST /api/reservations/cancel"""

    def get(self, request: Request) -> Response:
        try:
            view = get_cancellation_service().describe(request.query_params.get("token", ""))
        except DomainError as exc:
            return error_response(exc)
        return Response(CancellationViewSerializer(view).data)

    def post(self, request: Request) -> Response:
        serializer = CancelRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer.errors)
        try:
            reservation = get_cancellation_service().cancel_by_credential(
                serializer.validated_data["token"]
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(ReservationSerializer(reservation).data)


class TroupePerformanceReservationsView(APIView):
    """Handler for GET /api/troupe/performances/{performance_id}/reservations"""

    def get(self, request: Request, performance_id: str) -> Response:
        try:
            summary = get_availability_service().performance_summary(
                performance_id, troupe_id_from(request)
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(PerformanceSummarySerializer(summary).data)


class TroupeReservationListView(APIView):
    """Handler for GET /api/troupe/reservations"""

    def get(self, request: Request) -> Response:
        try:
            grouped = get_availability_service().troupe_reservations(troupe_id_from(request))
        except DomainError as exc:
            return error_response(exc)
        return Response(
            [
                {
                    "performance": PerformanceSerializer(performance).data,
                    "reservations": ReservationSerializer(reservations, many=True).data,
                }
                for performance, reservations in grouped
            ]
        )


class CheckInView(APIView):
    """Handler for PUT /api/troupe/reservations/{reservation_id}/check-in"""

    def put(self, request: Request, reservation_id: str) -> Response:
        serializer = CheckInRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer.errors)
        try:
            tracker = get_check_in_tracker(troupe_id_from(request))
            outcome = tracker.toggle_check_in(
                reservation_id, serializer.validated_data["checked_in"]
            )
        except DomainError as exc:
            return error_response(exc)
        if outcome is ToggleOutcome.IGNORED:
            # Another request owns the write; its result is not known yet.
            checked_in = None
        else:
            checked_in = tracker.is_checked_in(ReservationId.from_string(reservation_id))
        return Response(
            {
                "reservation_id": reservation_id,
                "outcome": outcome.value,
                "checked_in": checked_in,
            }
        )
