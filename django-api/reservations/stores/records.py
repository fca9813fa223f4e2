"""Document encoding for reservation records.

Documents written before schema_version existed use camelCase keys, store the
party size under ``people`` and may omit status or check-in fields entirely.
All defaulting for those shapes happens here so the rest of the code only ever
sees complete domain objects.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from reservations.domain import (
    CancellationToken,
    ContactInfo,
    EmailAddress,
    PartySize,
    PerformanceId,
    Reservation,
    ReservationId,
    ReservationStatus,
)
from reservations.domain.models import RESERVATION_SCHEMA_VERSION
from reservations.stores.interfaces import StoreError

LEGACY_SCHEMA_VERSION = 0


class RecordError(StoreError):
    """Raised when a document cannot be decoded into a reservation."""


def encode_reservation(reservation: Reservation) -> dict[str, Any]:
    return {
        "schema_version": RESERVATION_SCHEMA_VERSION,
        "id": str(reservation.id),
        "performance_id": str(reservation.performance_id),
        "stage_id": reservation.stage_id,
        "party_size": reservation.party_size.value,
        "name": reservation.contact.name,
        "email": str(reservation.contact.email),
        "note": reservation.note,
        "status": reservation.status.value,
        "cancellation_token": str(reservation.cancellation_token),
        "checked_in": reservation.checked_in,
        "checked_in_at": reservation.checked_in_at,
        "created_at": reservation.created_at,
        "cancelled_at": reservation.cancelled_at,
    }


def decode_reservation(document: Mapping[str, Any]) -> Reservation:
    version = document.get("schema_version", LEGACY_SCHEMA_VERSION)
    try:
        if version == LEGACY_SCHEMA_VERSION:
            return _decode_legacy(document)
        if version == RESERVATION_SCHEMA_VERSION:
            return _decode_current(document)
    except (KeyError, TypeError, ValueError) as exc:
        raise RecordError(f"Undecodable reservation document: {exc}") from exc
    raise RecordError(f"Unknown reservation schema version: {version!r}")


def _decode_current(document: Mapping[str, Any]) -> Reservation:
    return Reservation(
        id=ReservationId.from_string(document["id"]),
        performance_id=PerformanceId.from_string(document["performance_id"]),
        stage_id=int(document["stage_id"]),
        party_size=PartySize(value=document["party_size"]),
        contact=ContactInfo(
            name=document["name"], email=EmailAddress(value=document["email"])
        ),
        note=document.get("note", ""),
        status=ReservationStatus(document["status"]),
        cancellation_token=CancellationToken(value=document["cancellation_token"]),
        checked_in=bool(document.get("checked_in", False)),
        checked_in_at=document.get("checked_in_at"),
        created_at=_as_datetime(document["created_at"]),
        cancelled_at=document.get("cancelled_at"),
        schema_version=RESERVATION_SCHEMA_VERSION,
    )


def _decode_legacy(document: Mapping[str, Any]) -> Reservation:
    status = ReservationStatus(document.get("status") or ReservationStatus.ACTIVE.value)
    return Reservation(
        id=ReservationId.from_string(document["id"]),
        performance_id=PerformanceId.from_string(document["performanceId"]),
        stage_id=int(document["stageId"]),
        party_size=PartySize.coerce(document.get("people")),
        contact=ContactInfo(
            name=document.get("name") or "-",
            email=EmailAddress(value=document["email"]),
        ),
        note=document.get("note") or "",
        status=status,
        cancellation_token=CancellationToken(value=document["cancelToken"]),
        # Cancelled reservations never count as attended.
        checked_in=document.get("checkedIn") is True and not status.is_cancelled,
        checked_in_at=document.get("checkedInAt"),
        created_at=_as_datetime(document["createdAt"]),
        cancelled_at=document.get("cancelledAt"),
        schema_version=LEGACY_SCHEMA_VERSION,
    )


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def document_token(document: Mapping[str, Any]) -> str | None:
    """Cancellation token of a document in either schema."""
    if document.get("schema_version", LEGACY_SCHEMA_VERSION) == LEGACY_SCHEMA_VERSION:
        return document.get("cancelToken")
    return document.get("cancellation_token")


def document_performance_id(document: Mapping[str, Any]) -> str | None:
    """Performance key of a document in either schema, in canonical UUID form."""
    if document.get("schema_version", LEGACY_SCHEMA_VERSION) == LEGACY_SCHEMA_VERSION:
        key = document.get("performanceId")
    else:
        key = document.get("performance_id")
    if key is None:
        return None
    try:
        return str(PerformanceId.from_string(key))
    except ValueError:
        return str(key)
