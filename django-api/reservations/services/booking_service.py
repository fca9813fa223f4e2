"""Booking service - the create-reservation use case.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Capacity is checked twice: once against a plain read so obviously doomed
requests fail fast, and again by the ledger immediately before it writes. This
narrows the race between concurrent bookings but does not close it unless the
ledger serialises writers per stage.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from reservations.domain import (
    CancellationToken,
    ContactInfo,
    EmailAddress,
    MailNotification,
    PartySize,
    Performance,
    PerformanceId,
    Reservation,
    ReservationDraft,
    Stage,
)
from reservations.domain.capacity import stage_capacity
from reservations.domain.errors import (
    BackendError,
    CapacityError,
    PerformanceNotFoundError,
    StageNotFoundError,
    ValidationError,
)
from reservations.stores.interfaces import (
    NotificationOutbox,
    PerformanceStore,
    ReservationLedger,
    StoreError,
)

logger = logging.getLogger(__name__)

CONFIRMATION_MAIL_TYPE = "reservation_confirmation"


@dataclass(frozen=True)
class ContactForm:
    """Contact fields as typed by the audience member."""

    name: str
    email: str
    email_confirmation: str


def build_cancellation_url(base_url: str, token: CancellationToken) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token.value})}"


class BookingService:
    """Service for creating reservations."""

    def __init__(
        self,
        performances: PerformanceStore,
        ledger: ReservationLedger,
        outbox: NotificationOutbox,
        cancel_url: str,
        mail_subject: str = "Your reservation for {title}",
    ) -> None:
        self._performances = performances
        self._ledger = ledger
        self._outbox = outbox
        self._cancel_url = cancel_url
        self._mail_subject = mail_subject

    def create_reservation(
        self,
        performance_id: str,
        stage_id: Any,
        party_size: Any,
        contact: ContactForm,
        note: str = "",
    ) -> Reservation:
        """Book ``party_size`` seats on one stage of a performance.

        Raises:
            ValidationError: If an input field is missing or malformed.
            PerformanceNotFoundError: If the performance does not exist.
            StageNotFoundError: If ``stage_id`` is outside the stage list.
            CapacityError: If the stage cannot seat the party, before or at commit.
            BackendError: If the store fails. The write is not retried.
        """
        pid = self._parse_performance_id(performance_id)
        stage_index = self._parse_stage_id(stage_id)
        size = self._parse_party_size(party_size)
        contact_info = self._parse_contact(contact)

        performance = self._load_performance(pid)
        stage = performance.stage(stage_index)
        if stage is None:
            raise StageNotFoundError(str(pid), stage_index)

        try:
            current = self._ledger.list_for_stage(pid, stage_index)
        except StoreError as exc:
            logger.exception("Advisory capacity read failed for %s/%s", pid, stage_index)
            raise BackendError() from exc
        self._ensure_capacity(stage, current, size)

        draft = ReservationDraft(
            performance_id=pid,
            stage_id=stage_index,
            party_size=size,
            contact=contact_info,
            note=(note or "").strip(),
            cancellation_token=CancellationToken.generate(),
        )
        try:
            reservation = self._ledger.add_reservation(
                draft, lambda latest: self._ensure_capacity(stage, latest, size)
            )
        except CapacityError:
            logger.info(
                "Stage %s/%s filled up before commit; %d seat(s) refused",
                pid, stage_index, size.value,
            )
            raise
        except StoreError as exc:
            logger.exception("Reservation write failed for %s/%s", pid, stage_index)
            raise BackendError() from exc

        logger.info(
            "Reservation %s created for %s/%s (%d seat(s))",
            reservation.id, pid, stage_index, size.value,
        )
        self._enqueue_confirmation(performance, stage, reservation)
        return reservation

    def cancellation_url(self, reservation: Reservation) -> str:
        return build_cancellation_url(self._cancel_url, reservation.cancellation_token)

    def _ensure_capacity(
        self, stage: Stage, reservations: Sequence[Reservation], size: PartySize
    ) -> None:
        capacity = stage_capacity(stage, reservations)
        if not capacity.admits(size.value):
            raise CapacityError(available=capacity.available, requested=size.value)

    def _load_performance(self, performance_id: PerformanceId) -> Performance:
        try:
            performance = self._performances.get_performance(performance_id)
        except StoreError as exc:
            logger.exception("Could not load performance %s", performance_id)
            raise BackendError() from exc
        if performance is None:
            raise PerformanceNotFoundError(str(performance_id))
        return performance

    def _enqueue_confirmation(
        self, performance: Performance, stage: Stage, reservation: Reservation
    ) -> None:
        cancel_url = self.cancellation_url(reservation)
        notification = MailNotification(
            type=CONFIRMATION_MAIL_TYPE,
            recipient=str(reservation.contact.email),
            subject=self._mail_subject.format(title=performance.title),
            body=_confirmation_body(performance, stage, reservation, cancel_url),
            reservation_id=reservation.id,
        )
        try:
            self._outbox.enqueue(notification)
        except StoreError:
            # The booking is committed; failing it now would invite a duplicate.
            logger.exception(
                "Confirmation mail for reservation %s could not be queued",
                reservation.id,
            )

    @staticmethod
    def _parse_performance_id(value: str) -> PerformanceId:
        try:
            return PerformanceId.from_string(value)
        except ValueError as exc:
            raise PerformanceNotFoundError(str(value)) from exc

    @staticmethod
    def _parse_stage_id(value: Any) -> int:
        if isinstance(value, bool):
            raise ValidationError("stage_id", "Stage must be a number")
        try:
            stage_index = int(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("stage_id", "Stage must be a number") from exc
        if stage_index < 0:
            raise ValidationError("stage_id", "Stage must not be negative")
        return stage_index

    @staticmethod
    def _parse_party_size(value: Any) -> PartySize:
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value)
        try:
            return PartySize(value=value)
        except ValueError as exc:
            raise ValidationError("party_size", str(exc)) from exc

    @staticmethod
    def _parse_contact(contact: ContactForm) -> ContactInfo:
        name = (contact.name or "").strip()
        if not name:
            raise ValidationError("name", "Name is required")
        email = (contact.email or "").strip()
        if not email:
            raise ValidationError("email", "Email is required")
        if email != (contact.email_confirmation or "").strip():
            raise ValidationError("email_confirmation", "Email addresses do not match")
        try:
            return ContactInfo(name=name, email=EmailAddress(value=email))
        except ValueError as exc:
            raise ValidationError("email", str(exc)) from exc


def _confirmation_body(
    performance: Performance, stage: Stage, reservation: Reservation, cancel_url: str
) -> str:
    when = f"{stage.date.isoformat()} {stage.start.strftime('%H:%M')}"
    if stage.end is not None:
        when += f"-{stage.end.strftime('%H:%M')}"
    lines = [
        f"{reservation.contact.name},",
        "",
        f"Your reservation for {performance.title} is confirmed.",
        "",
        f"Date: {when}",
        f"Venue: {performance.venue}",
        f"Party size: {reservation.party_size.value}",
    ]
    if reservation.note:
        lines.append(f"Note: {reservation.note}")
    lines += [
        "",
        "To cancel, open this link:",
        cancel_url,
    ]
    return "\n".join(lines)
