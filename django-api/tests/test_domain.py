"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

import uuid

import pytest

from factories import make_performance
from reservations.domain import (
    CancellationToken,
    ContactInfo,
    EmailAddress,
    PartySize,
    PerformanceId,
    ReservationStatus,
    SeatLimit,
)
from reservations.domain.errors import (
    CapacityError,
    ErrorCode,
    NotFoundError,
    StageNotFoundError,
    ValidationError,
)


class TestSeatLimit:
    """Tests for SeatLimit value object."""

    def test_seat_limit_accepts_positive_value(self):
        """SeatLimit can be created with a positive value."""
        assert SeatLimit(value=40).value == 40

    def test_zero_means_unlimited(self):
        """A seat limit of zero is unlimited."""
        assert SeatLimit(value=0).is_unlimited
        assert not SeatLimit(value=1).is_unlimited

    def test_seat_limit_rejects_negative_value(self):
        """SeatLimit raises ValueError for negative value."""
        with pytest.raises(ValueError):
            SeatLimit(value=-1)


class TestPartySize:
    """Tests for PartySize value object."""

    def test_accepts_one(self):
        assert PartySize(value=1).value == 1

    @pytest.mark.parametrize("value", [0, -3])
    def test_rejects_less_than_one(self, value):
        """A party must have at least one person."""
        with pytest.raises(ValueError):
            PartySize(value=value)

    @pytest.mark.parametrize("value", [True, "2", 1.5, None])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValueError):
            PartySize(value=value)

    @pytest.mark.parametrize(
        "raw, expected",
        [(3, 3), ("4", 4), (None, 1), ("two", 1), (0, 1), (float("inf"), 1), ("-inf", 1)],
    )
    def test_coerce_counts_unusable_values_as_one(self, raw, expected):
        """Stored party sizes that are absent or unusable occupy one seat."""
        assert PartySize.coerce(raw).value == expected


class TestCancellationToken:
    """Tests for CancellationToken value object."""

    def test_generate_yields_64_lowercase_hex_chars(self):
        token = CancellationToken.generate()
        assert len(token.value) == 64
        assert token.value == token.value.lower()
        int(token.value, 16)

    def test_generated_tokens_differ(self):
        tokens = {CancellationToken.generate().value for _ in range(50)}
        assert len(tokens) == 50

    @pytest.mark.parametrize("value", ["", "abc", "G" * 64, "A" * 64, "a" * 63])
    def test_rejects_malformed_tokens(self, value):
        with pytest.raises(ValueError):
            CancellationToken(value=value)


class TestPerformanceId:
    """Tests for PerformanceId value object."""

    def test_from_string_valid_uuid(self):
        """PerformanceId.from_string parses valid UUID."""
        raw = uuid.uuid4()
        assert PerformanceId.from_string(str(raw)).value == raw

    def test_from_string_invalid_uuid(self):
        """PerformanceId.from_string raises ValueError for invalid UUID."""
        with pytest.raises(ValueError):
            PerformanceId.from_string("not-a-uuid")

    def test_str_is_canonical_uuid(self):
        raw = uuid.uuid4()
        assert str(PerformanceId(value=raw)) == str(raw)


class TestContact:
    """Tests for EmailAddress and ContactInfo."""

    def test_email_accepts_plausible_address(self):
        assert str(EmailAddress(value="ada@example.com")) == "ada@example.com"

    @pytest.mark.parametrize("value", ["", "ada", "ada@", "ada@example", "a da@example.com"])
    def test_email_rejects_malformed_address(self, value):
        with pytest.raises(ValueError):
            EmailAddress(value=value)

    def test_contact_requires_name(self):
        with pytest.raises(ValueError):
            ContactInfo(name="  ", email=EmailAddress(value="ada@example.com"))


class TestPerformance:
    """Tests for Performance stage lookup."""

    def test_stage_by_index(self):
        performance = make_performance(5, 0)
        assert performance.stage(1).stage_id == 1
        assert performance.stage(1).seat_limit.is_unlimited

    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_stage_out_of_range_is_none(self, index):
        assert make_performance(5, 0).stage(index) is None


class TestReservationStatus:
    """Only the cancelled status releases seats."""

    @pytest.mark.parametrize(
        "status", [ReservationStatus.ACTIVE, ReservationStatus.CONFIRMED, ReservationStatus.PENDING]
    )
    def test_live_statuses_are_not_cancelled(self, status):
        assert not status.is_cancelled

    def test_cancelled(self):
        assert ReservationStatus.CANCELLED.is_cancelled


class TestDomainErrors:
    """Domain errors carry a code and the details handlers need."""

    def test_validation_error_names_field(self):
        error = ValidationError("email", "Invalid email address")
        assert error.code is ErrorCode.VALIDATION_FAILED
        assert error.field == "email"
        assert error.message == "Invalid email address"

    def test_capacity_error_carries_counts(self):
        error = CapacityError(available=1, requested=2)
        assert error.code is ErrorCode.CAPACITY_EXCEEDED
        assert (error.available, error.requested) == (1, 2)

    def test_stage_not_found_is_a_not_found_error(self):
        error = StageNotFoundError("p", 3)
        assert isinstance(error, NotFoundError)
        assert error.stage_id == 3
