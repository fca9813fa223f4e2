"""Serializers for request parsing and domain model responses.

Input serializers check shape only (types, presence). Business rules such as
party size bounds or matching email addresses are enforced by the services.
"""

from rest_framework import serializers


class ReservationRequestSerializer(serializers.Serializer):
    party_size = serializers.IntegerField()
    name = serializers.CharField(allow_blank=True, default="", trim_whitespace=False)
    email = serializers.CharField(allow_blank=True, default="")
    email_confirmation = serializers.CharField(allow_blank=True, default="")
    note = serializers.CharField(allow_blank=True, default="", max_length=2000)


class CancelRequestSerializer(serializers.Serializer):
    token = serializers.CharField()


class CheckInRequestSerializer(serializers.Serializer):
    checked_in = serializers.BooleanField()


class StageSerializer(serializers.Serializer):
    """Serializer for Stage domain model."""

    stage_id = serializers.IntegerField()
    date = serializers.DateField()
    start = serializers.TimeField(format="%H:%M")
    end = serializers.TimeField(format="%H:%M", allow_null=True)
    seat_limit = serializers.IntegerField(source="seat_limit.value")


class PerformanceSerializer(serializers.Serializer):
    """Serializer for Performance domain model."""

    id = serializers.CharField()
    title = serializers.CharField()
    venue = serializers.CharField()


class StageAvailabilitySerializer(serializers.Serializer):
    """Audience view of a stage: what is left and how to label it."""

    stage_id = serializers.IntegerField()
    date = serializers.DateField(source="stage.date")
    start = serializers.TimeField(source="stage.start", format="%H:%M")
    end = serializers.TimeField(source="stage.end", format="%H:%M", allow_null=True)
    seat_limit = serializers.IntegerField()
    available = serializers.IntegerField(allow_null=True)
    occupancy = serializers.CharField(source="occupancy.value")


class ReservationSerializer(serializers.Serializer):
    """Serializer for Reservation domain model. Never exposes the token."""

    id = serializers.CharField()
    performance_id = serializers.CharField()
    stage_id = serializers.IntegerField()
    party_size = serializers.IntegerField(source="party_size.value")
    name = serializers.CharField(source="contact.name")
    email = serializers.CharField(source="contact.email")
    note = serializers.CharField()
    status = serializers.CharField(source="status.value")
    checked_in = serializers.BooleanField()
    checked_in_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()
    cancelled_at = serializers.DateTimeField(allow_null=True)


class StageSummarySerializer(serializers.Serializer):
    """Troupe dashboard numbers for one stage."""

    stage_id = serializers.IntegerField()
    date = serializers.DateField(source="capacity.stage.date")
    start = serializers.TimeField(source="capacity.stage.start", format="%H:%M")
    seat_limit = serializers.IntegerField(source="capacity.seat_limit")
    reserved = serializers.IntegerField(source="capacity.reserved")
    available = serializers.IntegerField(source="capacity.available", allow_null=True)
    is_full = serializers.BooleanField(source="capacity.is_full")
    checked_in_count = serializers.IntegerField()
    roster = ReservationSerializer(many=True)


class PerformanceSummarySerializer(serializers.Serializer):
    performance = PerformanceSerializer()
    stages = StageSummarySerializer(many=True)
    total_reserved = serializers.IntegerField()
    total_seat_limit = serializers.IntegerField()
    has_seat_limit = serializers.BooleanField()


class CancellationViewSerializer(serializers.Serializer):
    reservation = ReservationSerializer()
    performance = PerformanceSerializer(allow_null=True)
    stage = StageSerializer(allow_null=True)
