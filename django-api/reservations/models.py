"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models

from reservations.domain.models import RESERVATION_SCHEMA_VERSION


class Performance(models.Model):
    """Persistence model for performances."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    venue = models.CharField(max_length=255)
    troupe_id = models.CharField(max_length=64, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["troupe_id", "-created_at"], name="performance_troupe_idx"
            ),
        ]

    def __str__(self) -> str:
        return self.title


class Stage(models.Model):
    """Persistence model for one dated occurrence of a performance."""

    performance = models.ForeignKey(
        Performance, on_delete=models.CASCADE, related_name="stages"
    )
    position = models.PositiveIntegerField()
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(blank=True, null=True)
    seat_limit = models.PositiveIntegerField(default=0, help_text="0 means unlimited")

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["performance", "position"], name="unique_stage_position"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.performance.title} - {self.date} {self.start_time}"


class Reservation(models.Model):
    """Persistence model for reservations."""

    class Status(models.TextChoices):
        ACTIVE = "active"
        CONFIRMED = "confirmed"
        PENDING = "pending"
        CANCELLED = "cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    performance = models.ForeignKey(
        Performance, on_delete=models.PROTECT, related_name="reservations"
    )
    stage_index = models.PositiveIntegerField()
    party_size = models.PositiveIntegerField(default=1)
    name = models.CharField(max_length=255)
    email = models.EmailField()
    note = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.ACTIVE
    )
    cancellation_token = models.CharField(max_length=64, unique=True, editable=False)
    checked_in = models.BooleanField(default=False)
    checked_in_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    schema_version = models.PositiveSmallIntegerField(default=RESERVATION_SCHEMA_VERSION)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["performance", "stage_index"], name="reservation_stage_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} x{self.party_size} ({self.status})"


class MailNotification(models.Model):
    """Outgoing mail picked up by the delivery worker."""

    class Status(models.TextChoices):
        PENDING = "pending"
        SENT = "sent"
        FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(max_length=64)
    recipient = models.EmailField()
    subject = models.CharField(max_length=255)
    body = models.TextField()
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.PENDING
    )
    reservation = models.ForeignKey(
        Reservation, on_delete=models.CASCADE, related_name="notifications"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["status", "created_at"], name="mailnotification_status_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.type} to {self.recipient}"
