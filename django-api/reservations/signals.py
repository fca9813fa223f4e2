"""Django signals for cache invalidation and ledger change notification."""

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from reservations.cache_keys import invalidate_availability
from reservations.domain import PerformanceId
from reservations.live import notify_ledger_changed
from reservations.models import Performance, Reservation, Stage


@receiver([post_save, post_delete], sender=Reservation)
def reservation_changed(sender, instance, **kwargs):
    """Drop cached availability and announce the change once it commits."""
    performance_id = PerformanceId(value=instance.performance_id)
    stage_id = instance.stage_index

    def after_commit():
        invalidate_availability(performance_id)
        notify_ledger_changed(sender, performance_id, stage_id)

    transaction.on_commit(after_commit)


@receiver([post_save, post_delete], sender=Stage)
def invalidate_stage_cache(sender, instance, **kwargs):
    """Invalidate availability when a stage or its seat limit changes."""
    invalidate_availability(instance.performance_id)


@receiver([post_save, post_delete], sender=Performance)
def invalidate_performance_cache(sender, instance, **kwargs):
    invalidate_availability(instance.pk)
