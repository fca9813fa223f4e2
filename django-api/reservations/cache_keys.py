"""Cache keys and invalidation shared by views and signals.

Cached availability is tagged with the generation current when it was read.
Invalidation bumps the generation, so an entry computed from data read before
an invalidation is never served after it.
"""

from django.core.cache import cache


def availability_key(performance_id) -> str:
    return f"performances:{performance_id}:availability"


def availability_generation_key(performance_id) -> str:
    return f"performances:{performance_id}:availability:generation"


def availability_generation(performance_id) -> int:
    return cache.get_or_set(availability_generation_key(performance_id), 0, None)


def invalidate_availability(performance_id) -> None:
    cache.delete(availability_key(performance_id))
    try:
        cache.incr(availability_generation_key(performance_id))
    except ValueError:
        cache.add(availability_generation_key(performance_id), 1, None)
