"""Reservation app settings.

Read from ``settings.RESERVATIONS``; missing keys fall back to DEFAULTS.
"""

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "CANCEL_URL": "http://localhost:5173/cancel",
    "LOCK_STAGE_ON_COMMIT": False,
    "AVAILABILITY_CACHE_TIMEOUT": 30,
    "MAIL_SUBJECT": "Your reservation for {title}",
}


def get(name: str) -> Any:
    return getattr(settings, "RESERVATIONS", {}).get(name, DEFAULTS[name])
