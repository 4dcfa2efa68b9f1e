# inventory_admin/core/clock.py
from datetime import datetime, timezone
from typing import Callable

# Mongo hands datetimes back naive (UTC), so the whole service works in naive UTC.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_clock() -> Clock:
    return utc_now
