"""
Calendar helpers

Event dates have date-only semantics but are stored as naive UTC instants:
the local midnight that starts the event day, converted to UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def to_utc_naive(moment: datetime) -> datetime:
    """Convert a local (naive) or aware datetime to naive UTC"""
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_window(day: date) -> Tuple[datetime, datetime]:
    """Return the [start, end) UTC bounds of a local calendar day"""
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)
    return to_utc_naive(start), to_utc_naive(end)


def event_date_to_utc(day: date) -> datetime:
    """Instant stored for an event held on ``day``"""
    return local_day_window(day)[0]


def utc_to_local_date(moment: datetime) -> date:
    """Local calendar day of a naive UTC instant"""
    return moment.replace(tzinfo=timezone.utc).astimezone().date()
