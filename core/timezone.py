"""
Timezone utilities for checkpoint dates.

Checkpoint dates are plain calendar dates. "Today" is always evaluated in a
fixed UTC offset (UTC+7 by default) regardless of server locale.
"""

from datetime import date, datetime

import pytz

from .config import get_checkpoint_utc_offset_hours


def get_checkpoint_timezone() -> pytz.tzinfo.BaseTzInfo:
    """Fixed-offset timezone in which checkpoint dates are interpreted."""
    return pytz.FixedOffset(get_checkpoint_utc_offset_hours() * 60)


def to_checkpoint_timezone(dt: datetime) -> datetime:
    """
    Convert a datetime to the checkpoint timezone.

    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(get_checkpoint_timezone())


def today_in_checkpoint_timezone(now: datetime | None = None) -> date:
    """
    Calendar date of `now` (default: current time) in the checkpoint timezone.

    Example with the default UTC+7 offset:
        2026-03-09 18:30 UTC -> 2026-03-10
    """
    if now is None:
        now = datetime.now(pytz.UTC)
    return to_checkpoint_timezone(now).date()
