"""Named date filters resolved to concrete time windows.

This is the only place window math lives. "Local" always means the timezone
of ``now``, which defaults to the system zone from ``dateutil.tz.tzlocal``,
so tests can pin both the clock and the zone by passing an aware ``now``.
That zone must carry its DST rules: day bounds are built from calendar dates
and take the offset in force on that date, not the offset of ``now``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, tzinfo

from dateutil import tz
from dateutil.relativedelta import relativedelta

from commitscope_core.errors import MissingDateRange
from commitscope_core.models import TimeWindow

logger = logging.getLogger(__name__)

FILTER_TYPES = (
    "today",
    "yesterday",
    "last3days",
    "lastweek",
    "lastmonth",
    "last2months",
    "last3months",
    "custom",
)

_MONTHS_BACK = {"lastmonth": 1, "last2months": 2, "last3months": 3}


def local_now() -> datetime:
    return datetime.now(tz.tzlocal())


def _midnight(day: date, zone: tzinfo | None) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def start_of_day(ts: datetime) -> datetime:
    return _midnight(ts.date(), ts.tzinfo)


def end_of_day(ts: datetime) -> datetime:
    return datetime.combine(ts.date(), time.max, tzinfo=ts.tzinfo)


def start_of_week(ts: datetime, week_start: int = 0) -> datetime:
    """Midnight of the first day of ``ts``'s week. ``week_start`` uses ``weekday()`` numbering (0 = Monday)."""
    offset = (ts.weekday() - week_start) % 7
    return _midnight(ts.date() - timedelta(days=offset), ts.tzinfo)


def resolve_window(
    filter_type: str,
    custom_start: datetime | None = None,
    custom_end: datetime | None = None,
    *,
    now: datetime | None = None,
    week_start: int = 0,
) -> TimeWindow:
    """Map a named filter to an inclusive ``[start, end]`` window.

    ``custom`` requires both bounds and raises MissingDateRange otherwise.
    Unknown filter names fall back to ``today`` with a warning.
    """
    now = now or local_now()

    if filter_type == "today":
        return TimeWindow(start_of_day(now), end_of_day(now))

    if filter_type == "yesterday":
        yesterday = _midnight(now.date() - timedelta(days=1), now.tzinfo)
        return TimeWindow(yesterday, end_of_day(yesterday))

    if filter_type == "last3days":
        return TimeWindow(_midnight(now.date() - timedelta(days=2), now.tzinfo), end_of_day(now))

    if filter_type == "lastweek":
        return TimeWindow(start_of_week(now, week_start), end_of_day(now))

    if filter_type in _MONTHS_BACK:
        months = _MONTHS_BACK[filter_type]
        return TimeWindow(_midnight(now.date() - relativedelta(months=months), now.tzinfo), end_of_day(now))

    if filter_type == "custom":
        if custom_start is None or custom_end is None:
            raise MissingDateRange("The custom filter needs both a start and an end date.")
        return TimeWindow(_as_aware(custom_start, now), _as_aware(custom_end, now))

    logger.warning("Unknown date filter %r; falling back to 'today'.", filter_type)
    return TimeWindow(start_of_day(now), end_of_day(now))


def _as_aware(ts: datetime, now: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=now.tzinfo)
    return ts
