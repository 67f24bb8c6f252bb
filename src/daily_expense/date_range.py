"""Date-range resolution and calendar-day arithmetic.

Maps a logical filter selection (today, yesterday, this week, ...) to a
concrete inclusive ``[start, end]`` window in epoch milliseconds.  A day
starts at 00:00:00.000 and ends at 23:59:59.999 local time, where "local"
is either an explicit ``tzinfo`` or, when ``tz`` is ``None``, the process
local timezone.

All day arithmetic is done on :class:`~datetime.date` values and only then
converted back to instants, so DST transitions never shift a boundary.
"""

from __future__ import annotations

import time as _time
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from daily_expense.errors import MissingDateRangeParameter

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Index into WEEKDAYS (Monday == 0, matching ``date.weekday()``).
DEFAULT_WEEK_START = 6


class DateFilter(Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "week"
    THIS_MONTH = "month"
    CUSTOM_DATE = "date"
    DATE_RANGE = "range"


@dataclass(frozen=True)
class DateRange:
    """An inclusive millisecond window."""

    start: int
    end: int

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp <= self.end


# ---------------------------------------------------------------------------
# Instant <-> local calendar helpers
# ---------------------------------------------------------------------------


def now_millis() -> int:
    """Current time in milliseconds since the epoch."""
    return _time.time_ns() // 1_000_000


def to_local(timestamp: int, tz: tzinfo | None = None) -> datetime:
    """Convert epoch milliseconds to a local :class:`~datetime.datetime`.

    Raises:
        ValueError: If *timestamp* is not an integer or lies outside the
            range the platform can map to a calendar date.
    """
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise ValueError(f"Timestamp must be integer milliseconds, got {timestamp!r}")
    seconds, millis = divmod(timestamp, 1000)
    try:
        dt = datetime.fromtimestamp(seconds, tz)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Timestamp {timestamp} cannot be resolved to a date: {exc}") from exc
    return dt.replace(microsecond=millis * 1000)


def to_millis(dt: datetime) -> int:
    """Convert a datetime (naive = local time) to epoch milliseconds."""
    whole = dt.replace(microsecond=0)
    return round(whole.timestamp()) * 1000 + dt.microsecond // 1000


def local_date(timestamp: int, tz: tzinfo | None = None) -> date:
    return to_local(timestamp, tz).date()


def start_of_day(day: date, tz: tzinfo | None = None) -> int:
    """Epoch ms of 00:00:00.000 on *day*."""
    return to_millis(datetime.combine(day, time.min, tzinfo=tz))


def end_of_day(day: date, tz: tzinfo | None = None) -> int:
    """Epoch ms of 23:59:59.999 on *day*."""
    return start_of_day(day + timedelta(days=1), tz) - 1


def day_range(day: date, tz: tzinfo | None = None) -> DateRange:
    return DateRange(start_of_day(day, tz), end_of_day(day, tz))


def parse_week_start(name: str) -> int:
    """Return the ``date.weekday()`` index for a day name.

    Raises:
        ValueError: If *name* is not a weekday name.
    """
    key = name.strip().lower()
    if key not in WEEKDAYS:
        raise ValueError(
            f"Invalid week start: {name!r}. Expected one of: {', '.join(WEEKDAYS)}."
        )
    return WEEKDAYS.index(key)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(
    date_filter: DateFilter,
    reference_ms: int,
    *,
    custom_date_ms: int | None = None,
    range_start_ms: int | None = None,
    range_end_ms: int | None = None,
    week_start: int = DEFAULT_WEEK_START,
    tz: tzinfo | None = None,
) -> DateRange:
    """Resolve *date_filter* to an inclusive window around *reference_ms*.

    Args:
        date_filter: The logical filter selection.
        reference_ms: "Now" for the purposes of this resolution.
        custom_date_ms: Any instant within the day selected for
            ``CUSTOM_DATE``.  Required for that filter.
        range_start_ms: Start of a ``DATE_RANGE`` selection; the window
            opens at the start of that day, or at epoch 0 when omitted.
        range_end_ms: End of a ``DATE_RANGE`` selection; the window closes
            at the end of that day, or at *reference_ms* when omitted.
        week_start: First day of the week, ``0`` (Monday) to ``6``
            (Sunday).
        tz: Timezone for calendar boundaries; ``None`` is system local.

    Returns:
        The resolved :class:`DateRange`.

    Raises:
        MissingDateRangeParameter: ``CUSTOM_DATE`` without *custom_date_ms*.
    """
    today = local_date(reference_ms, tz)

    if date_filter is DateFilter.TODAY:
        return day_range(today, tz)

    if date_filter is DateFilter.YESTERDAY:
        return day_range(today - timedelta(days=1), tz)

    if date_filter is DateFilter.THIS_WEEK:
        first = today - timedelta(days=(today.weekday() - week_start) % 7)
        return DateRange(
            start_of_day(first, tz),
            start_of_day(first + timedelta(days=7), tz) - 1,
        )

    if date_filter is DateFilter.THIS_MONTH:
        first = today.replace(day=1)
        following = (first + timedelta(days=32)).replace(day=1)
        return DateRange(start_of_day(first, tz), start_of_day(following, tz) - 1)

    if date_filter is DateFilter.CUSTOM_DATE:
        if custom_date_ms is None:
            raise MissingDateRangeParameter("The custom date filter needs a date to show.")
        return day_range(local_date(custom_date_ms, tz), tz)

    if date_filter is DateFilter.DATE_RANGE:
        start = 0 if range_start_ms is None else start_of_day(local_date(range_start_ms, tz), tz)
        end = reference_ms if range_end_ms is None else end_of_day(local_date(range_end_ms, tz), tz)
        return DateRange(start, end)

    raise ValueError(f"Unknown date filter: {date_filter!r}")
