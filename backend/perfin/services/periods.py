"""Budget period resolution.

Maps a budget's period configuration and the current instant to a concrete
``[start, end)`` window:

    weekly   Monday 00:00 of the current week -> next Monday 00:00
    monthly  1st of the current month 00:00 -> 1st of next month 00:00
    custom   the original [start, end) repeated back to back, anchored on
             the original start date, so the window is the cycle that
             contains ``now``

Windows are built in ``now``'s timezone; day arithmetic is wall-clock, so a
DST change never shifts a boundary off midnight.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
PERIOD_CUSTOM = "custom"

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class PeriodWindow:
    start: datetime  # inclusive
    end: datetime  # exclusive

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def resolve_period(
    period_type: str,
    custom_start: date | None,
    custom_end: date | None,
    now: datetime,
) -> PeriodWindow:
    """Return the window of the period that contains ``now``.

    Custom periods with a missing date, and unknown period types, fall back
    to the calendar month. A custom range shorter than one whole day is
    returned as-is rather than repeated.
    """
    if period_type == PERIOD_WEEKLY:
        return calendar_week(now)
    if period_type == PERIOD_CUSTOM and custom_start is not None and custom_end is not None:
        return custom_cycle(custom_start, custom_end, now)
    return calendar_month(now)


def calendar_week(now: datetime) -> PeriodWindow:
    monday = now.date() - timedelta(days=now.weekday())
    start = _midnight(monday, now)
    return PeriodWindow(start=start, end=start + timedelta(days=7))


def calendar_month(now: datetime) -> PeriodWindow:
    first = now.date().replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return PeriodWindow(start=_midnight(first, now), end=_midnight(next_first, now))


def custom_cycle(custom_start: date, custom_end: date, now: datetime) -> PeriodWindow:
    original_start = _midnight(custom_start, now)
    original_end = _midnight(custom_end, now)
    period_days = (original_end - original_start) // ONE_DAY
    if period_days <= 0:
        return PeriodWindow(start=original_start, end=original_end)

    cycle_length = timedelta(days=period_days)
    # Floor division, so instants before the original start map to earlier cycles
    current_cycle = (now - original_start) // cycle_length
    cycle_start = original_start + current_cycle * cycle_length
    return PeriodWindow(start=cycle_start, end=cycle_start + cycle_length)


def _midnight(day: date, now: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=now.tzinfo)
