"""
Workout schedule generation.

Turns a start date and a weekly frequency pattern into the ordered list of
workout dates for a cycle. Dates are local-midnight epoch milliseconds and
stepping is done on calendar dates, so daylight-saving changes never
produce duplicates.
"""

import logging
import time as _time
from datetime import date, datetime, time, timedelta

from .config import (
    DAYS_IN_CYCLE,
    FREQUENCY_FIVE_A_WEEK,
    FREQUENCY_ONCE_A_WEEK,
    FREQUENCY_THREE_A_WEEK,
)

logger = logging.getLogger(__name__)

MONDAY, WEDNESDAY, FRIDAY, SATURDAY = 0, 2, 4, 5


def now_millis() -> int:
    """Current time in epoch milliseconds."""
    return int(_time.time() * 1000)


def to_millis(value: datetime | date) -> int:
    """Convert a datetime (naive = local time) or date (local midnight) to epoch ms."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    return int(value.timestamp() * 1000)


def from_millis(timestamp_ms: int) -> datetime:
    """Convert epoch ms to a naive local datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000)


def start_of_day(timestamp_ms: int) -> int:
    """Return local midnight of the day containing timestamp_ms."""
    return to_millis(from_millis(timestamp_ms).date())


def next_monday(timestamp_ms: int) -> int:
    """
    Return local midnight of the first Monday on or after timestamp_ms.

    A timestamp that already falls on a Monday maps to that same Monday.
    """
    day = from_millis(timestamp_ms).date()
    day += timedelta(days=(MONDAY - day.weekday()) % 7)
    return to_millis(day)


def normalize_frequency(frequency: str) -> str:
    """Lower-case and strip a frequency label for matching."""
    return "".join(frequency.split()).lower() if frequency else ""


def _step_days(day: date, frequency: str) -> int:
    """Number of days to advance after emitting `day`."""
    weekday = day.weekday()

    if frequency == FREQUENCY_ONCE_A_WEEK:
        return 7

    if frequency == FREQUENCY_THREE_A_WEEK:
        # Mon -> Wed -> Fri -> Mon; off-pattern days walk forward one day
        # at a time until they land on the pattern.
        if weekday in (MONDAY, WEDNESDAY):
            return 2
        if weekday == FRIDAY:
            return 3
        return 1

    if frequency == FREQUENCY_FIVE_A_WEEK:
        if (weekday + 1) % 7 == SATURDAY:
            return 3
        return 1

    return 1


def generate_schedule(
    start_date: int | datetime | date,
    frequency: str,
    total_days: int = DAYS_IN_CYCLE,
) -> list[int]:
    """
    Generate the ordered workout dates for a cycle.

    Stepping rules per frequency:
      1x/week  +7 days
      3x/week  Mon/Wed +2, Fri +3, any other day +1 (converges on Mon/Wed/Fri)
      5x/week  +1 day, skipping the weekend when the next day is Saturday
      other    +1 day (consecutive days)

    Args:
        start_date: First workout day (epoch ms, datetime or date); normalized
            to local midnight
        frequency: Frequency label, e.g. "3x/week"
        total_days: Number of dates to emit

    Returns:
        Exactly total_days strictly increasing local-midnight timestamps (ms)

    Raises:
        ValueError: If total_days is negative
    """
    if total_days < 0:
        raise ValueError(f"total_days must be non-negative, got {total_days}")

    if isinstance(start_date, datetime):
        day = start_date.date()
    elif isinstance(start_date, date):
        day = start_date
    else:
        day = from_millis(start_date).date()

    freq = normalize_frequency(frequency)
    if freq not in (FREQUENCY_ONCE_A_WEEK, FREQUENCY_THREE_A_WEEK, FREQUENCY_FIVE_A_WEEK):
        logger.debug("Unrecognised frequency %r, using consecutive days", frequency)

    dates: list[int] = []
    while len(dates) < total_days:
        dates.append(to_millis(day))
        day += timedelta(days=_step_days(day, freq))

    return dates
