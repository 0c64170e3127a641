"""
Unit tests for workout date generation and the time helpers.
"""

from datetime import date, datetime, timedelta

import pytest

from fitness_cycle.core.schedule import (
    from_millis,
    generate_schedule,
    next_monday,
    normalize_frequency,
    start_of_day,
    to_millis,
)

from conftest import MONDAY


def _dates(timestamps: list[int]) -> list[date]:
    return [from_millis(ts).date() for ts in timestamps]


MON = date(2024, 1, 1)


class TestThreeTimesAWeek:
    """Mon / Wed / Fri pattern."""

    def test_monday_start_six_days(self):
        """Mon, Wed, Fri, then the same weekdays one week later."""
        result = _dates(generate_schedule(MONDAY, "3x/week", 6))
        offsets = [0, 2, 4, 7, 9, 11]
        assert result == [MON + timedelta(days=o) for o in offsets]

    def test_off_pattern_start_converges(self):
        """A Tuesday start walks forward to Wednesday, then follows the pattern."""
        tuesday = date(2024, 1, 2)
        result = _dates(generate_schedule(tuesday, "3x/week", 4))
        assert result == [tuesday, date(2024, 1, 3), date(2024, 1, 5), date(2024, 1, 8)]

    def test_weekday_pattern_holds_for_whole_cycle(self):
        result = _dates(generate_schedule(MONDAY, "3x/week", 30))
        assert {d.weekday() for d in result} == {0, 2, 4}


class TestOtherFrequencies:
    """1x/week, 5x/week and the fallback."""

    def test_once_a_week(self):
        result = _dates(generate_schedule(MONDAY, "1x/week", 3))
        assert result == [MON, MON + timedelta(days=7), MON + timedelta(days=14)]

    def test_five_a_week_skips_weekend(self):
        result = _dates(generate_schedule(MONDAY, "5x/week", 7))
        assert [d.weekday() for d in result] == [0, 1, 2, 3, 4, 0, 1]

    def test_unknown_frequency_uses_consecutive_days(self):
        result = _dates(generate_schedule(MONDAY, "every other full moon", 4))
        assert result == [MON + timedelta(days=i) for i in range(4)]

    def test_frequency_matching_ignores_case_and_spaces(self):
        assert normalize_frequency(" 3X / Week ") == "3x/week"
        assert generate_schedule(MONDAY, " 3X/WEEK", 3) == generate_schedule(MONDAY, "3x/week", 3)


class TestScheduleInvariants:
    """Counts, ordering and normalization."""

    @pytest.mark.parametrize("frequency", ["1x/week", "3x/week", "5x/week", "daily"])
    @pytest.mark.parametrize("total", [0, 1, 10, 30])
    def test_exact_count_strictly_increasing(self, frequency, total):
        result = generate_schedule(MONDAY, frequency, total)
        assert len(result) == total
        assert all(a < b for a, b in zip(result, result[1:]))

    def test_zero_days_is_empty(self):
        assert generate_schedule(MONDAY, "3x/week", 0) == []

    def test_negative_days_rejected(self):
        with pytest.raises(ValueError):
            generate_schedule(MONDAY, "3x/week", -1)

    def test_start_normalized_to_midnight(self):
        afternoon = to_millis(datetime(2024, 1, 1, 15, 30))
        assert generate_schedule(afternoon, "3x/week", 1) == [MONDAY]

    def test_accepts_datetime_and_date(self):
        expected = generate_schedule(MONDAY, "5x/week", 5)
        assert generate_schedule(datetime(2024, 1, 1, 9), "5x/week", 5) == expected
        assert generate_schedule(MON, "5x/week", 5) == expected

    def test_deterministic(self):
        assert generate_schedule(MONDAY, "3x/week", 30) == generate_schedule(MONDAY, "3x/week", 30)


class TestTimeHelpers:
    """start_of_day / next_monday."""

    def test_start_of_day(self):
        ts = to_millis(datetime(2024, 3, 5, 23, 59))
        assert from_millis(start_of_day(ts)) == datetime(2024, 3, 5)

    def test_next_monday_from_midweek(self):
        thursday = to_millis(datetime(2024, 1, 4, 10))
        assert from_millis(next_monday(thursday)).date() == date(2024, 1, 8)

    def test_next_monday_on_monday_is_same_day(self):
        assert next_monday(MONDAY + 3_600_000) == MONDAY
