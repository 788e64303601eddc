"""
Unit tests for the cascade planner and the daily schedule.
"""
from datetime import date

import pytest

from ibs3.planner import cascade, scheduled_interval
from ibs3.utils.datatypes import Interval


class TestCascade:
    """Tests for cascade()."""

    def test_base_builds_every_interval(self):
        assert cascade(Interval.BASE) == [
            Interval.BASE, Interval.YEARLY, Interval.MONTHLY, Interval.WEEKLY, Interval.DAILY
        ]

    def test_monthly(self):
        assert cascade(Interval.MONTHLY) == [Interval.MONTHLY, Interval.WEEKLY, Interval.DAILY]

    def test_daily_is_alone(self):
        assert cascade(Interval.DAILY) == [Interval.DAILY]

    @pytest.mark.parametrize('interval', list(Interval))
    def test_requested_first_then_all_shorter(self, interval):
        """The requested interval is followed by every shorter one in order."""
        result = cascade(interval)

        assert result[0] is interval
        assert result[1:] == [x for x in Interval.ordered() if x > interval]
        assert result == sorted(result)


class TestScheduledInterval:
    """Tests for the interval picked by a daily scheduled run."""

    @pytest.mark.parametrize('day,expected', [
        (date(2024, 1, 1), Interval.YEARLY),
        (date(2024, 2, 1), Interval.MONTHLY),
        (date(2024, 12, 1), Interval.MONTHLY),
        (date(2024, 3, 7), Interval.WEEKLY),
        (date(2024, 3, 14), Interval.WEEKLY),
        (date(2024, 1, 21), Interval.WEEKLY),
        (date(2024, 2, 28), Interval.WEEKLY),
        (date(2024, 3, 2), Interval.DAILY),
        (date(2024, 3, 29), Interval.DAILY),
        (date(2024, 1, 2), Interval.DAILY),
    ])
    def test_schedule(self, day, expected):
        assert scheduled_interval(day) is expected

    def test_base_is_never_scheduled(self):
        days = [date.fromordinal(date(2024, 1, 1).toordinal() + i) for i in range(366)]
        assert Interval.BASE not in {scheduled_interval(x) for x in days}
