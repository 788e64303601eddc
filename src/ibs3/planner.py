"""
Decides which intervals a run has to build.
"""
from datetime import date
from typing import List

from ibs3.utils.datatypes import Interval

WEEKLY_DAYS = (7, 14, 21, 28)


def cascade(interval: Interval) -> List[Interval]:
    """
    Get the intervals to build for the requested one.
    A new snapshot on a longer interval invalidates the baselines of all
    shorter intervals, so they are rebuilt right after it.
    E.g. monthly -> [monthly, weekly, daily]
    :param interval: requested interval
    :return: requested interval followed by all shorter ones
    """
    return [x for x in Interval.ordered() if x >= interval]


def scheduled_interval(day: date) -> Interval:
    """
    Get the interval for a daily scheduled run on the given day.
    Base backups are never scheduled. Run them manually.
    :param day: day of the run
    :return: interval
    """
    if day.month == 1 and day.day == 1:
        return Interval.YEARLY
    if day.day == 1:
        return Interval.MONTHLY
    if day.day in WEEKLY_DAYS:
        return Interval.WEEKLY
    return Interval.DAILY
