"""
Reporting time windows.

All windows are naive datetimes in the deployment's local time, matching how
``Sale.sale_date`` is stored, and include both endpoints.
"""

import calendar
import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from smartpoint.common.exceptions import InvalidInput


class Period(str, enum.Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"


class GroupBy(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class DateWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def previous(self) -> "DateWindow":
        """Window of the same length ending right before this one starts."""
        length = self.end - self.start
        end = self.start - timedelta(microseconds=1)
        return DateWindow(start=end - length, end=end)


def day_window(day: date) -> DateWindow:
    return DateWindow(datetime.combine(day, time.min), datetime.combine(day, time.max))


def today(now: Optional[datetime] = None) -> DateWindow:
    now = now or datetime.now()
    return day_window(now.date())


def yesterday(now: Optional[datetime] = None) -> DateWindow:
    now = now or datetime.now()
    return day_window(now.date() - timedelta(days=1))


def week_start(day: date, first_day_of_week: int) -> date:
    """First day of the week containing ``day`` (Python weekday numbering)."""
    return day - timedelta(days=(day.weekday() - first_day_of_week) % 7)


def this_week(first_day_of_week: int, now: Optional[datetime] = None) -> DateWindow:
    now = now or datetime.now()
    start = week_start(now.date(), first_day_of_week)
    end = start + timedelta(days=6)
    return DateWindow(datetime.combine(start, time.min), datetime.combine(end, time.max))


def this_month(now: Optional[datetime] = None) -> DateWindow:
    now = now or datetime.now()
    last_day = calendar.monthrange(now.year, now.month)[1]
    return DateWindow(
        datetime.combine(date(now.year, now.month, 1), time.min),
        datetime.combine(date(now.year, now.month, last_day), time.max)
    )


def custom_range(start_date: date, end_date: date) -> DateWindow:
    if start_date > end_date:
        raise InvalidInput("Start date must be on or before end date")
    return DateWindow(datetime.combine(start_date, time.min), datetime.combine(end_date, time.max))


def resolve_period(period: Period, first_day_of_week: int, now: Optional[datetime] = None) -> DateWindow:
    if period == Period.TODAY:
        return today(now)
    if period == Period.YESTERDAY:
        return yesterday(now)
    if period == Period.WEEK:
        return this_week(first_day_of_week, now)
    return this_month(now)


def bucket_key(moment: datetime, group_by: GroupBy, first_day_of_week: int) -> date:
    """Date that labels the day, week or month bucket a moment falls in."""
    day = moment.date()
    if group_by == GroupBy.WEEK:
        return week_start(day, first_day_of_week)
    if group_by == GroupBy.MONTH:
        return day.replace(day=1)
    return day
