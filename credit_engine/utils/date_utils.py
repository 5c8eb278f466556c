"""Date manipulation utilities"""

from datetime import date, datetime

from dateutil.relativedelta import relativedelta


def as_calendar_date(value: date) -> date:
    """Reduce a datetime to its own calendar date (no time zone conversion)"""
    if isinstance(value, datetime):
        return value.date()
    return value


def add_months(start: date, months: int) -> date:
    """
    Add calendar months to a date, preserving the day of month.

    Days that do not exist in the target month clamp to its last day:
    Jan 31 + 1 month -> Feb 28 (Feb 29 in leap years). Always offset from
    the original date instead of chaining, so Jan 31 + 2 months is Mar 31.
    """
    return as_calendar_date(start) + relativedelta(months=months)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end is earlier)"""
    return (as_calendar_date(end) - as_calendar_date(start)).days
