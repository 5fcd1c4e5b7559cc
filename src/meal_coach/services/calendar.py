"""Program-week arithmetic on local dates."""

from datetime import date, timedelta

DAYS_PER_WEEK = 7


def week_index(start_date: date, today: date) -> int:
    """Return the number of whole weeks elapsed since the program start."""
    elapsed = (today - start_date).days
    return max(0, elapsed // DAYS_PER_WEEK)


def weekday_index(day: date) -> int:
    """Return the Monday-first slot (0-6) for a date."""
    return day.weekday()


def plan_day_date(start_date: date, week: int, day_index: int) -> date:
    """Return the date in program week ``week`` that falls on ``day_index``.

    Inverse of ``(week_index(start, d), weekday_index(d))`` so that a plan slot
    and the calendar date it is shown for always map to the same key, even
    when the program did not start on a Monday.
    """
    week_start = start_date + timedelta(days=week * DAYS_PER_WEEK)
    offset = (day_index - week_start.weekday()) % DAYS_PER_WEEK
    return week_start + timedelta(days=offset)


def days_between(earlier: date, later: date) -> int:
    """Return whole days from ``earlier`` to ``later``."""
    return (later - earlier).days
