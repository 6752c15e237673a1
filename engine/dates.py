# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Calendar helpers. Every day boundary in the engine is the user's local day.

Timestamps are handled as naive local datetimes internally; aware values
are converted to local time first so the two never get compared.
"""

from datetime import date, datetime, time, timedelta
from typing import Union

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

ONE_DAY = timedelta(days=1)


def to_local(ts: datetime) -> datetime:
    """Naive local datetime for ts."""
    if ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def local_day(ts: Union[date, datetime]) -> date:
    """Calendar day of ts. Returns a new value; ts is never mutated."""
    if isinstance(ts, datetime):
        return to_local(ts).date()
    return ts


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def month_start(now: datetime) -> datetime:
    """First instant of now's calendar month."""
    return datetime(now.year, now.month, 1)


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def long_date(day: date) -> str:
    """'Saturday, Oct 17' style label."""
    return f"{day_name(day)}, {MONTH_ABBR[day.month - 1]} {day.day}"


def stamp(ts: datetime) -> str:
    """Sortable text form used in every SQLite column holding an instant."""
    return to_local(ts).isoformat(timespec="microseconds")
