"""Week arithmetic — pure business logic.

Every date that enters the rotation goes through normalize() so callers
passing timestamps and callers passing plain dates land on the same Monday.

Weeks run Sunday to Saturday: a Sunday belongs to the week of the Monday
after it.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

ONE_WEEK = timedelta(weeks=1)


def normalize(value: date | datetime | str) -> date:
    """Return the Monday of the week containing value.

    Accepts a date, a datetime (time of day is dropped) or an ISO string.
    Raises ValueError on a malformed string.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        value = value.date()

    # isoweekday: Monday=1 .. Sunday=7
    weekday = value.isoweekday()
    if weekday == 7:
        return value + timedelta(days=1)
    return value - timedelta(days=weekday - 1)


def upcoming_monday(today: date) -> date:
    """This week's Monday if it hasn't passed yet, otherwise next Monday."""
    monday = normalize(today)
    if today > monday:
        monday += ONE_WEEK
    return monday


def format_date(value: date) -> str:
    """Short display form, e.g. "Oct 19th"."""
    day = value.day
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{value.strftime('%b')} {day}{suffix}"


def today_in(tz_name: str) -> date:
    """Today's date in the deployment time zone."""
    return datetime.now(ZoneInfo(tz_name)).date()
