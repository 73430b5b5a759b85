"""Date and time resolvers for the entry and search languages.

Both take the reference "now" explicitly; nothing here reads the wall clock.
"""

import logging
import re
from datetime import date, datetime, time, timedelta

from almanac.errors import InvalidDate, InvalidTime, UnparsableDate

logger = logging.getLogger(__name__)

_RELATIVE_DAYS = {"yesterday": -1, "today": 0, "tomorrow": 1}

_WEEKDAYS = {
    "monday": 0,
    "mon": 0,
    "tuesday": 1,
    "tue": 1,
    "tues": 1,
    "wednesday": 2,
    "wed": 2,
    "thursday": 3,
    "thu": 3,
    "thur": 3,
    "thurs": 3,
    "friday": 4,
    "fri": 4,
    "saturday": 5,
    "sat": 5,
    "sunday": 6,
    "sun": 6,
}

# Ordinal suffix is stripped, never checked against the number ("3th" is the 3rd).
DAY_OF_MONTH_RE = re.compile(r"(\d+)(?:st|nd|rd|th)?")
DATE_SEPARATOR_RE = re.compile(r"[/.-]")

NAMED_TIMES = {"midnight": time(0, 0), "noon": time(12, 0)}
# H:MM:SS is always read as 24h
FULL_CLOCK_RE = re.compile(r"(\d{1,2})[:.](\d{1,2})[:.](\d{1,2})")
# H, H:MM, with optional am/pm
CLOCK_RE = re.compile(r"(\d{1,2})(?:[:.](\d{1,2}))?(am|pm)?")


def _build_date(token: str, year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as e:
        raise InvalidDate(f"no such date: {e}", token=token) from e


def resolve_date(token: str, today: date) -> date:
    """Resolve a date expression against the reference date `today`.

    Rules, first match wins: relative words, weekday names (today or later),
    day of month, month/day, year/month/day.

    Raises:
        UnparsableDate: the token has none of the accepted shapes.
        InvalidDate: the shape is right but the calendar has no such day.
    """
    word = token.strip().lower()

    if word in _RELATIVE_DAYS:
        return today + timedelta(days=_RELATIVE_DAYS[word])

    if word in _WEEKDAYS:
        ahead = (_WEEKDAYS[word] - today.weekday()) % 7
        return today + timedelta(days=ahead)

    day_match = DAY_OF_MONTH_RE.fullmatch(word)
    if day_match:
        return _build_date(token, today.year, today.month, int(day_match.group(1)))

    parts = DATE_SEPARATOR_RE.split(word)
    if not all(p.isdigit() for p in parts):
        raise UnparsableDate("not a date", token=token, expected="today, a weekday, D, M/D or Y/M/D")

    if len(parts) == 2:
        month, day = (int(p) for p in parts)
        return _build_date(token, today.year, month, day)
    if len(parts) == 3:
        year, month, day = (int(p) for p in parts)
        return _build_date(token, year, month, day)

    raise UnparsableDate("not a date", token=token, expected="today, a weekday, D, M/D or Y/M/D")


def _build_time(token: str, hour: int, minute: int, second: int = 0) -> time:
    try:
        return time(hour, minute, second)
    except ValueError as e:
        raise InvalidTime(f"time out of range: {e}", token=token) from e


def resolve_time(token: str, *, now: datetime, is_today: bool, infer_12h: bool = True) -> time:
    """Resolve a time expression to a 24h clock time.

    Without an am/pm designation, hours below 13 on today's date are placed in
    the half of the clock that `now` is in, so `at 8` typed in the evening means
    20:00. Other dates, hours of 13 and above, and `infer_12h=False` read the
    hour as 24h.

    Raises:
        InvalidTime: out-of-range fields or an unknown shape.
    """
    word = token.strip().lower()

    if word in NAMED_TIMES:
        return NAMED_TIMES[word]

    full = FULL_CLOCK_RE.fullmatch(word)
    if full:
        hour, minute, second = (int(g) for g in full.groups())
        return _build_time(token, hour, minute, second)

    clock = CLOCK_RE.fullmatch(word)
    if not clock:
        raise InvalidTime("not a time", token=token, expected="noon, midnight, H, H:MM, H:MM:SS, Ham or H:MMpm")

    hour = int(clock.group(1))
    minute = int(clock.group(2) or 0)
    designation = clock.group(3)

    if designation:
        if not 1 <= hour <= 12:
            raise InvalidTime("12-hour clock hours run from 1 to 12", token=token)
        return _build_time(token, hour % 12 + (12 if designation == "pm" else 0), minute)

    # 0 has no 12-hour reading
    if is_today and infer_12h and 0 < hour < 13:
        afternoon = now.hour >= 12
        inferred = hour % 12 + (12 if afternoon else 0)
        logger.debug("Inferred %s as %02d:%02d (now=%s)", token, inferred, minute, now.time())
        return _build_time(token, inferred, minute)

    return _build_time(token, hour, minute)
