"""Calendar arithmetic for the 200-day window.

Every mapping between calendar dates and day numbers goes through this
module so that the registry, the ledger, the progress calculator and the CLI
agree on day boundaries. All results are date-only: time of day never
changes a day number or an "is active" answer.

Day numbers are 1-based. Day 1 is the start date, day 200 is
``start_date + 199 days``.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError

CHALLENGE_DAYS = 200

# Sum of 1..200
FINAL_EXPECTED_TOTAL = CHALLENGE_DAYS * (CHALLENGE_DAYS + 1) // 2

DateLike = Union[date, datetime, str]
ZoneLike = Union[str, tzinfo, None]


def resolve_tz(tz: ZoneLike) -> Optional[tzinfo]:
    """Turn an IANA name or tzinfo into a tzinfo (None stays None)."""
    if tz is None or isinstance(tz, tzinfo):
        return tz
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown time zone: {tz}") from e


def parse_datetime(value: DateLike, field: str = "date") -> datetime:
    """Parse a date-like value into a datetime.

    Accepts ``date``, ``datetime`` or an ISO-8601 string (a plain date, or a
    date-time with optional offset or ``Z`` suffix). Plain dates become
    naive midnight datetimes.

    Raises:
        ValidationError: If the value is empty or cannot be parsed
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field}: {value!r}")


def to_local_date(value: DateLike, tz: ZoneLike = None) -> date:
    """Strip time of day, returning the calendar date in ``tz``.

    Aware datetimes are converted into ``tz`` first (process local zone when
    ``tz`` is None). Naive datetimes are taken as wall-clock time already.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value

    moment = parse_datetime(value)
    if moment.tzinfo is not None:
        zone = resolve_tz(tz)
        moment = moment.astimezone(zone) if zone is not None else moment.astimezone()
    return moment.date()


def parse_date(value: DateLike, tz: ZoneLike = None, field: str = "date") -> date:
    """Parse and normalize a date-like value to a calendar date.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    return to_local_date(parse_datetime(value, field=field), tz)


def days_between(later: DateLike, earlier: DateLike, tz: ZoneLike = None) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if before)."""
    return (to_local_date(later, tz) - to_local_date(earlier, tz)).days


def normalize_day(value: DateLike, reference_start: DateLike, tz: ZoneLike = None) -> int:
    """1-based day index of ``value`` relative to ``reference_start``.

    The result is not clamped: dates before the start give 0 or less, dates
    after the window give more than 200.
    """
    return days_between(value, reference_start, tz) + 1


def window_end(start_date: DateLike, tz: ZoneLike = None) -> date:
    """Last day of the window, ``start_date + 199 days``."""
    return to_local_date(start_date, tz) + timedelta(days=CHALLENGE_DAYS - 1)


def date_for_day(start_date: DateLike, day_number: int, tz: ZoneLike = None) -> date:
    """Calendar date of ``day_number`` in a window starting at ``start_date``."""
    day_number = validate_day_number(day_number)
    return to_local_date(start_date, tz) + timedelta(days=day_number - 1)


def day_for_date(start_date: DateLike, value: DateLike, tz: ZoneLike = None) -> Optional[int]:
    """Day number of ``value`` if it falls inside the window, else None."""
    day = normalize_day(value, start_date, tz)
    if 1 <= day <= CHALLENGE_DAYS:
        return day
    return None


def clamp_day(day: int) -> int:
    """Clamp a raw day index into ``[1, 200]``."""
    return max(1, min(CHALLENGE_DAYS, day))


def is_within_window(start_date: DateLike, value: DateLike, tz: ZoneLike = None) -> bool:
    """Whether ``value`` is on or before the last day of the window."""
    return to_local_date(value, tz) <= window_end(start_date, tz)


def validate_day_number(day_number) -> int:
    """Coerce and range-check a day number.

    Accepts ints and decimal strings. Booleans and fractional values are
    rejected.

    Raises:
        ValidationError: If the value is not an integer in ``[1, 200]``
    """
    if isinstance(day_number, bool):
        raise ValidationError("day_number must be an integer")
    if isinstance(day_number, str):
        try:
            day_number = int(day_number.strip())
        except ValueError as e:
            raise ValidationError(f"Invalid day_number: {day_number!r}") from e
    if isinstance(day_number, float):
        if not day_number.is_integer():
            raise ValidationError("day_number must be an integer")
        day_number = int(day_number)
    if not isinstance(day_number, int):
        raise ValidationError("day_number must be an integer")
    if not 1 <= day_number <= CHALLENGE_DAYS:
        raise ValidationError(f"day_number must be between 1 and {CHALLENGE_DAYS}")
    return day_number
