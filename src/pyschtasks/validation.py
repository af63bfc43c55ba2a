"""Validation and normalisation of schtasks parameters.

Everything here is pure: values are checked (and, where schtasks has a
canonical spelling, normalised) before any command line is assembled.
Failures raise :class:`~pyschtasks.errors.ValidationError`.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Optional, Tuple, Union

from .errors import ValidationError


MAX_TASK_NAME_LENGTH = 238
# Backslash is allowed: it separates task folders.
INVALID_TASK_NAME_CHARS = ("<", ">", ":", '"', "/", "|", "?", "*")

INTERVAL_RANGE = (1, 599940)
IDLE_TIME_RANGE = (1, 999)
MINUTE_RANGE = (1, 1439)
HOURLY_RANGE = (1, 23)
DAILY_RANGE = (1, 365)
WEEKLY_RANGE = (1, 52)
MONTHLY_RANGE = (1, 12)
DAY_OF_MONTH_RANGE = (1, 31)

RUN_LEVELS = ("LIMITED", "HIGHEST")

DAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
_DAY_NAMES = {
    "MONDAY": "MON",
    "TUESDAY": "TUE",
    "WEDNESDAY": "WED",
    "THURSDAY": "THU",
    "FRIDAY": "FRI",
    "SATURDAY": "SAT",
    "SUNDAY": "SUN",
}

MONTHS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)
_MONTH_NAMES = {
    "JANUARY": "JAN",
    "FEBRUARY": "FEB",
    "MARCH": "MAR",
    "APRIL": "APR",
    "JUNE": "JUN",
    "JULY": "JUL",
    "AUGUST": "AUG",
    "SEPTEMBER": "SEP",
    "OCTOBER": "OCT",
    "NOVEMBER": "NOV",
    "DECEMBER": "DEC",
}
ALL_MONTHS = "*"

_TIME_RE = re.compile(r"([0-1]?[0-9]|2[0-3]):[0-5][0-9]")
_DATE_RES = (
    re.compile(r"[0-9]{4}/[0-9]{2}/[0-9]{2}"),  # YYYY/MM/DD
    re.compile(r"[0-9]{2}/[0-9]{2}/[0-9]{4}"),  # DD/MM/YYYY or MM/DD/YYYY
    re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}"),  # YYYY-MM-DD
)

DateLike = Union[str, date]


def validate_task_name(task_name: object) -> str:
    """Check a task name (optionally ``\\Folder\\Name``) against schtasks rules."""
    if not isinstance(task_name, str) or not task_name:
        raise ValidationError("Task name must be a non-empty string.")

    if len(task_name) > MAX_TASK_NAME_LENGTH:
        raise ValidationError(
            "Task name exceeds maximum length: must be "
            f"{MAX_TASK_NAME_LENGTH} characters or fewer (got {len(task_name)})."
        )

    if any(ch in task_name for ch in INVALID_TASK_NAME_CHARS):
        raise ValidationError(
            "Task name contains invalid characters. Task names cannot contain: "
            + " ".join(INVALID_TASK_NAME_CHARS)
        )

    return task_name


def validate_time(value: object, arg_name: str = "time") -> str:
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise ValidationError(
            f"Invalid time format for '{arg_name}': expected HH:MM in 24-hour "
            f"format (e.g. '09:00', '14:30'), got {value!r}."
        )
    return value


def validate_date(value: object, arg_name: str = "date") -> str:
    """Return ``value`` in a shape schtasks accepts.

    ``date`` objects are formatted as ``YYYY/MM/DD``. Strings are accepted
    unchanged when they look like ``YYYY/MM/DD``, ``DD/MM/YYYY`` or
    ``YYYY-MM-DD``; the exact order schtasks expects depends on the locale.
    """
    if isinstance(value, date):
        return value.strftime("%Y/%m/%d")

    if isinstance(value, str) and any(p.fullmatch(value) for p in _DATE_RES):
        return value

    raise ValidationError(
        f"Invalid date format for '{arg_name}': expected a date in YYYY/MM/DD, "
        f"DD/MM/YYYY, or YYYY-MM-DD format, got {value!r}."
    )


def validate_int_range(
    value: object,
    bounds: Tuple[int, int],
    arg_name: str = "value",
) -> int:
    lower, upper = bounds
    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    else:
        number = None

    if number is None:
        raise ValidationError(f"'{arg_name}' must be a whole number, got {value!r}.")
    if not lower <= number <= upper:
        raise ValidationError(
            f"'{arg_name}' must be between {lower} and {upper}, got {number}."
        )
    return number


def validate_run_level(value: object) -> str:
    level = value.upper() if isinstance(value, str) else ""
    if level not in RUN_LEVELS:
        raise ValidationError(
            f"'run_level' must be one of {', '.join(RUN_LEVELS)}, got {value!r}."
        )
    return level


def validate_flag(value: object, arg_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"'{arg_name}' must be True or False, got {value!r}.")
    return value


def validate_non_empty(value: object, arg_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"'{arg_name}' must be a non-empty string.")
    return value


def check_end_time_duration(end_time: Optional[str], duration: Optional[str]) -> None:
    if end_time is not None and duration is not None:
        raise ValidationError("Cannot specify both 'end_time' and 'duration'.")


def normalise_day(day: object) -> str:
    token = day.upper() if isinstance(day, str) else ""
    token = _DAY_NAMES.get(token, token)
    if token not in DAYS:
        raise ValidationError(
            f"Invalid day of week: expected one of {', '.join(DAYS)}, got {day!r}."
        )
    return token


def normalise_days(days: Union[str, Iterable[str]]) -> str:
    if isinstance(days, str):
        days = [days]
    return ",".join(normalise_day(d) for d in days)


def normalise_month(month: object) -> str:
    if month == ALL_MONTHS:
        return ALL_MONTHS
    token = month.upper() if isinstance(month, str) else ""
    token = _MONTH_NAMES.get(token, token)
    if token not in MONTHS:
        raise ValidationError(
            f"Invalid month: expected one of {', '.join(MONTHS)} or '*' for all "
            f"months, got {month!r}."
        )
    return token


def normalise_months(months: Union[str, Iterable[str]]) -> str:
    if isinstance(months, str):
        months = [months]
    return ",".join(normalise_month(m) for m in months)
