# budget_api/periods.py
"""
Helpers for budget periods and client timestamps.

Definitions
- month bounds: inclusive UTC range [first instant of day 1, last instant of
  the last calendar day]
- epoch value: seconds OR milliseconds since 1970; values > 1e12 are
  treated as milliseconds

Public API:
- validate_year_month(year, month) -> None
- month_bounds(year, month) -> (start, end)
- parse_timestamp(value) -> aware UTC datetime
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Union

__all__ = [
    "MS_THRESHOLD",
    "validate_year_month",
    "month_bounds",
    "parse_timestamp",
]

# anything above this is an epoch in milliseconds (1e12 s is year ~33658)
MS_THRESHOLD = 1e12


def validate_year_month(year: int, month: int) -> None:
    """Raise ValueError unless year is 1970..9999 and month is 1..12."""
    if year < 1970 or year > 9999:
        raise ValueError("year must be between 1970 and 9999")
    if month < 1 or month > 12:
        raise ValueError("month must be between 1 and 12")


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """
    Inclusive UTC boundaries of a calendar month, as aware datetimes.
    Example: (2024, 2) -> 2024-02-01 00:00:00 .. 2024-02-29 23:59:59.999999
    """
    validate_year_month(year, month)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


def _from_epoch(value: float) -> datetime:
    seconds = value / 1000 if value > MS_THRESHOLD else value
    try:
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"timestamp out of range: {value!r}") from exc
    return dt


def parse_timestamp(value: Union[int, float, str, datetime]) -> datetime:
    """
    Accept epoch seconds, epoch milliseconds, a numeric string or an ISO-8601
    string, and return an aware UTC datetime. Naive input is taken as UTC.
    """
    if isinstance(value, bool):
        raise ValueError("timestamp must be a number or an ISO-8601 string")
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        return _from_epoch(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("timestamp is required")
        try:
            return _from_epoch(float(s))
        except ValueError:
            pass
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError as exc:
            raise ValueError(f"invalid timestamp: {value!r}") from exc
    else:
        raise ValueError("timestamp must be a number or an ISO-8601 string")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
