"""
Report period helpers.

Periods are zero-padded YYYYMM strings, so lexicographic order
equals chronological order.
"""

import re

from fund_twr.domain.errors import InvalidRequest

_PERIOD_RE = re.compile(r"^\d{6}$")


def is_valid_period(period) -> bool:
    if not isinstance(period, str) or not _PERIOD_RE.match(period):
        return False
    return 1 <= int(period[4:]) <= 12


def validate_period(period) -> str:
    if not is_valid_period(period):
        raise InvalidRequest(f"Invalid report period: {period!r} (expected YYYYMM)")
    return period


def date_to_period(value: str) -> str:
    """
    Convert a "YYYY-MM-DD" (or "YYYY-MM") date string to a YYYYMM period.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest("Invalid date range")
    return validate_period(value.strip().replace("-", "")[:6])


def validate_window(start_period: str, end_period: str) -> tuple[str, str]:
    validate_period(start_period)
    validate_period(end_period)
    if start_period > end_period:
        raise InvalidRequest(
            f"Start period {start_period} is after end period {end_period}"
        )
    return start_period, end_period


def next_period(period: str) -> str:
    validate_period(period)
    year, month = int(period[:4]), int(period[4:])
    if month == 12:
        return f"{year + 1:04d}01"
    return f"{year:04d}{month + 1:02d}"


def previous_period(period: str) -> str:
    validate_period(period)
    year, month = int(period[:4]), int(period[4:])
    if month == 1:
        return f"{year - 1:04d}12"
    return f"{year:04d}{month - 1:02d}"


def validate_window_length(months) -> int:
    if not isinstance(months, int) or isinstance(months, bool) or months < 1:
        raise InvalidRequest(f"Invalid trailing window length: {months!r}")
    return months


def trailing_window(end_period: str, months: int = 12) -> tuple[str, str]:
    """
    Window of `months` periods ending at end_period, both ends inclusive.
    202303 with 12 months -> (202204, 202303)
    """
    validate_window_length(months)
    start_period = validate_period(end_period)
    for _ in range(months - 1):
        start_period = previous_period(start_period)
    return start_period, end_period


def format_period(period: str) -> str:
    """202301 -> 2023/1. Anything malformed is returned as-is."""
    if not is_valid_period(period):
        return period
    return f"{period[:4]}/{int(period[4:])}"
