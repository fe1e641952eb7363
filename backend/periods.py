from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from models import TimePeriod


def resolve_period(timestamp, periods: Iterable[TimePeriod]) -> Optional[TimePeriod]:
    """
    Return the period whose [start, end] contains `timestamp` (bounds inclusive).

    Returns None when no period matches; the caller skips the dependent record.
    Periods are assumed not to overlap. If they do, the first match wins.
    """
    if timestamp is None:
        return None
    for period in periods:
        if period.start <= timestamp <= period.end:
            return period
    return None


def semester_periods(first_year: int, last_year: int) -> list[TimePeriod]:
    """
    Spring (P) and autumn (A) semesters for every year in [first_year, last_year].

    P24 = 2024-02-20 .. 2024-08-31 23:59:59.999999
    A24 = 2024-09-01 .. 2025-02-19 23:59:59.999999

    Consecutive semesters are contiguous: no timestamp falls between them.
    """
    periods: list[TimePeriod] = []
    for year in range(first_year, last_year + 1):
        suffix = f"{year % 100:02d}"
        periods.append(TimePeriod(
            code=f"P{suffix}",
            start=datetime(year, 2, 20),
            end=datetime(year, 8, 31, 23, 59, 59, 999999),
        ))
        periods.append(TimePeriod(
            code=f"A{suffix}",
            start=datetime(year, 9, 1),
            end=datetime(year + 1, 2, 19, 23, 59, 59, 999999),
        ))
    return periods
