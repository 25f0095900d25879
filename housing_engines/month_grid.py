"""
Module: housing_engines.month_grid
Responsibility:
    Build the ordered window of calendar months that rent is recognized
    into, centred on an explicit reference date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import housing_kernel/domain and sibling engine modules.

Invariants enforced:
    - The grid is ordered by (year, month) and has no gaps.
    - Every month starts on its first day regardless of the reference day.
    - The grid never reads a clock; the reference date is always passed in.

Failure modes:
    - ContractViolationError for a negative or non-integer window size or
      a reference that is not a date.

Usage:
    from housing_engines.month_grid import build_month_grid

    grid = build_month_grid(date(2025, 9, 15))
    assert [m.key for m in grid][:2] == ["2025-06", "2025-07"]
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from housing_kernel.domain.dates import add_months
from housing_kernel.exceptions import ContractViolationError

DEFAULT_MONTHS_BEFORE = 3
DEFAULT_MONTHS_AFTER = 8


@dataclass(frozen=True, order=True)
class CalendarMonth:
    """
    One calendar month.

    Contract:
        Ordered by (year, month).  ``first_day`` and ``last_day`` are
        inclusive bounds; ``days`` is the number of days in the month.
    """

    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> CalendarMonth:
        return cls(day.year, day.month)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days)

    def shift(self, months: int) -> CalendarMonth:
        return CalendarMonth.of(add_months(self.first_day, months))

    def __str__(self) -> str:
        return self.key


def _check_window_size(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ContractViolationError(name, "non-negative int", value)
    return value


def build_month_grid(
    reference_date: date,
    months_before: int = DEFAULT_MONTHS_BEFORE,
    months_after: int = DEFAULT_MONTHS_AFTER,
) -> tuple[CalendarMonth, ...]:
    """
    Ordered months from ``reference - months_before`` to
    ``reference + months_after`` inclusive.

    Postconditions:
        - ``len(result) == months_before + months_after + 1``.
        - Deterministic for a given reference month.
    """
    if not isinstance(reference_date, date):
        raise ContractViolationError("reference_date", "date", reference_date)
    before = _check_window_size("months_before", months_before)
    after = _check_window_size("months_after", months_after)

    anchor = CalendarMonth.of(reference_date)
    return tuple(anchor.shift(offset) for offset in range(-before, after + 1))


def month_of(day: date) -> CalendarMonth:
    return CalendarMonth.of(day)


def find_month(grid: Iterable[CalendarMonth], key: str) -> CalendarMonth | None:
    """Month in ``grid`` with the given ``YYYY-MM`` key, or None."""
    for month in grid:
        if month.key == key:
            return month
    return None
