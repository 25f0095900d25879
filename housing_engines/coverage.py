"""
Module: housing_engines.coverage
Responsibility:
    Compute how a billing record's inclusive coverage period overlaps a
    calendar month.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Overlap is counted in whole days, both ends inclusive.
    - ``full_month`` is true only when the coverage spans the whole month,
      so a full month always recognizes exactly the monthly rate.

Failure modes:
    - None.  Callers must have rejected records with missing or inverted
      coverage before calling; an inverted period simply never overlaps.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from housing_engines.month_grid import CalendarMonth
from housing_kernel.domain.values import ZERO


@dataclass(frozen=True)
class CoverageOverlap:
    """Days of one month covered by one record."""

    overlap_days: int
    month_days: int
    full_month: bool

    @property
    def fraction(self) -> Decimal:
        """Covered share of the month, in ``(0, 1]``."""
        if self.full_month:
            return Decimal(1)
        return Decimal(self.overlap_days) / Decimal(self.month_days)


def compute_overlap(
    coverage_start: date,
    coverage_end: date,
    month: CalendarMonth,
) -> CoverageOverlap | None:
    """Overlap of ``[coverage_start, coverage_end]`` with ``month``, or None."""
    month_start = month.first_day
    month_end = month.last_day

    start = max(coverage_start, month_start)
    end = min(coverage_end, month_end)
    if start > end:
        return None

    return CoverageOverlap(
        overlap_days=(end - start).days + 1,
        month_days=month.days,
        full_month=coverage_start <= month_start and coverage_end >= month_end,
    )


def months_touched(coverage_start: date, coverage_end: date) -> list[CalendarMonth]:
    """Every calendar month the coverage period touches, in order."""
    if coverage_start > coverage_end:
        return []
    months = []
    month = CalendarMonth.of(coverage_start)
    last = CalendarMonth.of(coverage_end)
    while month <= last:
        months.append(month)
        month = month.shift(1)
    return months


def month_equivalents(coverage_start: date, coverage_end: date) -> Decimal:
    """
    Length of the coverage period measured in months.

    Sum over every month touched of ``overlap_days / month_days``; a
    quarter-aligned record is exactly 3.  Not limited to any grid.
    """
    total = ZERO
    for month in months_touched(coverage_start, coverage_end):
        overlap = compute_overlap(coverage_start, coverage_end, month)
        if overlap is not None:
            total += overlap.fraction
    return total
