"""
Tests for the month grid builder and coverage overlap calculator.

Covers:
- Default 12-month window around the reference date
- Year boundaries and custom window sizes
- Contract violations for bad window sizes
- Inclusive day-count overlap and the full-month flag
- Month equivalents of a coverage period
"""

from datetime import date
from decimal import Decimal

import pytest

from housing_engines.coverage import compute_overlap, month_equivalents, months_touched
from housing_engines.month_grid import CalendarMonth, build_month_grid, find_month, month_of
from housing_kernel.exceptions import ContractViolationError


class TestBuildMonthGrid:
    """Ordered, gap-free month windows."""

    def test_default_window_is_twelve_months(self):
        grid = build_month_grid(date(2025, 9, 15))

        assert len(grid) == 12
        assert grid[0].key == "2025-06"
        assert grid[3].key == "2025-09"
        assert grid[-1].key == "2026-05"

    def test_months_are_consecutive(self):
        grid = build_month_grid(date(2025, 9, 15))

        for previous, current in zip(grid, grid[1:]):
            assert previous.shift(1) == current
            assert previous < current

    def test_window_crosses_year_boundary(self):
        grid = build_month_grid(date(2025, 1, 31), months_before=3, months_after=2)

        assert [m.key for m in grid] == [
            "2024-10", "2024-11", "2024-12", "2025-01", "2025-02", "2025-03",
        ]

    def test_reference_day_does_not_matter(self):
        assert build_month_grid(date(2025, 9, 1)) == build_month_grid(date(2025, 9, 30))

    def test_zero_window_is_reference_month_only(self):
        grid = build_month_grid(date(2025, 9, 15), months_before=0, months_after=0)

        assert [m.key for m in grid] == ["2025-09"]

    @pytest.mark.parametrize("bad", [-1, 1.5, True, "3", None])
    def test_bad_window_size_rejected(self, bad):
        with pytest.raises(ContractViolationError) as exc_info:
            build_month_grid(date(2025, 9, 15), months_before=bad)

        assert exc_info.value.code == "CONTRACT_VIOLATION"
        assert exc_info.value.argument == "months_before"

    def test_reference_must_be_a_date(self):
        with pytest.raises(ContractViolationError):
            build_month_grid("2025-09-15")


class TestCalendarMonth:

    def test_leap_february(self):
        month = CalendarMonth(2024, 2)

        assert month.days == 29
        assert month.first_day == date(2024, 2, 1)
        assert month.last_day == date(2024, 2, 29)

    def test_key_and_lookup(self):
        grid = build_month_grid(date(2025, 9, 15))

        assert month_of(date(2025, 12, 25)).key == "2025-12"
        assert find_month(grid, "2025-12") == CalendarMonth(2025, 12)
        assert find_month(grid, "2030-01") is None


class TestComputeOverlap:
    """Inclusive overlap of a coverage period with one month."""

    def setup_method(self):
        self.september = CalendarMonth(2025, 9)

    def test_exact_full_month(self):
        overlap = compute_overlap(date(2025, 9, 1), date(2025, 9, 30), self.september)

        assert overlap.overlap_days == 30
        assert overlap.month_days == 30
        assert overlap.full_month is True
        assert overlap.fraction == Decimal(1)

    def test_coverage_spanning_the_month_is_full(self):
        overlap = compute_overlap(date(2025, 8, 15), date(2025, 10, 15), self.september)

        assert overlap.full_month is True
        assert overlap.overlap_days == 30

    def test_partial_month(self):
        overlap = compute_overlap(date(2025, 9, 16), date(2025, 10, 15), self.september)

        assert overlap.overlap_days == 15
        assert overlap.full_month is False
        assert overlap.fraction == Decimal(15) / Decimal(30)

    def test_single_day_counts_as_one_day(self):
        overlap = compute_overlap(date(2025, 9, 30), date(2025, 9, 30), self.september)

        assert overlap.overlap_days == 1
        assert overlap.full_month is False

    def test_no_overlap(self):
        assert compute_overlap(date(2025, 10, 1), date(2025, 10, 31), self.september) is None
        assert compute_overlap(date(2025, 8, 1), date(2025, 8, 31), self.september) is None

    def test_inverted_period_never_overlaps(self):
        assert compute_overlap(date(2025, 9, 30), date(2025, 9, 1), self.september) is None


class TestMonthEquivalents:

    def test_aligned_quarter_is_three_months(self):
        assert month_equivalents(date(2025, 7, 1), date(2025, 9, 30)) == Decimal(3)

    def test_straddling_period(self):
        expected = Decimal(15) / Decimal(30) + Decimal(15) / Decimal(31)

        assert month_equivalents(date(2025, 9, 16), date(2025, 10, 15)) == expected

    def test_inverted_period_is_zero(self):
        assert months_touched(date(2025, 10, 1), date(2025, 9, 1)) == []
        assert month_equivalents(date(2025, 10, 1), date(2025, 9, 1)) == Decimal(0)
