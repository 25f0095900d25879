"""
Tests for the date normalization boundary, amount parsing and the
deterministic clock.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from housing_kernel.domain.clock import DeterministicClock
from housing_kernel.domain.dates import add_months, to_date
from housing_kernel.domain.values import is_usable_amount, percentage, quantize, to_amount
from housing_kernel.exceptions import MalformedRecordError


class _WrappedTimestamp:
    """Document-store timestamp exposing ``to_datetime()``."""

    def __init__(self, moment):
        self._moment = moment

    def to_datetime(self):
        return self._moment


class _SecondsTimestamp:
    def __init__(self, seconds, nanoseconds=0):
        self.seconds = seconds
        self.nanoseconds = nanoseconds


class TestToDate:

    def test_absent_values(self):
        assert to_date(None) is None
        assert to_date("") is None
        assert to_date("   ") is None

    def test_native_dates(self):
        assert to_date(date(2025, 9, 1)) == date(2025, 9, 1)
        assert to_date(datetime(2025, 9, 1, 23, 59)) == date(2025, 9, 1)

    def test_result_is_never_a_datetime(self):
        result = to_date(datetime(2025, 9, 1, 8, 0, tzinfo=timezone.utc))

        assert type(result) is date

    @pytest.mark.parametrize("text", [
        "2025-09-01",
        "2025/09/01",
        "2025-9-1",
        "2025-09-01T00:00:00Z",
        "2025-09-01T08:00:00+08:00",
    ])
    def test_iso_strings(self, text):
        assert to_date(text) == date(2025, 9, 1)

    def test_aware_values_use_the_timezone(self):
        assert to_date("2025-08-31T20:00:00Z", tz="Asia/Hong_Kong") == date(2025, 9, 1)
        assert to_date("2025-08-31T20:00:00Z") == date(2025, 8, 31)

    def test_wrapped_timestamp(self):
        moment = datetime(2025, 8, 31, 16, 0, tzinfo=timezone.utc)

        assert to_date(_WrappedTimestamp(moment), tz="Asia/Hong_Kong") == date(2025, 9, 1)

    def test_seconds_timestamps(self):
        assert to_date({"seconds": 1756684800, "nanoseconds": 0}) == date(2025, 9, 1)
        assert to_date({"_seconds": 1756684800}) == date(2025, 9, 1)
        assert to_date(_SecondsTimestamp(1756684800)) == date(2025, 9, 1)
        assert to_date(1756684800) == date(2025, 9, 1)

    @pytest.mark.parametrize("value", ["not a date", "2025-13-01", True, object(), [2025, 9, 1]])
    def test_malformed(self, value):
        with pytest.raises(MalformedRecordError) as exc_info:
            to_date(value, "coverage_start", "inv-1")

        assert exc_info.value.code == "MALFORMED_RECORD"
        assert exc_info.value.field == "coverage_start"
        assert exc_info.value.record_id == "inv-1"


class TestMonthHelpers:

    def test_add_months_crosses_years(self):
        assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 1)
        assert add_months(date(2025, 1, 31), -2) == date(2024, 11, 1)


class TestToAmount:

    @pytest.mark.parametrize("value,expected", [
        ("3500", Decimal("3500")),
        ("HK$3,500", Decimal("3500")),
        ("$HK 3,500.50", Decimal("3500.50")),
        ("3,500港元", Decimal("3500")),
        (3500, Decimal("3500")),
        (0.1, Decimal("0.1")),
        (Decimal("12.34"), Decimal("12.34")),
        ("-200", Decimal("-200")),
        (" HKD 3,500 ", Decimal("3500")),
        (".5", Decimal("0.5")),
    ])
    def test_parses(self, value, expected):
        assert to_amount(value) == expected

    def test_absent(self):
        assert to_amount(None) is None
        assert to_amount("HK$") is None

    @pytest.mark.parametrize("value", [
        "abc",
        "NaN",
        "inf",
        True,
        Decimal("Infinity"),
        [1],
        "3500 (deposit 500)",
        "1e3",
        "12abc34",
        "1.2.3",
        "35-00",
    ])
    def test_malformed(self, value):
        with pytest.raises(MalformedRecordError):
            to_amount(value, "amount", "inv-1")


class TestRounding:

    def test_quantize_half_up(self):
        assert quantize(Decimal("2.345")) == Decimal("2.35")
        assert quantize(Decimal("2.344")) == Decimal("2.34")
        assert quantize(Decimal("2.5"), 0) == Decimal("3")

    def test_percentage(self):
        assert percentage(Decimal("7000"), Decimal("11000")) == Decimal("63.64")
        assert percentage(Decimal("5"), Decimal("0")) == Decimal("0.00")

    def test_usable_amount(self):
        assert is_usable_amount(Decimal("0"))
        assert not is_usable_amount(Decimal("-1"))
        assert not is_usable_amount(None)


class TestDeterministicClock:

    def test_today_in_timezone(self):
        clock = DeterministicClock(datetime(2025, 8, 31, 20, 0, tzinfo=timezone.utc))

        assert clock.today() == date(2025, 8, 31)
        assert clock.today("Asia/Hong_Kong") == date(2025, 9, 1)

    def test_advance_days(self):
        clock = DeterministicClock.on(date(2025, 9, 15))

        clock.advance_days(20)

        assert clock.today() == date(2025, 10, 5)
        assert clock.now() - datetime(2025, 9, 15, 12, tzinfo=timezone.utc) == timedelta(days=20)
