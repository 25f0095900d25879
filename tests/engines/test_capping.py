"""
Tests for the per-tenant monthly cap and excess redistribution.

Covers:
- Over-cap month scaled to the rate, record detail preserved
- Excess moved into months with room, proportional to their space
- Unresolved overflow when no month has enough room
- Opt-in redistribution into empty months
- Billing state mix carried into redistributed amounts
"""

from datetime import date
from decimal import Decimal

import pytest

from housing_engines.apportionment import MonthContribution
from housing_engines.capping import resolve_tenant_caps, split_proportionally
from housing_engines.month_grid import build_month_grid
from housing_kernel.domain.records import IssuedState, PaymentState
from housing_kernel.exceptions import ContractViolationError

RATE = Decimal("3500")


def _contribution(
    month_key,
    amount,
    record_id,
    payment_state=PaymentState.UNPAID,
    issued_state=IssuedState.DRAFT,
):
    return MonthContribution(
        tenant_id="t1",
        month_key=month_key,
        amount=Decimal(amount),
        source_record_id=record_id,
        payment_state=payment_state,
        issued_state=issued_state,
    )


class TestSplitProportionally:

    def test_parts_sum_to_total(self):
        shares = split_proportionally(
            Decimal("100"),
            {"a": Decimal("1"), "b": Decimal("1"), "c": Decimal("1")},
        )

        assert sum(shares.values()) == Decimal("100")
        assert shares["a"] == shares["b"]

    def test_last_key_takes_remainder(self):
        shares = split_proportionally(Decimal("10"), {"a": Decimal("1"), "b": Decimal("3")})

        assert shares == {"a": Decimal("2.5"), "b": Decimal("7.5")}

    def test_zero_weights_receive_zero(self):
        shares = split_proportionally(Decimal("10"), {"a": Decimal("0"), "b": Decimal("5")})

        assert shares == {"a": Decimal("0"), "b": Decimal("10")}

    def test_nothing_to_split(self):
        assert split_proportionally(Decimal("10"), {}) == {}
        assert split_proportionally(Decimal("0"), {"a": Decimal("1")}) == {"a": Decimal("0")}


class TestMonthlyCap:
    """Scenarios with two overlapping September records."""

    def setup_method(self):
        self.grid = build_month_grid(date(2025, 9, 15))

    def test_month_under_cap_is_untouched(self):
        allocation = resolve_tenant_caps(
            "t1", RATE, [_contribution("2025-09", "3500", "r1")], self.grid
        )

        september = allocation.month("2025-09")
        assert september.amount == RATE
        assert not september.was_capped
        assert september.excess == Decimal("0")
        assert allocation.total_redistributed == Decimal("0")

    def test_every_grid_month_present(self):
        allocation = resolve_tenant_caps("t1", RATE, [], self.grid)

        assert [m.month_key for m in allocation.months] == [m.key for m in self.grid]
        assert allocation.total_amount == Decimal("0")
        assert all(m.available_space == RATE for m in allocation.months)

    def test_excess_moves_into_month_with_room(self):
        contributions = [
            _contribution("2025-09", "3000", "r1"),
            _contribution("2025-09", "2000", "r2"),
            _contribution("2025-10", "1500", "r3"),
        ]

        allocation = resolve_tenant_caps("t1", RATE, contributions, self.grid)

        september = allocation.month("2025-09")
        october = allocation.month("2025-10")
        assert september.raw_amount == Decimal("5000")
        assert september.amount == RATE
        assert september.was_capped
        assert september.excess == Decimal("1500")
        assert september.available_space == Decimal("0")
        assert october.available_space == Decimal("2000")
        assert october.redistributed_amount == Decimal("1500")
        assert october.amount == Decimal("3000")
        assert allocation.total_amount == Decimal("6500")
        assert allocation.total_unresolved == Decimal("0")
        assert allocation.overflow_reports() == ()

    def test_capped_month_keeps_record_detail(self):
        contributions = [
            _contribution("2025-09", "3000", "r1"),
            _contribution("2025-09", "2000", "r2"),
        ]

        september = resolve_tenant_caps("t1", RATE, contributions, self.grid).month("2025-09")

        by_record = {c.source_record_id: c for c in september.contributions}
        assert by_record["r1"].amount == Decimal("2100")
        assert by_record["r2"].amount == Decimal("1400")
        assert all(c.was_capped for c in september.contributions)

    def test_insufficient_space_reports_overflow(self):
        contributions = [
            _contribution("2025-09", "3000", "r1"),
            _contribution("2025-09", "2000", "r2"),
            _contribution("2025-10", "2700", "r3"),
        ]

        allocation = resolve_tenant_caps("t1", RATE, contributions, self.grid)

        september = allocation.month("2025-09")
        october = allocation.month("2025-10")
        assert october.redistributed_amount == Decimal("800")
        assert october.amount == RATE
        assert september.amount + october.redistributed_amount == Decimal("4300")
        assert september.unresolved_overflow == Decimal("700")
        assert allocation.total_amount == Decimal("7000")

        reports = allocation.overflow_reports()
        assert len(reports) == 1
        assert reports[0].tenant_id == "t1"
        assert reports[0].month_key == "2025-09"
        assert reports[0].amount == Decimal("700")

    def test_conservation_with_overflow(self):
        contributions = [
            _contribution("2025-09", "5000", "r1"),
            _contribution("2025-10", "4000", "r2"),
            _contribution("2025-11", "3400", "r3"),
        ]

        allocation = resolve_tenant_caps("t1", RATE, contributions, self.grid)

        assert allocation.total_amount + allocation.total_unresolved == allocation.raw_total
        assert all(m.amount <= RATE for m in allocation.months)

    def test_excess_split_by_space(self):
        contributions = [
            _contribution("2025-09", "4500", "r1"),
            _contribution("2025-10", "3000", "r2"),
            _contribution("2025-11", "2000", "r3"),
        ]

        allocation = resolve_tenant_caps("t1", RATE, contributions, self.grid)

        assert allocation.month("2025-10").redistributed_amount == Decimal("250")
        assert allocation.month("2025-11").redistributed_amount == Decimal("750")
        assert allocation.month("2025-11").amount == Decimal("2750")


class TestEmptyMonthRedistribution:

    def setup_method(self):
        self.grid = build_month_grid(date(2025, 9, 15), months_before=1, months_after=1)
        self.contributions = [_contribution("2025-09", "5000", "r1")]

    def test_empty_months_are_skipped_by_default(self):
        allocation = resolve_tenant_caps("t1", RATE, self.contributions, self.grid)

        assert allocation.total_redistributed == Decimal("0")
        assert allocation.month("2025-09").unresolved_overflow == Decimal("1500")
        assert allocation.month("2025-08").amount == Decimal("0")

    def test_empty_months_receive_excess_when_enabled(self):
        allocation = resolve_tenant_caps(
            "t1", RATE, self.contributions, self.grid,
            redistribute_into_empty_months=True,
        )

        assert allocation.month("2025-08").redistributed_amount == Decimal("750")
        assert allocation.month("2025-10").redistributed_amount == Decimal("750")
        assert allocation.total_amount == Decimal("5000")
        assert allocation.total_unresolved == Decimal("0")


class TestRedistributedStates:

    def setup_method(self):
        self.grid = build_month_grid(date(2025, 9, 15))
        contributions = [
            _contribution("2025-09", "3000", "r1", PaymentState.PAID, IssuedState.ISSUED),
            _contribution("2025-09", "2000", "r2", PaymentState.UNPAID, IssuedState.ISSUED),
            _contribution("2025-10", "1500", "r3"),
        ]
        self.allocation = resolve_tenant_caps("t1", RATE, contributions, self.grid)

    def test_state_mix_follows_the_excess(self):
        october = self.allocation.month("2025-10")
        moved = [c for c in october.contributions if c.was_redistributed]

        assert len(moved) == 2
        paid = next(c for c in moved if c.is_paid)
        unpaid = next(c for c in moved if c.is_unpaid)
        assert paid.amount == Decimal("900")
        assert unpaid.amount == Decimal("600")

    def test_redistributed_contributions_are_labelled(self):
        october = self.allocation.month("2025-10")

        for contribution in october.contributions:
            if contribution.was_redistributed:
                assert contribution.source_record_id is None
                assert contribution.redistributed_from == ("2025-09",)
            else:
                assert contribution.source_record_id == "r3"

    def test_contributions_sum_to_month_amount(self):
        for month in self.allocation.months:
            assert sum((c.amount for c in month.contributions), Decimal("0")) == month.amount


class TestCapContract:

    def setup_method(self):
        self.grid = build_month_grid(date(2025, 9, 15))

    @pytest.mark.parametrize("rate", [Decimal("-1"), Decimal("NaN"), 3500, None])
    def test_bad_rate_rejected(self, rate):
        with pytest.raises(ContractViolationError):
            resolve_tenant_caps("t1", rate, [], self.grid)

    def test_contribution_outside_grid_rejected(self):
        with pytest.raises(ContractViolationError):
            resolve_tenant_caps(
                "t1", RATE, [_contribution("2030-01", "100", "r1")], self.grid
            )
