"""
Module: housing_engines.aggregation
Responsibility:
    Roll per-tenant allocations up into one summary per calendar month,
    split by billing state.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - paid = issued and paid; unpaid = issued and not paid; uninvoiced =
      still a draft.  A paid draft counts as uninvoiced.
    - ``total_paid + total_unpaid + total_uninvoiced == total_recognized``
      exactly after rounding.  Amounts are rounded once, here, using
      cumulative half-up rounding, so no bucket goes negative.
    - Summaries follow grid order and cover every grid month.
    - ``total_receivable`` is rate-based demand: the sum of the monthly
      rates of tenants in residence that month, whether or not anything
      was billed.

Failure modes:
    - None for well-formed allocations.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from housing_engines.capping import TenantAllocation
from housing_engines.month_grid import CalendarMonth
from housing_kernel.domain.values import ZERO, quantize


@dataclass(frozen=True)
class MonthlySummary:
    """
    Recognized rent for one month across all eligible tenants.

    Contract:
        Amounts are rounded to the configured precision.  Counts:
        ``paid_count`` / ``unpaid_count`` count billing records,
        ``contributing_tenant_count`` / ``capped_tenant_count`` /
        ``receivable_tenant_count`` count tenants.
    """

    month_key: str
    total_recognized: Decimal
    total_paid: Decimal
    total_unpaid: Decimal
    total_uninvoiced: Decimal
    total_redistributed: Decimal
    paid_count: int
    unpaid_count: int
    capped_tenant_count: int
    contributing_tenant_count: int
    total_receivable: Decimal = ZERO
    receivable_tenant_count: int = 0

    @classmethod
    def empty(cls, month_key: str, places: int = 2) -> MonthlySummary:
        zero = quantize(ZERO, places)
        return cls(month_key, zero, zero, zero, zero, zero, 0, 0, 0, 0, zero, 0)


@dataclass
class _MonthTotals:
    recognized: Decimal = ZERO
    paid: Decimal = ZERO
    unpaid: Decimal = ZERO
    redistributed: Decimal = ZERO
    paid_records: int = 0
    unpaid_records: int = 0
    capped_tenants: int = 0
    contributing_tenants: int = 0
    receivable: Decimal = ZERO
    receivable_tenants: int = 0


def aggregate_monthly(
    allocations: Iterable[TenantAllocation],
    grid: Sequence[CalendarMonth],
    places: int = 2,
    monthly_demand: Iterable[tuple[str, Decimal]] = (),
) -> tuple[MonthlySummary, ...]:
    """
    One MonthlySummary per grid month, in grid order.

    ``monthly_demand`` holds one ``(month_key, rate)`` pair per tenant in
    residence that month.
    """
    totals = {month.key: _MonthTotals() for month in grid}

    for month_key, rate in monthly_demand:
        bucket = totals.get(month_key)
        if bucket is not None:
            bucket.receivable += rate
            bucket.receivable_tenants += 1

    for allocation in allocations:
        for month in allocation.months:
            bucket = totals.get(month.month_key)
            if bucket is None:
                continue
            bucket.recognized += month.amount
            bucket.redistributed += month.redistributed_amount
            if month.amount > ZERO:
                bucket.contributing_tenants += 1
            if month.was_capped:
                bucket.capped_tenants += 1
            for contribution in month.contributions:
                if contribution.is_paid:
                    bucket.paid += contribution.amount
                    if contribution.source_record_id is not None:
                        bucket.paid_records += 1
                elif contribution.is_unpaid:
                    bucket.unpaid += contribution.amount
                    if contribution.source_record_id is not None:
                        bucket.unpaid_records += 1

    summaries = []
    for month in grid:
        t = totals[month.key]
        recognized = quantize(t.recognized, places)
        paid = quantize(t.paid, places)
        issued = quantize(t.paid + t.unpaid, places)
        summaries.append(
            MonthlySummary(
                month_key=month.key,
                total_recognized=recognized,
                total_paid=paid,
                total_unpaid=issued - paid,
                total_uninvoiced=recognized - issued,
                total_redistributed=quantize(t.redistributed, places),
                paid_count=t.paid_records,
                unpaid_count=t.unpaid_records,
                capped_tenant_count=t.capped_tenants,
                contributing_tenant_count=t.contributing_tenants,
                total_receivable=quantize(t.receivable, places),
                receivable_tenant_count=t.receivable_tenants,
            )
        )
    return tuple(summaries)
