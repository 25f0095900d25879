"""
Module: housing_engines.rent_metrics
Responsibility:
    Current-month rent figures for the dashboard and the monthly snapshot,
    derived from an allocation outcome, plus the snapshot sanity checks.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Reads an AllocationOutcome;
    never re-runs allocation.

Invariants enforced:
    - ``collection_rate = received / total_receivable * 100`` rounded to two
      places, and exactly 0 when nothing is receivable (no division).
    - A reference month outside the outcome's grid yields all-zero metrics.

Failure modes:
    - ContractViolationError if reference_date is not a date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from housing_engines.month_grid import CalendarMonth
from housing_kernel.domain.values import ZERO, percentage, quantize
from housing_kernel.exceptions import ContractViolationError

if TYPE_CHECKING:
    from housing_engines.recognition import AllocationOutcome

# Received above this share of receivable is suspicious
RECEIVED_TOLERANCE = Decimal("1.1")


@dataclass(frozen=True)
class RentMetrics:
    """
    Rent figures for one month.

    Contract:
        ``total_receivable`` is the sum of the monthly rates of tenants in
        residence that month, whether or not anything was billed.
        ``invoiced`` is the recognized rent, ``received`` its paid part and
        ``outstanding`` its issued-but-unpaid part.
    """

    month_key: str
    total_receivable: Decimal
    invoiced: Decimal
    received: Decimal
    outstanding: Decimal
    collection_rate: Decimal
    contributing_tenant_count: int = 0
    receivable_tenant_count: int = 0
    excluded_record_count: int = 0
    overflow_amount: Decimal = ZERO


@dataclass(frozen=True)
class MetricsWarning:
    code: str
    field: str
    message: str


def current_month_metrics(
    outcome: AllocationOutcome,
    reference_date: date,
    places: int = 2,
) -> RentMetrics:
    """Metrics for the month containing ``reference_date``."""
    if not isinstance(reference_date, date):
        raise ContractViolationError("reference_date", "date", reference_date)

    month_key = CalendarMonth.of(reference_date).key
    excluded = outcome.excluded_record_count
    summary = outcome.summary(month_key)
    if summary is None:
        zero = quantize(ZERO, places)
        return RentMetrics(
            month_key=month_key,
            total_receivable=zero,
            invoiced=zero,
            received=zero,
            outstanding=zero,
            collection_rate=zero,
            excluded_record_count=excluded,
            overflow_amount=zero,
        )

    overflow = sum(
        (report.amount for report in outcome.overflow if report.month_key == month_key),
        ZERO,
    )
    return RentMetrics(
        month_key=month_key,
        total_receivable=summary.total_receivable,
        invoiced=summary.total_recognized,
        received=summary.total_paid,
        outstanding=summary.total_unpaid,
        collection_rate=percentage(summary.total_paid, summary.total_receivable, places),
        contributing_tenant_count=summary.contributing_tenant_count,
        receivable_tenant_count=summary.receivable_tenant_count,
        excluded_record_count=excluded,
        overflow_amount=quantize(overflow, places),
    )


def validate_metrics(metrics: RentMetrics) -> tuple[MetricsWarning, ...]:
    """Sanity checks run before a monthly snapshot is stored."""
    warnings = []
    for field in ("total_receivable", "received", "outstanding"):
        if getattr(metrics, field) < ZERO:
            warnings.append(MetricsWarning("NEGATIVE_VALUE", field, f"{field} is negative"))

    if metrics.received > metrics.total_receivable * RECEIVED_TOLERANCE:
        warnings.append(
            MetricsWarning(
                "RECEIVED_EXCEEDS_RECEIVABLE",
                "received",
                "received rent is well above receivable rent",
            )
        )

    if metrics.receivable_tenant_count == 0 and metrics.total_receivable > ZERO:
        warnings.append(
            MetricsWarning(
                "RECEIVABLE_WITHOUT_TENANTS",
                "total_receivable",
                "receivable rent with no tenants in residence",
            )
        )
    return tuple(warnings)
