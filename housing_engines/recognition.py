"""
Module: housing_engines.recognition
Responsibility:
    Entry point of the rent recognition engine.  Validates typed tenant and
    billing record input, resolves each tenant's monthly rate, apportions
    records over the month grid, applies the per-tenant cap and
    redistribution, and aggregates the result per month.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Receives an already-filtered set of eligible tenants; never looks at
    lifecycle status and never reads a clock.

Invariants enforced:
    - Conservation: per tenant, recognized amounts plus unresolved overflow
      equal the sum of apportioned record amounts.
    - Cap: no tenant-month exceeds the tenant's resolved monthly rate.
    - Idempotence: identical input produces an identical outcome, with or
      without the thread pool.
    - Data problems never raise.  Each becomes a DataQualityIssue and the
      offending record (or tenant) is excluded.

Failure modes:
    - ContractViolationError for wrong collection or element types,
      duplicate tenant ids, or an invalid window.

Audit relevance:
    ``allocate`` is traced (HOUSING_ENGINE_TRACE) with tenants, records,
    the reference date and the window in its fingerprint.  Every excluded
    record appears in ``issues``; every unplaced excess appears in
    ``overflow``.

Usage:
    from housing_engines.recognition import RentRecognitionEngine

    engine = RentRecognitionEngine()
    outcome = engine.allocate(tenants, records, reference_date=date(2025, 9, 15))
    for summary in outcome.summaries:
        print(summary.month_key, summary.total_recognized)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from housing_engines.aggregation import MonthlySummary, aggregate_monthly
from housing_engines.apportionment import MonthContribution, apportion_record, face_amount_rate
from housing_engines.capping import (
    TenantAllocation,
    UnresolvedOverflowReport,
    resolve_tenant_caps,
)
from housing_engines.issues import DataQualityIssue, IssueCode
from housing_engines.month_grid import (
    DEFAULT_MONTHS_AFTER,
    DEFAULT_MONTHS_BEFORE,
    CalendarMonth,
    build_month_grid,
)
from housing_engines.tracer import traced_engine
from housing_kernel.domain.records import BillingRecord, RecordCategory, Tenant
from housing_kernel.domain.values import ZERO
from housing_kernel.exceptions import ContractViolationError
from housing_kernel.logging_config import get_logger

logger = get_logger("engines.recognition")

DEFAULT_MONTHLY_RATE = Decimal("3500")

_MALFORMED_RATE_CODES = frozenset({IssueCode.NEGATIVE_MONTHLY_RATE, IssueCode.ARITHMETIC_GUARD})


@dataclass(frozen=True)
class RecognitionWindow:
    """Months before and after the reference month to recognize into."""

    months_before: int = DEFAULT_MONTHS_BEFORE
    months_after: int = DEFAULT_MONTHS_AFTER

    def __post_init__(self) -> None:
        for name in ("months_before", "months_after"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ContractViolationError(name, "non-negative int", value)

    @property
    def size(self) -> int:
        return self.months_before + self.months_after + 1


@dataclass(frozen=True)
class RatePolicy:
    """
    How a tenant without a monthly rate is handled.

    ``default_monthly_rate`` wins when set; otherwise the rate implied by
    the tenant's printed amounts is used if ``use_face_amount_fallback``.
    """

    default_monthly_rate: Decimal | None = DEFAULT_MONTHLY_RATE
    use_face_amount_fallback: bool = True


@dataclass(frozen=True)
class AllocationOutcome:
    """
    Everything one allocation run produced.

    Contract:
        ``summaries`` follow ``months``; ``tenant_allocations`` are sorted
        by tenant id; ``overflow`` follows tenant then month order.
    """

    reference_date: date
    months: tuple[CalendarMonth, ...]
    summaries: tuple[MonthlySummary, ...]
    tenant_allocations: tuple[TenantAllocation, ...]
    overflow: tuple[UnresolvedOverflowReport, ...]
    issues: tuple[DataQualityIssue, ...]
    skipped_deposit_count: int = 0

    def summary(self, month_key: str) -> MonthlySummary | None:
        for summary in self.summaries:
            if summary.month_key == month_key:
                return summary
        return None

    def tenant_allocation(self, tenant_id: str) -> TenantAllocation | None:
        for allocation in self.tenant_allocations:
            if allocation.tenant_id == tenant_id:
                return allocation
        return None

    @property
    def warnings(self) -> tuple[DataQualityIssue, ...]:
        return tuple(issue for issue in self.issues if issue.is_warning)

    @property
    def excluded_record_count(self) -> int:
        return len({
            issue.record_id
            for issue in self.issues
            if issue.excluded and issue.record_id is not None
        })

    @property
    def total_recognized(self) -> Decimal:
        return sum((s.total_recognized for s in self.summaries), ZERO)

    @property
    def total_overflow(self) -> Decimal:
        return sum((report.amount for report in self.overflow), ZERO)


@dataclass
class _TenantJob:
    tenant: Tenant
    records: list[BillingRecord] = field(default_factory=list)


@dataclass
class _TenantResult:
    allocation: TenantAllocation | None
    issues: list[DataQualityIssue]


def _as_tuple(value: object, name: str, element_type: type) -> tuple:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise ContractViolationError(name, f"sequence of {element_type.__name__}", value)
    items = tuple(value)
    for item in items:
        if not isinstance(item, element_type):
            raise ContractViolationError(name, f"sequence of {element_type.__name__}", item)
    return items


def _record_issue(record: BillingRecord) -> DataQualityIssue | None:
    """Why a record cannot be apportioned, or None if it can."""
    if not record.has_coverage:
        missing = "coverage_start" if record.coverage_start is None else "coverage_end"
        return DataQualityIssue(
            code=IssueCode.MISSING_COVERAGE_DATE,
            message=f"record has no {missing}",
            record_id=record.record_id,
            tenant_id=record.tenant_id,
            field=missing,
        )
    if record.coverage_start > record.coverage_end:
        return DataQualityIssue(
            code=IssueCode.INVERTED_COVERAGE,
            message=(
                f"coverage ends {record.coverage_end.isoformat()} before it "
                f"starts {record.coverage_start.isoformat()}"
            ),
            record_id=record.record_id,
            tenant_id=record.tenant_id,
            field="coverage_end",
        )
    if record.face_amount is not None:
        if not record.face_amount.is_finite():
            return DataQualityIssue(
                code=IssueCode.ARITHMETIC_GUARD,
                message="face amount is not finite",
                record_id=record.record_id,
                tenant_id=record.tenant_id,
                field="face_amount",
            )
        if record.face_amount < ZERO:
            return DataQualityIssue(
                code=IssueCode.NEGATIVE_FACE_AMOUNT,
                message=f"face amount {record.face_amount} is negative",
                record_id=record.record_id,
                tenant_id=record.tenant_id,
                field="face_amount",
            )
    return None


def _in_residence(tenant: Tenant, month: CalendarMonth) -> bool:
    """True if the tenant lives in the property for any day of ``month``."""
    if tenant.arrival_date is not None and tenant.arrival_date > month.last_day:
        return False
    leaving = tenant.actual_departure_date or tenant.departure_date
    return leaving is None or leaving >= month.first_day


class RentRecognitionEngine:
    """
    Recognizes tenant rent into calendar months.

    Contract:
        Pure: ``allocate`` reads only its arguments and the engine settings.
        Tenants are independent, so with ``max_workers > 1`` they are
        allocated on a thread pool and reduced in tenant-id order.

    Non-goals:
        - Does not filter by lifecycle status; pass eligible tenants only.
        - Does not report records of tenants that were not passed in.
          Orphan detection belongs to the caller, which sees every tenant.
        - Does not redistribute across tenants.
    """

    def __init__(
        self,
        rate_policy: RatePolicy | None = None,
        *,
        places: int = 2,
        redistribute_into_empty_months: bool = False,
        max_workers: int = 1,
    ):
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise ContractViolationError("max_workers", "int >= 1", max_workers)
        self.rate_policy = rate_policy or RatePolicy()
        self.places = places
        self.redistribute_into_empty_months = redistribute_into_empty_months
        self.max_workers = max_workers

    @traced_engine(
        "rent_recognition", "1.0",
        fingerprint_fields=("tenants", "records", "reference_date", "window"),
    )
    def allocate(
        self,
        tenants: Sequence[Tenant],
        records: Sequence[BillingRecord],
        reference_date: date,
        window: RecognitionWindow | None = None,
    ) -> AllocationOutcome:
        """
        Allocate ``records`` of ``tenants`` into the window around
        ``reference_date``.

        Deposit records are skipped and counted.  Records failing
        validation are excluded and reported.  Records of tenants not in
        ``tenants`` are ignored.
        """
        tenant_items = _as_tuple(tenants, "tenants", Tenant)
        record_items = _as_tuple(records, "records", BillingRecord)
        if not isinstance(reference_date, date):
            raise ContractViolationError("reference_date", "date", reference_date)
        if window is None:
            window = RecognitionWindow()
        elif not isinstance(window, RecognitionWindow):
            raise ContractViolationError("window", "RecognitionWindow", window)

        grid = build_month_grid(reference_date, window.months_before, window.months_after)

        jobs: dict[str, _TenantJob] = {}
        for tenant in tenant_items:
            if tenant.tenant_id in jobs:
                raise ContractViolationError("tenants", "unique tenant ids", tenant)
            jobs[tenant.tenant_id] = _TenantJob(tenant)

        issues: list[DataQualityIssue] = []
        skipped_deposits = 0
        for record in record_items:
            if record.category is RecordCategory.DEPOSIT:
                skipped_deposits += 1
                continue
            job = jobs.get(record.tenant_id)
            if job is None:
                continue
            problem = _record_issue(record)
            if problem is not None:
                issues.append(problem)
                continue
            job.records.append(record)

        ordered = [jobs[tenant_id] for tenant_id in sorted(jobs)]
        if self.max_workers > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda job: self._allocate_tenant(job, grid), ordered))
        else:
            results = [self._allocate_tenant(job, grid) for job in ordered]

        allocations = []
        demand: list[tuple[str, Decimal]] = []
        for job, result in zip(ordered, results):
            issues.extend(result.issues)
            if result.allocation is None:
                continue
            allocations.append(result.allocation)
            demand.extend(
                (month.key, result.allocation.monthly_rate)
                for month in grid
                if _in_residence(job.tenant, month)
            )

        overflow = tuple(
            report for allocation in allocations for report in allocation.overflow_reports()
        )
        outcome = AllocationOutcome(
            reference_date=reference_date,
            months=grid,
            summaries=aggregate_monthly(allocations, grid, self.places, demand),
            tenant_allocations=tuple(allocations),
            overflow=overflow,
            issues=tuple(issues),
            skipped_deposit_count=skipped_deposits,
        )

        logger.info(
            "rent_allocation_completed",
            extra={
                "reference_date": reference_date.isoformat(),
                "month_count": len(grid),
                "tenant_count": len(allocations),
                "record_count": len(record_items),
                "issue_count": len(outcome.issues),
                "skipped_deposit_count": skipped_deposits,
                "overflow_total": str(outcome.total_overflow),
            },
        )
        return outcome

    def resolve_rate(
        self,
        tenant: Tenant,
        records: Sequence[BillingRecord],
    ) -> tuple[Decimal | None, DataQualityIssue | None]:
        """
        Monthly rate to cap ``tenant`` at, plus the issue explaining any
        substitution.  A None rate means the tenant is excluded.
        """
        rate = tenant.monthly_rate
        if rate is not None and not rate.is_finite():
            return None, DataQualityIssue(
                code=IssueCode.ARITHMETIC_GUARD,
                message="monthly rate is not finite",
                tenant_id=tenant.tenant_id,
                field="monthly_rate",
            )
        if rate is not None and rate < ZERO:
            return None, DataQualityIssue(
                code=IssueCode.NEGATIVE_MONTHLY_RATE,
                message=f"monthly rate {rate} is negative; all records excluded",
                tenant_id=tenant.tenant_id,
                field="monthly_rate",
            )
        if rate is not None and rate > ZERO:
            return rate, None

        policy = self.rate_policy
        if policy.default_monthly_rate is not None:
            return policy.default_monthly_rate, DataQualityIssue.warning(
                IssueCode.RATE_DEFAULTED,
                f"no monthly rate; using default {policy.default_monthly_rate}",
                tenant_id=tenant.tenant_id,
                field="monthly_rate",
            )

        if policy.use_face_amount_fallback:
            implied = face_amount_rate(records)
            if implied is not None:
                return implied, DataQualityIssue.warning(
                    IssueCode.RATE_FROM_FACE_AMOUNT,
                    f"no monthly rate; using {implied} implied by printed amounts",
                    tenant_id=tenant.tenant_id,
                    field="monthly_rate",
                )

        return None, DataQualityIssue(
            code=IssueCode.MISSING_MONTHLY_RATE,
            message="no monthly rate and no fallback available; all records excluded",
            tenant_id=tenant.tenant_id,
            field="monthly_rate",
        )

    def _allocate_tenant(self, job: _TenantJob, grid: tuple[CalendarMonth, ...]) -> _TenantResult:
        tenant = job.tenant
        issues: list[DataQualityIssue] = []

        rate, rate_issue = self.resolve_rate(tenant, job.records)
        if rate is None:
            if job.records:
                # One issue per excluded record so exclusions stay countable
                issues.extend(
                    replace(rate_issue, record_id=record.record_id) for record in job.records
                )
            elif rate_issue.code in _MALFORMED_RATE_CODES:
                issues.append(rate_issue)
            return _TenantResult(None, issues)
        if rate_issue is not None and job.records:
            issues.append(rate_issue)

        contributions: list[MonthContribution] = []
        for record in job.records:
            parts = apportion_record(record, rate, grid)
            if any(not part.amount.is_finite() or part.amount < ZERO for part in parts):
                issues.append(
                    DataQualityIssue(
                        code=IssueCode.ARITHMETIC_GUARD,
                        message="apportioned amount is negative or not finite",
                        record_id=record.record_id,
                        tenant_id=tenant.tenant_id,
                    )
                )
                continue
            contributions.extend(parts)

        allocation = resolve_tenant_caps(
            tenant.tenant_id,
            rate,
            contributions,
            grid,
            redistribute_into_empty_months=self.redistribute_into_empty_months,
        )
        return _TenantResult(allocation, issues)
