"""
Module: housing_engines.capping
Responsibility:
    Enforce the monthly rent ceiling for one tenant and move the capped
    excess into the tenant's months that still have room.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Operates on one tenant at a time; tenants share nothing, which is what
    lets the recognition engine fan them out over a thread pool.

Invariants enforced:
    - Cap: no month's amount exceeds the monthly rate, redistribution
      included.
    - Conservation: ``sum(amount) + sum(unresolved_overflow) == sum(raw)``
      for the tenant.  Capping only moves money between the tenant's own
      months.
    - Record detail: inside a capped month every contribution is scaled by
      ``rate / raw`` so the contributions still sum to the cap.
    - Determinism: redistribution is split by available space ratios with
      months in calendar order; rounding remainders go to the last month in
      calendar order, never to whichever record happened to come first.

Failure modes:
    - ContractViolationError for a negative or non-finite rate, or a
      contribution whose month is outside the grid.

Audit relevance:
    Redistributed amounts are separate, labelled contributions with no
    source record, naming the months they were moved out of.  Unresolvable
    overflow is reported, never silently dropped or forced above a cap.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from housing_engines.apportionment import MonthContribution
from housing_engines.month_grid import CalendarMonth
from housing_kernel.domain.records import IssuedState, PaymentState
from housing_kernel.domain.values import ZERO
from housing_kernel.exceptions import ContractViolationError
from housing_kernel.logging_config import get_logger

logger = get_logger("engines.capping")

_StateBucket = tuple[PaymentState, IssuedState]


@dataclass(frozen=True)
class UnresolvedOverflowReport:
    """Excess that no month of the tenant had room for."""

    tenant_id: str
    month_key: str
    amount: Decimal


@dataclass(frozen=True)
class TenantMonthAllocation:
    """
    One tenant's recognized rent for one month.

    Contract:
        ``raw_amount`` is the uncapped sum of record contributions;
        ``amount`` is what the month recognizes after capping and
        redistribution.  ``available_space`` is measured before
        redistribution.  ``contributions`` sum to ``amount``.
    """

    month_key: str
    raw_amount: Decimal
    amount: Decimal
    was_capped: bool
    excess: Decimal
    available_space: Decimal
    was_redistributed: bool
    redistributed_amount: Decimal
    unresolved_overflow: Decimal
    contributions: tuple[MonthContribution, ...]


@dataclass(frozen=True)
class TenantAllocation:
    """
    All months of one tenant, in grid order.

    Contract:
        One TenantMonthAllocation per grid month, including empty months.
    """

    tenant_id: str
    monthly_rate: Decimal
    months: tuple[TenantMonthAllocation, ...]

    def month(self, key: str) -> TenantMonthAllocation | None:
        for allocation in self.months:
            if allocation.month_key == key:
                return allocation
        return None

    @property
    def raw_total(self) -> Decimal:
        return sum((m.raw_amount for m in self.months), ZERO)

    @property
    def total_amount(self) -> Decimal:
        return sum((m.amount for m in self.months), ZERO)

    @property
    def total_excess(self) -> Decimal:
        return sum((m.excess for m in self.months), ZERO)

    @property
    def total_redistributed(self) -> Decimal:
        return sum((m.redistributed_amount for m in self.months), ZERO)

    @property
    def total_unresolved(self) -> Decimal:
        return sum((m.unresolved_overflow for m in self.months), ZERO)

    @property
    def was_capped(self) -> bool:
        return any(m.was_capped for m in self.months)

    def overflow_reports(self) -> tuple[UnresolvedOverflowReport, ...]:
        return tuple(
            UnresolvedOverflowReport(self.tenant_id, m.month_key, m.unresolved_overflow)
            for m in self.months
            if m.unresolved_overflow > ZERO
        )


def split_proportionally(total: Decimal, weights: Mapping[str, Decimal]) -> dict[str, Decimal]:
    """
    Split ``total`` by ``weights`` so the parts sum to ``total`` exactly.

    Keys keep the mapping's order; the last key takes the division
    remainder.  Zero-weight keys receive zero.
    """
    keys = [key for key, weight in weights.items() if weight > ZERO]
    weight_total = sum((weights[key] for key in keys), ZERO)
    shares = {key: ZERO for key in weights}
    if not keys or weight_total == ZERO or total == ZERO:
        return shares

    assigned = ZERO
    for key in keys[:-1]:
        share = total * weights[key] / weight_total
        shares[key] = share
        assigned += share
    shares[keys[-1]] = total - assigned
    return shares


def _scale_to_cap(
    contributions: Sequence[MonthContribution],
    cap: Decimal,
    raw: Decimal,
) -> tuple[MonthContribution, ...]:
    """Scale contributions by ``cap / raw`` so they sum to ``cap`` exactly."""
    weights = {str(i): c.amount for i, c in enumerate(contributions)}
    shares = split_proportionally(cap, weights)
    return tuple(c.scaled(shares[str(i)]) for i, c in enumerate(contributions))


def _bucket_key(bucket: _StateBucket) -> tuple[str, str]:
    return (bucket[0].value, bucket[1].value)


def resolve_tenant_caps(
    tenant_id: str,
    monthly_rate: Decimal,
    contributions: Iterable[MonthContribution],
    grid: Sequence[CalendarMonth],
    *,
    redistribute_into_empty_months: bool = False,
) -> TenantAllocation:
    """
    Cap each month at ``monthly_rate`` and redistribute the excess.

    Space months are the uncapped months with room under the rate.  By
    default only months where the tenant already recognizes rent qualify;
    ``redistribute_into_empty_months`` opens every grid month.

    When total space covers total excess, the excess is split in proportion
    to each month's space.  Otherwise every space month is filled to the
    cap and the residual is reported as unresolved overflow, attributed to
    the capped months in proportion to their excess.

    Redistributed money keeps the paid/unpaid/draft mix of the excess it
    came from: one synthetic contribution per state per receiving month.
    """
    if not isinstance(monthly_rate, Decimal) or not monthly_rate.is_finite() or monthly_rate < ZERO:
        raise ContractViolationError("monthly_rate", "finite Decimal >= 0", monthly_rate)

    by_month: dict[str, list[MonthContribution]] = {month.key: [] for month in grid}
    for contribution in contributions:
        if contribution.month_key not in by_month:
            raise ContractViolationError("contributions", "months inside the grid", contribution)
        by_month[contribution.month_key].append(contribution)

    raw: dict[str, Decimal] = {}
    kept: dict[str, tuple[MonthContribution, ...]] = {}
    excess: dict[str, Decimal] = {}
    space: dict[str, Decimal] = {}
    excess_by_state: dict[_StateBucket, Decimal] = {}

    for key, items in by_month.items():
        items.sort(key=lambda c: c.source_record_id or "")
        month_raw = sum((c.amount for c in items), ZERO)
        raw[key] = month_raw

        if month_raw > monthly_rate:
            scaled = _scale_to_cap(items, monthly_rate, month_raw)
            for original, capped in zip(items, scaled):
                bucket = (original.payment_state, original.issued_state)
                excess_by_state[bucket] = (
                    excess_by_state.get(bucket, ZERO) + original.amount - capped.amount
                )
            kept[key] = scaled
            excess[key] = month_raw - monthly_rate
            space[key] = ZERO
        else:
            kept[key] = tuple(items)
            excess[key] = ZERO
            space[key] = monthly_rate - month_raw

    total_excess = sum(excess.values(), ZERO)
    candidates = {
        key: space[key]
        for key in by_month
        if space[key] > ZERO and (raw[key] > ZERO or redistribute_into_empty_months)
    }
    total_space = sum(candidates.values(), ZERO)

    moved = {key: ZERO for key in by_month}
    if total_excess > ZERO and total_space > ZERO:
        if total_space <= total_excess:
            moved.update(candidates)
        else:
            for key, share in split_proportionally(total_excess, candidates).items():
                moved[key] = min(share, space[key])

    residual = total_excess - sum(moved.values(), ZERO)
    unresolved = {key: ZERO for key in by_month}
    if residual > ZERO:
        unresolved.update(split_proportionally(residual, excess))

    capped_keys = tuple(key for key in by_month if excess[key] > ZERO)
    buckets = dict(sorted(excess_by_state.items(), key=lambda kv: _bucket_key(kv[0])))
    bucket_names = {"/".join(_bucket_key(b)): b for b in buckets}
    bucket_weights = {name: buckets[b] for name, b in bucket_names.items()}

    months = []
    for key in by_month:
        month_contributions = list(kept[key])
        if moved[key] > ZERO:
            for name, share in split_proportionally(moved[key], bucket_weights).items():
                if share <= ZERO:
                    continue
                payment_state, issued_state = bucket_names[name]
                month_contributions.append(
                    MonthContribution(
                        tenant_id=tenant_id,
                        month_key=key,
                        amount=share,
                        source_record_id=None,
                        payment_state=payment_state,
                        issued_state=issued_state,
                        was_redistributed=True,
                        redistributed_from=capped_keys,
                    )
                )

        months.append(
            TenantMonthAllocation(
                month_key=key,
                raw_amount=raw[key],
                amount=sum((c.amount for c in month_contributions), ZERO),
                was_capped=excess[key] > ZERO,
                excess=excess[key],
                available_space=space[key],
                was_redistributed=moved[key] > ZERO,
                redistributed_amount=moved[key],
                unresolved_overflow=unresolved[key],
                contributions=tuple(month_contributions),
            )
        )

    allocation = TenantAllocation(
        tenant_id=tenant_id,
        monthly_rate=monthly_rate,
        months=tuple(months),
    )

    if total_excess > ZERO:
        logger.debug(
            "tenant_caps_resolved",
            extra={
                "tenant_id": tenant_id,
                "capped_months": list(capped_keys),
                "total_excess": str(total_excess),
                "redistributed": str(allocation.total_redistributed),
                "unresolved": str(residual),
            },
        )

    return allocation
