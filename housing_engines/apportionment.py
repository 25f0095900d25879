"""
Module: housing_engines.apportionment
Responsibility:
    Split one billing record into per-month rent contributions, and resolve
    a fallback monthly rate from printed amounts when a tenant has none.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A fully covered month contributes exactly the monthly rate.
    - A partially covered month contributes
      ``overlap_days / month_days * monthly_rate``.
    - No single record ever contributes more than the monthly rate to one
      month.
    - Only months with a non-zero contribution are emitted; months outside
      the grid are never emitted.
    - Decimal-only arithmetic; no rounding happens here.

Failure modes:
    - ContractViolationError when called with a record that has no
      coverage or an inverted coverage period.  The recognition engine
      filters those out (and reports them) first.

Audit relevance:
    Every contribution carries its source record id and billing states, so
    each month's recognized amount can be traced back to the documents
    that produced it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from housing_engines.coverage import compute_overlap, month_equivalents
from housing_engines.month_grid import CalendarMonth
from housing_kernel.domain.records import BillingRecord, IssuedState, PaymentState
from housing_kernel.domain.values import ZERO, is_usable_amount
from housing_kernel.exceptions import ContractViolationError


@dataclass(frozen=True)
class MonthContribution:
    """
    Amount one record (or a redistribution) adds to one tenant-month.

    Contract:
        Frozen dataclass.  Redistributed contributions have
        ``source_record_id=None`` and list the months they were moved out of
        in ``redistributed_from``.
    """

    tenant_id: str
    month_key: str
    amount: Decimal
    source_record_id: str | None
    payment_state: PaymentState = PaymentState.UNPAID
    issued_state: IssuedState = IssuedState.DRAFT
    was_capped: bool = False
    was_redistributed: bool = False
    redistributed_from: tuple[str, ...] = ()

    @property
    def is_paid(self) -> bool:
        # Payment only counts once the invoice was issued
        return self.payment_state is PaymentState.PAID and self.issued_state is IssuedState.ISSUED

    @property
    def is_unpaid(self) -> bool:
        return self.payment_state is not PaymentState.PAID and self.issued_state is IssuedState.ISSUED

    @property
    def is_uninvoiced(self) -> bool:
        return self.issued_state is IssuedState.DRAFT

    def scaled(self, amount: Decimal) -> MonthContribution:
        return replace(self, amount=amount, was_capped=True)


def apportion_record(
    record: BillingRecord,
    monthly_rate: Decimal,
    grid: Sequence[CalendarMonth],
) -> tuple[MonthContribution, ...]:
    """
    Contributions of ``record`` to each month of ``grid``.

    Preconditions:
        - record has both coverage dates and start <= end.
        - monthly_rate is a finite Decimal >= 0.

    Postconditions:
        - Each emitted amount is in ``(0, monthly_rate]``.
        - Output follows grid order.
    """
    if not record.has_coverage:
        raise ContractViolationError("record", "record with coverage dates", record)
    if record.coverage_start > record.coverage_end:
        raise ContractViolationError("record", "coverage_start <= coverage_end", record)

    contributions = []
    for month in grid:
        overlap = compute_overlap(record.coverage_start, record.coverage_end, month)
        if overlap is None:
            continue

        if overlap.full_month:
            amount = monthly_rate
        else:
            amount = overlap.fraction * monthly_rate
        amount = min(amount, monthly_rate)

        if amount <= ZERO:
            continue
        contributions.append(
            MonthContribution(
                tenant_id=record.tenant_id,
                month_key=month.key,
                amount=amount,
                source_record_id=record.record_id,
                payment_state=record.payment_state,
                issued_state=record.issued_state,
            )
        )
    return tuple(contributions)


def face_amount_rate(records: Iterable[BillingRecord]) -> Decimal | None:
    """
    Monthly rate implied by printed amounts.

    The largest ``face_amount / month_equivalents`` over records that have
    valid coverage and a usable face amount, or None if no record
    qualifies.  The largest is taken so that the implied cap never cuts a
    record below its own printed amount.
    """
    best: Decimal | None = None
    for record in records:
        if not record.has_coverage or record.coverage_start > record.coverage_end:
            continue
        if not is_usable_amount(record.face_amount) or record.face_amount == ZERO:
            continue
        months = month_equivalents(record.coverage_start, record.coverage_end)
        if months <= ZERO:
            continue
        rate = record.face_amount / months
        if best is None or rate > best:
            best = rate
    return best
