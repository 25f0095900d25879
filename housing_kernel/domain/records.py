"""
Records -- typed tenant and billing record values.

Responsibility:
    Immutable value objects consumed by the recognition engine, and the
    ``from_document`` constructors that build them from raw document-store
    dicts through the date and amount normalization boundary.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Dates on records are ``datetime.date`` or None, never strings or
      wrapped timestamps.
    - Amounts are finite ``Decimal`` or None, never floats.
    - A zero or blank monthly rate is stored as None (absent), matching
      how the administration screens treat an empty rent field.

Failure modes:
    - MalformedRecordError from the normalization helpers when a present
      field cannot be parsed.
    - UnknownStatusError for unrecognised tenant status strings.

Non-goals:
    - Semantic validation (inverted coverage, negative amounts) is the
      engine's job; these constructors only normalize representation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from housing_kernel.domain.dates import DEFAULT_TIMEZONE, to_date
from housing_kernel.domain.tenant_lifecycle import TenantStatus
from housing_kernel.domain.values import ZERO, to_amount


class PaymentState(str, Enum):
    """Payment state of a billing record."""

    UNPAID = "unpaid"
    PAID = "paid"

    @classmethod
    def parse(cls, value: Any) -> PaymentState:
        # pending/due/overdue and anything unrecognised are still owed
        if isinstance(value, PaymentState):
            return value
        if isinstance(value, str) and value.strip().lower() == "paid":
            return cls.PAID
        return cls.UNPAID


class IssuedState(str, Enum):
    """Whether a billing record was issued to the tenant."""

    DRAFT = "draft"
    ISSUED = "issued"


class RecordCategory(str, Enum):
    RENT = "rent"
    DEPOSIT = "deposit"


def _first(doc: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = doc.get(key)
        if value is not None and value != "":
            return value
    return None


@dataclass(frozen=True)
class Tenant:
    """
    A tenant as seen by the recognition engine.

    Contract:
        Frozen dataclass; ``monthly_rate`` is the recognized-rent ceiling
        per calendar month, or None when the tenant carries no rate.
    Non-goals:
        - Does not resolve a missing rate; the engine applies the
          configured fallback and reports it.
    """

    tenant_id: str
    monthly_rate: Decimal | None
    lifecycle_status: TenantStatus = TenantStatus.HOUSED
    company: str | None = None
    name: str | None = None
    assigned_property_id: str | None = None
    arrival_date: date | None = None
    departure_date: date | None = None
    actual_departure_date: date | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], *, tz: str = DEFAULT_TIMEZONE) -> Tenant:
        tenant_id = str(doc["id"])
        rate = None
        for key in ("monthly_rate", "rent", "monthlyRent"):
            candidate = to_amount(doc.get(key), key, tenant_id)
            if candidate is not None and candidate != ZERO:
                rate = candidate
                break

        return cls(
            tenant_id=tenant_id,
            monthly_rate=rate,
            lifecycle_status=TenantStatus.parse(_first(doc, "lifecycle_status", "status")),
            company=_first(doc, "company"),
            name=_first(doc, "name", "firstName"),
            assigned_property_id=_first(doc, "assigned_property_id") or None,
            arrival_date=to_date(
                _first(doc, "arrival_date", "arrival_at", "arrival_time"),
                "arrival_date", tenant_id, tz,
            ),
            departure_date=to_date(doc.get("departure_date"), "departure_date", tenant_id, tz),
            actual_departure_date=to_date(
                doc.get("actual_departure_date"), "actual_departure_date", tenant_id, tz
            ),
        )


@dataclass(frozen=True)
class BillingRecord:
    """
    A billing document covering a period of a tenant's rent.

    Contract:
        Frozen dataclass; coverage dates are inclusive.  Either date may be
        None, in which case the engine excludes and reports the record.
    """

    record_id: str
    tenant_id: str
    coverage_start: date | None
    coverage_end: date | None
    face_amount: Decimal | None
    payment_state: PaymentState = PaymentState.UNPAID
    issued_state: IssuedState = IssuedState.DRAFT
    category: RecordCategory = RecordCategory.RENT
    invoice_number: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_state is PaymentState.PAID

    @property
    def is_issued(self) -> bool:
        return self.issued_state is IssuedState.ISSUED

    @property
    def has_coverage(self) -> bool:
        return self.coverage_start is not None and self.coverage_end is not None

    @classmethod
    def from_document(
        cls,
        doc: Mapping[str, Any],
        *,
        tz: str = DEFAULT_TIMEZONE,
        category: RecordCategory = RecordCategory.RENT,
    ) -> BillingRecord:
        record_id = str(doc["id"])
        tenant_id = _first(doc, "tenant_id", "employee_id")

        issued_raw = doc.get("issued_state")
        if issued_raw is not None:
            issued = (
                IssuedState.ISSUED
                if str(getattr(issued_raw, "value", issued_raw)).lower() == "issued"
                else IssuedState.DRAFT
            )
        else:
            issued = IssuedState.ISSUED if doc.get("is_issued") is True else IssuedState.DRAFT

        return cls(
            record_id=record_id,
            tenant_id=str(tenant_id) if tenant_id is not None else "",
            coverage_start=to_date(
                _first(doc, "coverage_start", "start_date"), "coverage_start", record_id, tz
            ),
            coverage_end=to_date(
                _first(doc, "coverage_end", "end_date"), "coverage_end", record_id, tz
            ),
            face_amount=to_amount(_first(doc, "face_amount", "amount"), "face_amount", record_id),
            payment_state=PaymentState.parse(_first(doc, "payment_state", "status")),
            issued_state=issued,
            category=category,
            invoice_number=_first(doc, "invoice_number"),
        )
