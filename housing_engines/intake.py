"""
Module: housing_engines.intake
Responsibility:
    Turn raw tenant and billing documents into typed Tenant and
    BillingRecord values.  Classifies deposit and cancelled records and
    converts normalization failures into data-quality issues.

Architecture position:
    Engines -- pure, zero I/O.  The boundary between loosely-typed stored
    documents and the typed recognition engine.

Invariants enforced:
    - Nothing that fails normalization reaches the engine.  Each failure
      becomes an UNPARSEABLE_FIELD issue.
    - Cancelled records are dropped and counted, not reported.
    - Deposit records are kept with category DEPOSIT so the engine skips
      and counts them.

Failure modes:
    - None.  MalformedRecordError and UnknownStatusError are caught here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from housing_engines.issues import DataQualityIssue, IssueCode
from housing_kernel.domain.dates import DEFAULT_TIMEZONE
from housing_kernel.domain.records import BillingRecord, RecordCategory, Tenant
from housing_kernel.exceptions import MalformedRecordError, UnknownStatusError
from housing_kernel.logging_config import get_logger

logger = get_logger("engines.intake")

DEFAULT_DEPOSIT_KEYWORDS: tuple[str, ...] = (
    "deposit",
    "deposite",
    "按金",
    "押金",
    "security",
    "-a001",
    "-a002",
    "-a003",
)
DEFAULT_CANCELLED_STATUSES: frozenset[str] = frozenset({"cancelled", "canceled", "void"})

_DEPOSIT_FIELDS = ("invoice_number", "description", "type", "notes")


@dataclass(frozen=True)
class IntakeResult:
    tenants: tuple[Tenant, ...]
    records: tuple[BillingRecord, ...]
    issues: tuple[DataQualityIssue, ...]
    skipped_cancelled_count: int = 0

    @property
    def deposit_count(self) -> int:
        return sum(1 for record in self.records if record.category is RecordCategory.DEPOSIT)


def is_deposit_document(
    doc: Mapping[str, Any],
    keywords: Iterable[str] = DEFAULT_DEPOSIT_KEYWORDS,
) -> bool:
    """True if any deposit keyword appears in the record's descriptive fields."""
    haystacks = [str(doc.get(name) or "").lower() for name in _DEPOSIT_FIELDS]
    return any(keyword.lower() in text for keyword in keywords for text in haystacks)


def _status_text(doc: Mapping[str, Any]) -> str | None:
    value = doc.get("payment_state", doc.get("status"))
    if value is None:
        return None
    return str(getattr(value, "value", value)).strip().lower()


def _unparseable(error: MalformedRecordError | UnknownStatusError, **ids: Any) -> DataQualityIssue:
    if isinstance(error, UnknownStatusError):
        field, message = "status", str(error)
    else:
        field, message = error.field, f"{error.reason} ({error.value})"
    return DataQualityIssue(code=IssueCode.UNPARSEABLE_FIELD, message=message, field=field, **ids)


def normalize_tenants(
    docs: Iterable[Mapping[str, Any]],
    *,
    tz: str = DEFAULT_TIMEZONE,
) -> tuple[tuple[Tenant, ...], tuple[DataQualityIssue, ...]]:
    tenants = []
    issues = []
    for doc in docs:
        tenant_id = doc.get("id")
        if tenant_id is None or str(tenant_id) == "":
            issues.append(
                DataQualityIssue(
                    code=IssueCode.UNPARSEABLE_FIELD,
                    message="tenant document has no id",
                    field="id",
                )
            )
            continue
        try:
            tenants.append(Tenant.from_document(doc, tz=tz))
        except (MalformedRecordError, UnknownStatusError) as e:
            issues.append(_unparseable(e, tenant_id=str(tenant_id)))
    return tuple(tenants), tuple(issues)


def normalize_records(
    docs: Iterable[Mapping[str, Any]],
    *,
    tz: str = DEFAULT_TIMEZONE,
    deposit_keywords: Iterable[str] = DEFAULT_DEPOSIT_KEYWORDS,
    cancelled_statuses: Iterable[str] = DEFAULT_CANCELLED_STATUSES,
    payment_status_aliases: Mapping[str, str] | None = None,
) -> tuple[tuple[BillingRecord, ...], tuple[DataQualityIssue, ...], int]:
    """
    Typed billing records, issues, and the number of cancelled records.

    ``payment_status_aliases`` maps stored status strings (lower case) to
    ``paid`` or ``unpaid`` before parsing.
    """
    keywords = tuple(deposit_keywords)
    cancelled = frozenset(status.lower() for status in cancelled_statuses)
    aliases = {k.lower(): v for k, v in (payment_status_aliases or {}).items()}

    records = []
    issues = []
    cancelled_count = 0
    for doc in docs:
        record_id = doc.get("id")
        if record_id is None or str(record_id) == "":
            issues.append(
                DataQualityIssue(
                    code=IssueCode.UNPARSEABLE_FIELD,
                    message="billing document has no id",
                    field="id",
                )
            )
            continue
        record_id = str(record_id)

        status = _status_text(doc)
        if status in cancelled:
            cancelled_count += 1
            continue

        if status is not None and status in aliases:
            doc = {**doc, "payment_state": aliases[status]}

        category = RecordCategory.DEPOSIT if is_deposit_document(doc, keywords) else RecordCategory.RENT
        try:
            records.append(BillingRecord.from_document(doc, tz=tz, category=category))
        except MalformedRecordError as e:
            if category is RecordCategory.DEPOSIT:
                # Deposits are never recognized; keep them countable
                tenant_id = doc.get("tenant_id", doc.get("employee_id"))
                records.append(
                    BillingRecord(
                        record_id=record_id,
                        tenant_id=str(tenant_id or ""),
                        coverage_start=None,
                        coverage_end=None,
                        face_amount=None,
                        category=RecordCategory.DEPOSIT,
                    )
                )
                continue
            tenant_id = doc.get("tenant_id", doc.get("employee_id"))
            issues.append(
                _unparseable(
                    e,
                    record_id=record_id,
                    tenant_id=str(tenant_id) if tenant_id is not None else None,
                )
            )
    return tuple(records), tuple(issues), cancelled_count


def normalize_documents(
    tenant_docs: Iterable[Mapping[str, Any]],
    record_docs: Iterable[Mapping[str, Any]],
    *,
    tz: str = DEFAULT_TIMEZONE,
    deposit_keywords: Iterable[str] = DEFAULT_DEPOSIT_KEYWORDS,
    cancelled_statuses: Iterable[str] = DEFAULT_CANCELLED_STATUSES,
    payment_status_aliases: Mapping[str, str] | None = None,
) -> IntakeResult:
    """Normalize both collections in one pass each."""
    tenants, tenant_issues = normalize_tenants(tenant_docs, tz=tz)
    records, record_issues, cancelled_count = normalize_records(
        record_docs,
        tz=tz,
        deposit_keywords=deposit_keywords,
        cancelled_statuses=cancelled_statuses,
        payment_status_aliases=payment_status_aliases,
    )
    result = IntakeResult(
        tenants=tenants,
        records=records,
        issues=tenant_issues + record_issues,
        skipped_cancelled_count=cancelled_count,
    )
    logger.info(
        "documents_normalized",
        extra={
            "tenant_count": len(tenants),
            "record_count": len(records),
            "deposit_count": result.deposit_count,
            "cancelled_count": cancelled_count,
            "issue_count": len(result.issues),
        },
    )
    return result


def find_orphans(
    tenants: Iterable[Tenant],
    records: Iterable[BillingRecord],
) -> tuple[tuple[BillingRecord, ...], tuple[DataQualityIssue, ...]]:
    """
    Split off records whose tenant is unknown.

    Returns the records that do belong to a known tenant, and one
    ORPHAN_RECORD issue per orphan.  Deposits are never reported.
    """
    known = {tenant.tenant_id for tenant in tenants}
    kept = []
    issues = []
    for record in records:
        if record.tenant_id in known or record.category is RecordCategory.DEPOSIT:
            kept.append(record)
            continue
        issues.append(
            DataQualityIssue(
                code=IssueCode.ORPHAN_RECORD,
                message=f"record belongs to unknown tenant {record.tenant_id or '<none>'}",
                record_id=record.record_id,
                tenant_id=record.tenant_id or None,
                field="tenant_id",
            )
        )
    return tuple(kept), tuple(issues)
