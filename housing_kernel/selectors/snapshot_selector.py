"""
Rent snapshot selector.

Reads the tenant and billing collections the recognition engine needs in a
single batched pass: one query per table, no per-tenant or per-month
lookups.

Key design decisions:
- Returns plain document dicts shaped like the document-store export, so the
  stored rows go through exactly the same normalization boundary as raw
  documents handed to the service.
- Uses the caller's Session; never creates its own.
- Rows are ordered by id so repeated reads produce identical input.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select

from housing_kernel.logging_config import get_logger
from housing_kernel.models.billing_record import BillingRecordModel
from housing_kernel.models.tenant import TenantModel
from housing_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.snapshot")


@dataclass(frozen=True)
class RentSnapshot:
    """Point-in-time read of both collections."""

    tenants: tuple[dict[str, Any], ...]
    records: tuple[dict[str, Any], ...]


def tenant_document(row: TenantModel) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "company": row.company,
        "monthly_rate": row.monthly_rate,
        "status": row.status,
        "assigned_property_id": row.assigned_property_id,
        "arrival_date": row.arrival_date,
        "departure_date": row.departure_date,
        "actual_departure_date": row.actual_departure_date,
    }


def record_document(row: BillingRecordModel) -> dict[str, Any]:
    return {
        "id": row.id,
        "tenant_id": row.tenant_id,
        "invoice_number": row.invoice_number,
        "coverage_start": row.coverage_start,
        "coverage_end": row.coverage_end,
        "amount": row.amount,
        "status": row.payment_status,
        "is_issued": bool(row.is_issued),
        "type": row.record_type,
        "description": row.description,
        "notes": row.notes,
    }


class RentSnapshotSelector(BaseSelector[TenantModel]):
    """Batched read of tenants and billing records."""

    def load_snapshot(self) -> RentSnapshot:
        tenant_rows = self.session.scalars(
            select(TenantModel).order_by(TenantModel.id)
        ).all()
        record_rows = self.session.scalars(
            select(BillingRecordModel).order_by(BillingRecordModel.id)
        ).all()

        snapshot = RentSnapshot(
            tenants=tuple(tenant_document(row) for row in tenant_rows),
            records=tuple(record_document(row) for row in record_rows),
        )
        logger.info(
            "rent_snapshot_loaded",
            extra={
                "tenant_count": len(snapshot.tenants),
                "record_count": len(snapshot.records),
            },
        )
        return snapshot

    def load_tenant(self, tenant_id: str) -> dict[str, Any] | None:
        """Single tenant as a document dict, or None when absent."""
        row = self.session.get(TenantModel, tenant_id)
        if row is None:
            return None
        return tenant_document(row)
