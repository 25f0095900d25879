"""
Module: housing_kernel.models.billing_record
Responsibility: ORM persistence for billing documents (rent invoices and
    deposit notes) as exported from the document store.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - tenant_id is NOT a foreign key.  Exports can contain records whose
      tenant has been deleted; those rows must still load so the recognition
      service can report them as orphans.
    - coverage dates and amount are nullable.  Incomplete documents are
      stored as-is and excluded by the engine with a data-quality issue.

Failure modes:
    - IntegrityError on duplicate id.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from housing_kernel.db.base import TrackedBase


class BillingRecordModel(TrackedBase):
    """
    One billing document covering a period of a tenant's housing.

    Contract:
        coverage_start and coverage_end are inclusive.  payment_status is
        the raw stored string (``paid``, ``pending``, ``overdue``,
        ``cancelled``...); is_issued is False for drafts.

    Non-goals:
        - Deposit classification is not stored; it is derived from
          invoice_number, description, type and notes at intake.
    """

    __tablename__ = "billing_records"

    __table_args__ = (
        Index("idx_billing_tenant", "tenant_id"),
        Index("idx_billing_coverage", "coverage_start", "coverage_end"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    coverage_start: Mapped[date | None] = mapped_column(nullable=True)

    coverage_end: Mapped[date | None] = mapped_column(nullable=True)

    # Printed amount
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    payment_status: Mapped[str | None] = mapped_column(String(30), nullable=True)

    is_issued: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    record_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<BillingRecordModel {self.id}: {self.invoice_number} tenant={self.tenant_id}>"
