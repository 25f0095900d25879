"""
Module: housing_kernel.models.tenant
Responsibility: ORM persistence for tenants (housed employees) as exported
    from the document store.  Rows mirror the source documents closely so that
    the normalization boundary, not the ORM, decides what a field means.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - id is the document-store identifier, carried over unchanged.
    - status is stored as the raw lifecycle string; unknown values survive
      the round trip and are rejected later by TenantStatus.parse.

Failure modes:
    - IntegrityError on duplicate id.

Audit relevance:
    The status columns are written only by TenantStatusService, which
    validates every change against the lifecycle transition table.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from housing_kernel.db.base import TrackedBase


class TenantModel(TrackedBase):
    """
    A tenant placed in company housing.

    Contract:
        monthly_rate is the contracted monthly rent; NULL or zero means the
        rate was never entered.

    Non-goals:
        - This model does NOT validate status transitions; that is the
          responsibility of the tenant lifecycle state machine.
    """

    __tablename__ = "tenants"

    __table_args__ = (
        Index("idx_tenant_status", "status"),
        Index("idx_tenant_property", "assigned_property_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    company: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Contracted monthly rent
    monthly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    status: Mapped[str | None] = mapped_column(String(30), nullable=True)

    assigned_property_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    arrival_date: Mapped[date | None] = mapped_column(nullable=True)

    departure_date: Mapped[date | None] = mapped_column(nullable=True)

    # Set when the tenant actually leaves
    actual_departure_date: Mapped[date | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<TenantModel {self.id}: {self.name} ({self.status})>"
