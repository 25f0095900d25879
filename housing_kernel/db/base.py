"""
Module: housing_kernel.db.base
Responsibility: Declarative base classes for the snapshot store ORM models.
    Provides the type annotation map for consistent column types and the
    TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(18, 4).  NEVER use float for monetary amounts.
    - Document identity: primary keys are the document-store IDs carried
      over as strings, not generated surrogate keys.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all snapshot store models.

    Guarantees:
        - Decimal maps to Numeric(18, 4).
        - datetime maps to DateTime(timezone=True).
        - date maps to Date.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 4),
        datetime: DateTime(timezone=True),
        date: Date,
        str: String(255),
    }


class TrackedBase(Base):
    """
    Abstract base with audit timestamps.

    Guarantees:
        - created_at is set to server NOW() on INSERT and never changes.
        - updated_at auto-updates on every UPDATE (via onupdate=func.now()).
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
