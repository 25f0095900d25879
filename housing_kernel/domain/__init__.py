"""
Pure domain layer.

Value objects, normalization helpers and the tenant lifecycle with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)
- I/O
"""

from housing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from housing_kernel.domain.dates import add_months, to_date
from housing_kernel.domain.records import (
    BillingRecord,
    IssuedState,
    PaymentState,
    RecordCategory,
    Tenant,
)
from housing_kernel.domain.tenant_lifecycle import (
    ALLOWED_TRANSITIONS,
    StatusTransition,
    TenantStatus,
    derive_status,
    is_eligible,
    transition,
    validate_transition,
)
from housing_kernel.domain.values import is_usable_amount, percentage, quantize, to_amount

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "to_date",
    "add_months",
    "to_amount",
    "quantize",
    "percentage",
    "is_usable_amount",
    "Tenant",
    "BillingRecord",
    "PaymentState",
    "IssuedState",
    "RecordCategory",
    "TenantStatus",
    "ALLOWED_TRANSITIONS",
    "StatusTransition",
    "transition",
    "validate_transition",
    "derive_status",
    "is_eligible",
]
