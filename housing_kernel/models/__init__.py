"""ORM models for the snapshot store."""

from housing_kernel.models.billing_record import BillingRecordModel
from housing_kernel.models.tenant import TenantModel

__all__ = [
    "TenantModel",
    "BillingRecordModel",
]
