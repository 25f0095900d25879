"""
housing_services -- stateful orchestration over engines and kernel.

Services receive their session, clock and configuration through the
constructor and never create sessions or read the system clock themselves.
"""

from housing_services.rent_recognition_service import RecognitionReport, RentRecognitionService
from housing_services.tenant_status_service import (
    ApproachingDeparture,
    StatusSweepResult,
    SweepFailure,
    TenantStatusService,
)

__all__ = [
    "RentRecognitionService",
    "RecognitionReport",
    "TenantStatusService",
    "StatusSweepResult",
    "SweepFailure",
    "ApproachingDeparture",
]
