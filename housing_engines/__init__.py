"""
Module: housing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure rent
    recognition engines.  This is the canonical import surface for
    housing_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import housing_kernel (domain, exceptions, logging) and
    sibling engine modules.  MUST NOT import housing_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Reference dates are passed in by the caller.
    - Decimal-only arithmetic: floats never enter an engine.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from housing_engines import RentRecognitionEngine, build_month_grid
    from housing_engines.intake import normalize_documents
"""

from housing_kernel.logging_config import get_logger

logger = get_logger("engines")

from housing_engines.aggregation import MonthlySummary, aggregate_monthly
from housing_engines.apportionment import MonthContribution, apportion_record, face_amount_rate
from housing_engines.capping import (
    TenantAllocation,
    TenantMonthAllocation,
    UnresolvedOverflowReport,
    resolve_tenant_caps,
)
from housing_engines.coverage import CoverageOverlap, compute_overlap, month_equivalents
from housing_engines.intake import IntakeResult, find_orphans, normalize_documents
from housing_engines.issues import DataQualityIssue, IssueCode
from housing_engines.month_grid import CalendarMonth, build_month_grid, find_month, month_of
from housing_engines.recognition import (
    AllocationOutcome,
    RatePolicy,
    RecognitionWindow,
    RentRecognitionEngine,
)
from housing_engines.rent_metrics import (
    MetricsWarning,
    RentMetrics,
    current_month_metrics,
    validate_metrics,
)
from housing_engines.tracer import traced_engine

__all__ = [
    # Month grid
    "CalendarMonth",
    "build_month_grid",
    "month_of",
    "find_month",
    # Coverage
    "CoverageOverlap",
    "compute_overlap",
    "month_equivalents",
    # Apportionment
    "MonthContribution",
    "apportion_record",
    "face_amount_rate",
    # Capping
    "TenantMonthAllocation",
    "TenantAllocation",
    "UnresolvedOverflowReport",
    "resolve_tenant_caps",
    # Aggregation
    "MonthlySummary",
    "aggregate_monthly",
    # Metrics
    "RentMetrics",
    "MetricsWarning",
    "current_month_metrics",
    "validate_metrics",
    # Recognition
    "RentRecognitionEngine",
    "RecognitionWindow",
    "RatePolicy",
    "AllocationOutcome",
    "DataQualityIssue",
    "IssueCode",
    # Intake
    "IntakeResult",
    "normalize_documents",
    "find_orphans",
    # Tracer
    "traced_engine",
]

logger.debug("housing_engines_package_loaded", extra={"export_count": len(__all__)})
