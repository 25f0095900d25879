"""
housing_services.rent_recognition_service -- Rent recognition run.

Responsibility:
    Compose one recognition run: batched snapshot read, normalization,
    orphan detection, lifecycle eligibility filter, allocation engine,
    current-month metrics and snapshot sanity checks.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Owns no business rules of its own; every rule lives in an engine or in
    the tenant lifecycle.

Invariants enforced:
    - One batched read per run (RentSnapshotSelector.load_snapshot).
    - The engine only ever sees eligible tenants.
    - "Today" comes from the injected Clock in the configured timezone.

Failure modes:
    - ContractViolationError propagated from the engine on programmer
      error.  Data problems come back as issues in the report.

Audit relevance:
    Each run is logged under a fresh run_id with the configuration
    checksum, so a dashboard figure can be traced to the configuration and
    input that produced it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from housing_config import RecognitionConfig, get_recognition_config
from housing_engines.intake import (
    DEFAULT_DEPOSIT_KEYWORDS,
    find_orphans,
    normalize_documents,
)
from housing_engines.issues import DataQualityIssue
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
from housing_kernel.domain.clock import Clock
from housing_kernel.domain.tenant_lifecycle import TenantStatus, is_eligible
from housing_kernel.logging_config import LogContext, get_logger
from housing_kernel.selectors.snapshot_selector import RentSnapshotSelector

logger = get_logger("services.rent_recognition")


@dataclass(frozen=True)
class RecognitionReport:
    """
    Everything a dashboard needs from one run.

    ``issues`` combines intake, orphan and engine issues in that order.
    """

    run_id: str
    reference_date: date
    outcome: AllocationOutcome
    metrics: RentMetrics
    metric_warnings: tuple[MetricsWarning, ...]
    issues: tuple[DataQualityIssue, ...]
    eligible_tenant_count: int
    ineligible_tenant_count: int
    skipped_cancelled_count: int
    config_checksum: str

    @property
    def skipped_deposit_count(self) -> int:
        return self.outcome.skipped_deposit_count


class RentRecognitionService:
    """Runs rent recognition for dashboards and monthly snapshots.

    Contract:
        Receives its session, clock and configuration via constructor
        injection.  Uses the caller's session read-only.
    Non-goals:
        - Does not store snapshots; callers persist the report if needed.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        config: RecognitionConfig | None = None,
    ) -> None:
        self._session = session
        self._clock = clock
        self._config = config or get_recognition_config()
        self._selector = RentSnapshotSelector(session)
        self._eligible = frozenset(
            TenantStatus.parse(status) for status in self._config.lifecycle.eligible_statuses
        )
        self._engine = RentRecognitionEngine(
            RatePolicy(
                default_monthly_rate=self._config.default_monthly_rate,
                use_face_amount_fallback=self._config.use_face_amount_fallback,
            ),
            places=self._config.amount_places,
            redistribute_into_empty_months=self._config.redistribute_into_empty_months,
            max_workers=self._config.max_workers,
        )
        self._window = RecognitionWindow(
            self._config.window.months_before,
            self._config.window.months_after,
        )

    @property
    def config(self) -> RecognitionConfig:
        return self._config

    def today(self) -> date:
        return self._clock.today(self._config.timezone)

    def run(self, reference_date: date | None = None) -> RecognitionReport:
        """Recognize rent for everything in the snapshot store."""
        snapshot = self._selector.load_snapshot()
        return self.recognize_documents(snapshot.tenants, snapshot.records, reference_date)

    def recognize_documents(
        self,
        tenant_docs: Iterable[Mapping[str, Any]],
        record_docs: Iterable[Mapping[str, Any]],
        reference_date: date | None = None,
    ) -> RecognitionReport:
        """Recognize rent for raw tenant and billing documents."""
        config = self._config
        reference = reference_date or self.today()
        run_id = str(uuid4())

        with LogContext.bind(run_id=run_id):
            logger.info(
                "rent_recognition_started",
                extra={
                    "reference_date": reference.isoformat(),
                    "config_checksum": config.checksum,
                },
            )

            intake = normalize_documents(
                tenant_docs,
                record_docs,
                tz=config.timezone,
                deposit_keywords=(
                    DEFAULT_DEPOSIT_KEYWORDS
                    if config.deposit_keywords is None
                    else config.deposit_keywords
                ),
                cancelled_statuses=config.cancelled_statuses,
                payment_status_aliases=config.status_aliases,
            )
            records, orphan_issues = find_orphans(intake.tenants, intake.records)

            eligible = [
                tenant for tenant in intake.tenants
                if is_eligible(tenant.lifecycle_status, self._eligible)
            ]

            outcome = self._engine.allocate(
                eligible,
                records,
                reference_date=reference,
                window=self._window,
            )
            metrics = current_month_metrics(outcome, reference, config.amount_places)
            metric_warnings = validate_metrics(metrics)
            for warning in metric_warnings:
                logger.warning(
                    "rent_metrics_warning",
                    extra={"code": warning.code, "field": warning.field},
                )

            report = RecognitionReport(
                run_id=run_id,
                reference_date=reference,
                outcome=outcome,
                metrics=metrics,
                metric_warnings=metric_warnings,
                issues=intake.issues + orphan_issues + outcome.issues,
                eligible_tenant_count=len(eligible),
                ineligible_tenant_count=len(intake.tenants) - len(eligible),
                skipped_cancelled_count=intake.skipped_cancelled_count,
                config_checksum=config.checksum,
            )

            logger.info(
                "rent_recognition_completed",
                extra={
                    "month_key": metrics.month_key,
                    "total_receivable": metrics.total_receivable,
                    "received": metrics.received,
                    "collection_rate": metrics.collection_rate,
                    "issue_count": len(report.issues),
                    "eligible_tenant_count": report.eligible_tenant_count,
                },
            )
        return report

    def current_month_metrics(self, reference_date: date | None = None) -> RentMetrics:
        """Dashboard figures for the current (or given) month."""
        return self.run(reference_date).metrics
