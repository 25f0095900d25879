"""
housing_services.tenant_status_service -- Tenant lifecycle writes.

Responsibility:
    Apply tenant status changes to the snapshot store: manual updates from
    the administration screens and the daily sweep that derives occupancy
    from property assignment and arrival, and completes resignations whose
    departure date has passed.

Architecture position:
    Services -- stateful orchestration over the kernel lifecycle.
    All transition rules live in housing_kernel.domain.tenant_lifecycle;
    this service only loads rows, asks the state machine, and writes back.

Invariants enforced:
    - Every status write goes through ``transition()``; nothing bypasses
      the transition table or the departure date guards.
    - "Today" comes from the injected Clock in the configured timezone.
    - The sweep never touches resigned or terminated tenants.

Failure modes:
    - TenantNotFoundError, UnknownStatusError,
      InvalidStatusTransitionError and DepartureDateError from
      ``update_status``.
    - The sweep never raises for a single bad tenant; failures are
      collected in the StatusSweepResult.

Audit relevance:
    Every accepted change is logged as ``tenant_status_changed`` with the
    previous and new status and the actor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from housing_config import RecognitionConfig, get_recognition_config
from housing_kernel.domain.clock import Clock
from housing_kernel.domain.tenant_lifecycle import (
    TERMINAL_STATUSES,
    StatusTransition,
    TenantStatus,
    derive_status,
    transition,
)
from housing_kernel.exceptions import LifecycleError, TenantNotFoundError
from housing_kernel.logging_config import LogContext, get_logger
from housing_kernel.models.tenant import TenantModel

logger = get_logger("services.tenant_status")


@dataclass(frozen=True)
class SweepFailure:
    tenant_id: str
    code: str
    message: str


@dataclass(frozen=True)
class StatusSweepResult:
    """Outcome of one daily sweep."""

    as_of: date
    examined_count: int
    skipped_count: int
    transitions: tuple[StatusTransition, ...]
    failures: tuple[SweepFailure, ...]

    @property
    def updated_count(self) -> int:
        return len(self.transitions)


@dataclass(frozen=True)
class ApproachingDeparture:
    tenant_id: str
    name: str | None
    departure_date: date
    days_remaining: int


class TenantStatusService:
    """Applies tenant lifecycle transitions to stored tenants.

    Contract:
        Uses the caller's session and flushes after each write; the caller
        owns the transaction (see ``session_scope``).
    Non-goals:
        - Does not schedule itself; a job runner calls ``run_daily_sweep``.
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

    def today(self) -> date:
        return self._clock.today(self._config.timezone)

    def _get_tenant(self, tenant_id: str) -> TenantModel:
        row = self._session.get(TenantModel, tenant_id)
        if row is None:
            raise TenantNotFoundError(tenant_id)
        return row

    def _apply(self, row: TenantModel, change: StatusTransition, actor_id: str | None) -> None:
        row.status = change.current.value
        if change.departure_date is not None:
            row.departure_date = change.departure_date
        if change.actual_departure_date is not None:
            row.actual_departure_date = change.actual_departure_date
        if (
            change.previous is TenantStatus.PENDING_RESIGN
            and change.current is TenantStatus.HOUSED
        ):
            # Resignation withdrawn
            row.departure_date = None

        logger.info(
            "tenant_status_changed",
            extra={
                "tenant_id": row.id,
                "previous_status": change.previous.value,
                "new_status": change.current.value,
                "departure_date": change.departure_date,
                "actor_id": actor_id,
            },
        )

    def update_status(
        self,
        tenant_id: str,
        new_status: TenantStatus | str,
        departure_date: date | None = None,
        actor_id: str | None = None,
    ) -> StatusTransition:
        """Validate and store a manual status change.

        ``departure_date`` defaults to the stored one, so a tenant already
        carrying a departure date can be resigned without repeating it.

        Raises:
            TenantNotFoundError: no such tenant.
            UnknownStatusError: unknown stored or requested status.
            InvalidStatusTransitionError: not in the transition table.
            DepartureDateError: departure date guard failed.
        """
        row = self._get_tenant(tenant_id)
        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id):
            change = transition(
                row.status,
                new_status,
                as_of=self.today(),
                departure_date=departure_date or row.departure_date,
                tenant_id=tenant_id,
            )
            self._apply(row, change, actor_id)
            self._session.flush()
        return change

    def run_daily_sweep(self) -> StatusSweepResult:
        """Bring every non-terminal tenant's status in line with its facts."""
        as_of = self.today()
        rows = self._session.scalars(select(TenantModel).order_by(TenantModel.id)).all()

        transitions = []
        failures = []
        skipped = 0
        for row in rows:
            try:
                current = TenantStatus.parse(row.status)
                if current in TERMINAL_STATUSES:
                    skipped += 1
                    continue

                target = derive_status(
                    current,
                    as_of=as_of,
                    assigned_property_id=row.assigned_property_id,
                    arrival_date=row.arrival_date,
                    departure_date=row.departure_date,
                )
                if target is current:
                    if row.status != current.value:
                        # Normalize blank stored status
                        row.status = current.value
                    continue

                change = transition(
                    current,
                    target,
                    as_of=as_of,
                    departure_date=row.departure_date,
                    tenant_id=row.id,
                )
            except LifecycleError as e:
                failures.append(SweepFailure(row.id, e.code, str(e)))
                logger.warning(
                    "tenant_status_sweep_failed",
                    extra={"tenant_id": row.id, "code": e.code},
                )
                continue

            self._apply(row, change, actor_id="system:daily_sweep")
            transitions.append(change)

        self._session.flush()
        result = StatusSweepResult(
            as_of=as_of,
            examined_count=len(rows),
            skipped_count=skipped,
            transitions=tuple(transitions),
            failures=tuple(failures),
        )
        logger.info(
            "tenant_status_sweep_completed",
            extra={
                "as_of": as_of,
                "examined_count": result.examined_count,
                "updated_count": result.updated_count,
                "skipped_count": skipped,
                "failure_count": len(failures),
            },
        )
        return result

    def approaching_departures(self, days_ahead: int | None = None) -> tuple[ApproachingDeparture, ...]:
        """Pending resignations leaving within ``days_ahead`` days, soonest first."""
        if days_ahead is None:
            days_ahead = self._config.lifecycle.approaching_departure_days
        today = self.today()
        horizon = today + timedelta(days=days_ahead)

        rows = self._session.scalars(
            select(TenantModel)
            .where(TenantModel.status == TenantStatus.PENDING_RESIGN.value)
            .where(TenantModel.departure_date.is_not(None))
            .where(TenantModel.departure_date >= today)
            .where(TenantModel.departure_date <= horizon)
            .order_by(TenantModel.departure_date, TenantModel.id)
        ).all()
        return tuple(
            ApproachingDeparture(
                tenant_id=row.id,
                name=row.name,
                departure_date=row.departure_date,
                days_remaining=(row.departure_date - today).days,
            )
            for row in rows
        )

    def status_statistics(self) -> dict[str, int]:
        """Tenant count per lifecycle status; unparseable statuses under ``unknown``."""
        counts = {status.value: 0 for status in TenantStatus}
        rows = self._session.execute(
            select(TenantModel.status, func.count()).group_by(TenantModel.status)
        ).all()
        for status, count in rows:
            try:
                key = TenantStatus.parse(status).value
            except LifecycleError:
                key = "unknown"
            counts[key] = counts.get(key, 0) + count
        return counts
