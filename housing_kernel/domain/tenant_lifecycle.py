"""
Tenant lifecycle -- explicit finite-state machine for tenant status.

Responsibility:
    Defines the tenant statuses, the fixed transition table, the departure
    date guards, occupancy derivation for the daily sweep, and the
    allocation eligibility predicate.  The recognition engine never looks
    at statuses itself; callers filter tenants through ``is_eligible``
    before invoking it.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  "Today" is always
    passed in as ``as_of``.

Invariants enforced:
    - Only transitions present in ``ALLOWED_TRANSITIONS`` are accepted.
    - ``resigned`` and ``terminated`` are terminal.
    - Entering ``pending_resign`` needs a departure date after ``as_of``.
    - Entering ``resigned`` needs a departure date on or before ``as_of``.
    - ``resigned`` can never be allocation-eligible.

Failure modes:
    - UnknownStatusError for status strings outside the lifecycle.
    - InvalidStatusTransitionError for transitions outside the table.
    - DepartureDateError when a guard fails.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum, unique

from housing_kernel.exceptions import (
    DepartureDateError,
    InvalidStatusTransitionError,
    UnknownStatusError,
)


@unique
class TenantStatus(str, Enum):
    """Lifecycle status for a tenant."""

    PENDING_ASSIGNMENT = "pending_assignment"  # No property assigned
    PENDING = "pending"  # Assigned, not yet arrived
    HOUSED = "housed"  # Assigned and arrived
    PENDING_RESIGN = "pending_resign"  # Leaving on a known date
    RESIGNED = "resigned"  # Left
    TERMINATED = "terminated"  # Legacy side-branch

    @classmethod
    def parse(cls, value: str | TenantStatus | None) -> TenantStatus:
        """Parse a stored status; missing status means pending assignment."""
        if isinstance(value, TenantStatus):
            return value
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.PENDING_ASSIGNMENT
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise UnknownStatusError(value) from e


ALLOWED_TRANSITIONS: dict[TenantStatus, frozenset[TenantStatus]] = {
    TenantStatus.PENDING_ASSIGNMENT: frozenset({
        TenantStatus.PENDING,
        TenantStatus.HOUSED,
        TenantStatus.TERMINATED,
    }),
    TenantStatus.PENDING: frozenset({
        TenantStatus.PENDING_ASSIGNMENT,
        TenantStatus.HOUSED,
        TenantStatus.TERMINATED,
    }),
    TenantStatus.HOUSED: frozenset({
        TenantStatus.PENDING_ASSIGNMENT,
        TenantStatus.PENDING,
        TenantStatus.PENDING_RESIGN,
        TenantStatus.TERMINATED,
    }),
    TenantStatus.PENDING_RESIGN: frozenset({
        TenantStatus.HOUSED,  # Resignation withdrawn
        TenantStatus.RESIGNED,
        TenantStatus.TERMINATED,
    }),
    TenantStatus.RESIGNED: frozenset(),  # Terminal
    TenantStatus.TERMINATED: frozenset(),  # Terminal
}

TERMINAL_STATUSES: frozenset[TenantStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

DEFAULT_ELIGIBLE_STATUSES: frozenset[TenantStatus] = frozenset({TenantStatus.HOUSED})


def validate_transition(current: TenantStatus, target: TenantStatus) -> bool:
    """Check if a status transition is in the table."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True)
class StatusTransition:
    """
    An accepted status change.

    ``actual_departure_date`` is only set when entering ``resigned``.
    """

    tenant_id: str | None
    previous: TenantStatus
    current: TenantStatus
    departure_date: date | None = None
    actual_departure_date: date | None = None


def transition(
    current: TenantStatus | str,
    target: TenantStatus | str,
    *,
    as_of: date,
    departure_date: date | None = None,
    tenant_id: str | None = None,
) -> StatusTransition:
    """
    Validate and describe a status change.

    Preconditions:
        - ``as_of`` is the caller's notion of today.

    Postconditions:
        - Returns a StatusTransition when the table and guards accept it.

    Raises:
        UnknownStatusError, InvalidStatusTransitionError, DepartureDateError.
    """
    source = TenantStatus.parse(current)
    destination = TenantStatus.parse(target)

    if not validate_transition(source, destination):
        raise InvalidStatusTransitionError(tenant_id, source.value, destination.value)

    if destination is TenantStatus.PENDING_RESIGN:
        if departure_date is None:
            raise DepartureDateError(
                tenant_id, destination.value, None, as_of,
                "pending resignation requires a departure date",
            )
        if departure_date <= as_of:
            raise DepartureDateError(
                tenant_id, destination.value, departure_date, as_of,
                "departure date must be in the future",
            )

    actual_departure = None
    if destination is TenantStatus.RESIGNED:
        if departure_date is None:
            raise DepartureDateError(
                tenant_id, destination.value, None, as_of,
                "resignation requires a departure date",
            )
        if departure_date > as_of:
            raise DepartureDateError(
                tenant_id, destination.value, departure_date, as_of,
                "departure date of a resigned tenant cannot be in the future",
            )
        actual_departure = departure_date

    return StatusTransition(
        tenant_id=tenant_id,
        previous=source,
        current=destination,
        departure_date=departure_date,
        actual_departure_date=actual_departure,
    )


def derive_status(
    current: TenantStatus,
    *,
    as_of: date,
    assigned_property_id: str | None,
    arrival_date: date | None,
    departure_date: date | None,
) -> TenantStatus:
    """
    Status a tenant should have on ``as_of`` according to its stored facts.

    Resignation takes priority: a pending resignation whose departure date
    has passed becomes ``resigned``.  Otherwise occupancy is derived from
    property assignment and arrival.  Terminal and pending-resign tenants
    keep their status.
    """
    if current in TERMINAL_STATUSES:
        return current
    if current is TenantStatus.PENDING_RESIGN:
        if departure_date is not None and departure_date <= as_of:
            return TenantStatus.RESIGNED
        return current

    if not assigned_property_id:
        return TenantStatus.PENDING_ASSIGNMENT
    if arrival_date is not None and arrival_date <= as_of:
        return TenantStatus.HOUSED
    return TenantStatus.PENDING


def is_eligible(
    status: TenantStatus,
    eligible_statuses: Iterable[TenantStatus] = DEFAULT_ELIGIBLE_STATUSES,
) -> bool:
    """True if tenants in ``status`` take part in rent allocation."""
    if status is TenantStatus.RESIGNED:
        return False
    return status in frozenset(eligible_statuses)
