"""
Typed Exception Hierarchy for the Housing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Rent recognition runs over imperfect data: invoices typed in by hand,
timestamps that arrive in three different shapes, tenants whose status was
edited out of order. Callers need to tell a programmer error apart from a
data problem without parsing message strings.

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        lifecycle.transition(state, "resigned", as_of=today)
    except Exception as e:
        if "departure" in str(e):
            ...

Example - RIGHT way:
    try:
        lifecycle.transition(state, TenantStatus.RESIGNED, as_of=today)
    except DepartureDateError as e:
        api_response(code=e.code, tenant=e.tenant_id, date=e.departure_date)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    HousingKernelError (base)
    |
    +-- ContractViolationError
    |
    +-- MalformedRecordError
    |
    +-- LifecycleError
    |   +-- UnknownStatusError
    |   +-- InvalidStatusTransitionError
    |   +-- DepartureDateError
    |
    +-- TenantNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Contract        | CONTRACT_VIOLATION          | Wrong collection/element type at the
                |                             | engine boundary, bad window size
----------------|-----------------------------|-----------------------------------------
Data quality    | MALFORMED_RECORD            | Unparseable date/amount in a document.
                |                             | Raised by normalization helpers and
                |                             | converted to a DataQualityIssue at the
                |                             | intake boundary; never escapes allocate()
----------------|-----------------------------|-----------------------------------------
Lifecycle       | UNKNOWN_STATUS              | Status string not in TenantStatus
                | INVALID_STATUS_TRANSITION   | Transition not in the transition table
                | INVALID_DEPARTURE_DATE      | Departure date guard failed
----------------|-----------------------------|-----------------------------------------
Tenant          | TENANT_NOT_FOUND            | Tenant ID doesn't exist in the store

===============================================================================
HANDLING PATTERNS
===============================================================================

1. DATA PROBLEMS ARE REPORTED, NOT RAISED:

    The engine accumulates DataQualityIssue entries and returns them
    alongside normal output. MalformedRecordError only travels between the
    normalization helpers and the intake boundary.

2. CONTRACT VIOLATIONS FAIL FAST:

    except ContractViolationError as e:
        # Programmer error: fix the caller
        log.error("bad_engine_call", extra={"code": e.code, "argument": e.argument})
        raise
"""

from __future__ import annotations

from datetime import date
from typing import Any


class HousingKernelError(Exception):
    """
    Base exception for all housing kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "HOUSING_KERNEL_ERROR"


# Contract violations


class ContractViolationError(HousingKernelError):
    """Engine called with arguments that break its input contract."""

    code: str = "CONTRACT_VIOLATION"

    def __init__(self, argument: str, expected: str, actual: Any):
        self.argument = argument
        self.expected = expected
        self.actual_type = type(actual).__name__
        super().__init__(
            f"Invalid argument {argument!r}: expected {expected}, "
            f"got {self.actual_type}"
        )


# Data quality


class MalformedRecordError(HousingKernelError):
    """A document field could not be normalized into its canonical type."""

    code: str = "MALFORMED_RECORD"

    def __init__(self, field: str, value: Any, reason: str, record_id: str | None = None):
        self.field = field
        self.value = repr(value)
        self.reason = reason
        self.record_id = record_id
        where = f" on {record_id}" if record_id else ""
        super().__init__(f"Malformed field {field!r}{where}: {reason} ({self.value})")


# Tenant lifecycle


class LifecycleError(HousingKernelError):
    """Base exception for tenant lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class UnknownStatusError(LifecycleError):
    """Status value is not part of the tenant lifecycle."""

    code: str = "UNKNOWN_STATUS"

    def __init__(self, status: Any):
        self.status = status
        super().__init__(f"Unknown tenant status: {status!r}")


class InvalidStatusTransitionError(LifecycleError):
    """Transition is not present in the lifecycle transition table."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, tenant_id: str | None, current: str, target: str):
        self.tenant_id = tenant_id
        self.current = current
        self.target = target
        super().__init__(
            f"Tenant {tenant_id or '<unknown>'} cannot move from "
            f"{current!r} to {target!r}"
        )


class DepartureDateError(LifecycleError):
    """Departure date does not satisfy the guard for the target status."""

    code: str = "INVALID_DEPARTURE_DATE"

    def __init__(
        self,
        tenant_id: str | None,
        target: str,
        departure_date: date | None,
        as_of: date,
        reason: str,
    ):
        self.tenant_id = tenant_id
        self.target = target
        self.departure_date = departure_date
        self.as_of = as_of
        self.reason = reason
        super().__init__(
            f"Tenant {tenant_id or '<unknown>'} -> {target}: {reason} "
            f"(departure_date={departure_date}, as_of={as_of})"
        )


class TenantNotFoundError(HousingKernelError):
    """Tenant with given ID was not found in the snapshot store."""

    code: str = "TENANT_NOT_FOUND"

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant not found: {tenant_id}")
