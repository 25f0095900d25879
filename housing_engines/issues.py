"""
Data-quality issues reported alongside allocation output.

Bad documents never abort a run.  Each problem becomes one
``DataQualityIssue`` and the offending item is excluded (or, for warnings,
kept with a substituted value).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IssueCode(str, Enum):
    """Machine-readable data-quality codes."""

    MISSING_COVERAGE_DATE = "MISSING_COVERAGE_DATE"
    INVERTED_COVERAGE = "INVERTED_COVERAGE"
    NEGATIVE_FACE_AMOUNT = "NEGATIVE_FACE_AMOUNT"
    UNPARSEABLE_FIELD = "UNPARSEABLE_FIELD"
    NEGATIVE_MONTHLY_RATE = "NEGATIVE_MONTHLY_RATE"
    MISSING_MONTHLY_RATE = "MISSING_MONTHLY_RATE"
    ORPHAN_RECORD = "ORPHAN_RECORD"
    ARITHMETIC_GUARD = "ARITHMETIC_GUARD"
    # Warnings
    RATE_DEFAULTED = "RATE_DEFAULTED"
    RATE_FROM_FACE_AMOUNT = "RATE_FROM_FACE_AMOUNT"


WARNING_CODES: frozenset[IssueCode] = frozenset({
    IssueCode.RATE_DEFAULTED,
    IssueCode.RATE_FROM_FACE_AMOUNT,
})


@dataclass(frozen=True)
class DataQualityIssue:
    """
    One reported problem.

    ``excluded`` is False for warnings: the item still took part in
    allocation with a substituted value.
    """

    code: IssueCode
    message: str
    record_id: str | None = None
    tenant_id: str | None = None
    field: str | None = None
    excluded: bool = True

    @classmethod
    def warning(cls, code: IssueCode, message: str, **kwargs) -> DataQualityIssue:
        return cls(code=code, message=message, excluded=False, **kwargs)

    @property
    def is_warning(self) -> bool:
        return not self.excluded
