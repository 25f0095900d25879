"""
Values -- Decimal amount normalization and rounding.

Responsibility:
    Converts the loosely-typed amounts found in tenant and billing documents
    (numbers, numeric strings, strings with currency symbols and thousands
    separators) into ``Decimal``, and rounds computed amounts at output
    boundaries.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted through ``str()`` so
      that ``0.1`` becomes ``Decimal("0.1")``, never a binary expansion.
    - Non-finite values (NaN, Infinity) never leave this module.

Failure modes:
    - MalformedRecordError when a value cannot be parsed into a finite
      Decimal.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from housing_kernel.exceptions import MalformedRecordError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Currency markers seen in hand-entered invoice amounts
_CURRENCY_MARKERS = re.compile(r"(\$HK|HK\$|\$|港币|港元|HKD|TWD|NT\$)", re.IGNORECASE)
_PLAIN_DECIMAL = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")


def to_amount(value: Any, field: str = "amount", record_id: str | None = None) -> Decimal | None:
    """
    Parse a document amount into a finite Decimal.

    Preconditions:
        - ``value`` is None, Decimal, int, float, or str.

    Postconditions:
        - Returns None for None and blank strings (absent, not zero).
        - Returns a finite Decimal otherwise.

    Raises:
        MalformedRecordError: if the value is not numeric or not finite.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedRecordError(field, value, "boolean is not an amount", record_id)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = "".join(_CURRENCY_MARKERS.sub("", value).replace(",", "").split())
        if not cleaned:
            return None
        # Anything beyond markers and separators is text, not part of the amount
        if not _PLAIN_DECIMAL.fullmatch(cleaned):
            raise MalformedRecordError(field, value, "not a number", record_id)
        try:
            amount = Decimal(cleaned)
        except InvalidOperation as e:
            raise MalformedRecordError(field, value, "not a number", record_id) from e
    else:
        raise MalformedRecordError(
            field, value, f"unsupported type {type(value).__name__}", record_id
        )

    if not amount.is_finite():
        raise MalformedRecordError(field, value, "amount is not finite", record_id)
    return amount


def is_usable_amount(value: Decimal | None) -> bool:
    """True if ``value`` is a finite, non-negative Decimal."""
    return value is not None and value.is_finite() and value >= ZERO


def quantize(amount: Decimal, places: int = 2) -> Decimal:
    """Round half-up to ``places`` decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def percentage(part: Decimal, whole: Decimal, places: int = 2) -> Decimal:
    """``part / whole * 100`` rounded, or zero when ``whole`` is zero."""
    if whole == ZERO:
        return quantize(ZERO, places)
    return quantize(part / whole * HUNDRED, places)
