"""
Recognition configuration schema.

Typed, frozen form of the YAML configuration.  The loader parses YAML
fragments into these types; the validator checks them; services read them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WindowConfig:
    """Months recognized around the reference month."""

    months_before: int = 3
    months_after: int = 8


@dataclass(frozen=True)
class LifecycleConfig:
    """Tenant lifecycle settings."""

    eligible_statuses: tuple[str, ...] = ("housed",)
    approaching_departure_days: int = 30


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecognitionConfig:
    """
    Complete rent recognition configuration.

    ``deposit_keywords`` of None means the built-in keyword list.
    ``payment_status_aliases`` is a tuple of ``(stored_status, state)``
    pairs where state is ``paid`` or ``unpaid``.
    """

    config_id: str
    version: int
    window: WindowConfig = WindowConfig()
    lifecycle: LifecycleConfig = LifecycleConfig()
    default_monthly_rate: Decimal | None = Decimal("3500")
    use_face_amount_fallback: bool = True
    amount_places: int = 2
    timezone: str = "UTC"
    redistribute_into_empty_months: bool = False
    max_workers: int = 1
    deposit_keywords: tuple[str, ...] | None = None
    cancelled_statuses: tuple[str, ...] = ("cancelled",)
    payment_status_aliases: tuple[tuple[str, str], ...] = ()
    checksum: str = ""

    @property
    def status_aliases(self) -> dict[str, str]:
        return dict(self.payment_status_aliases)
