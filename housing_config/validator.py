"""
Configuration Validator (``housing_config.validator``).

Responsibility
--------------
Checks a parsed ``RecognitionConfig`` before it is handed to services.

Invariants enforced
-------------------
* Window sizes and worker counts are in range.
* A configured default monthly rate is positive.
* The timezone is a known IANA zone.
* Eligible statuses are known lifecycle statuses and never include
  ``resigned``.
* Payment status aliases map onto ``paid`` or ``unpaid`` only.

Failure modes
-------------
* Errors (``ConfigValidationResult.errors``) -> the configuration MUST NOT
  be used.
* Warnings -> usable, but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from housing_config.schema import RecognitionConfig
from housing_kernel.domain.tenant_lifecycle import TenantStatus

_PAYMENT_STATES = frozenset({"paid", "unpaid"})
_MAX_PLACES = 8


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_recognition_config(config: RecognitionConfig) -> ConfigValidationResult:
    result = ConfigValidationResult()

    _validate_window(config, result)
    _validate_rates(config, result)
    _validate_timezone(config, result)
    _validate_lifecycle(config, result)
    _validate_classification(config, result)

    return result


def _validate_window(config: RecognitionConfig, result: ConfigValidationResult) -> None:
    if config.window.months_before < 0:
        result.add_error("window.months_before must be >= 0")
    if config.window.months_after < 0:
        result.add_error("window.months_after must be >= 0")
    if config.max_workers < 1:
        result.add_error("recognition.max_workers must be >= 1")


def _validate_rates(config: RecognitionConfig, result: ConfigValidationResult) -> None:
    rate = config.default_monthly_rate
    if rate is not None and (not rate.is_finite() or rate <= 0):
        result.add_error(f"recognition.default_monthly_rate must be positive, got {rate}")
    if rate is None and not config.use_face_amount_fallback:
        result.add_warning(
            "no default monthly rate and face-amount fallback disabled: "
            "tenants without a rate will be excluded"
        )
    if not 0 <= config.amount_places <= _MAX_PLACES:
        result.add_error(f"recognition.amount_places must be between 0 and {_MAX_PLACES}")


def _validate_timezone(config: RecognitionConfig, result: ConfigValidationResult) -> None:
    try:
        ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        result.add_error(f"recognition.timezone is not a known zone: {config.timezone!r}")


def _validate_lifecycle(config: RecognitionConfig, result: ConfigValidationResult) -> None:
    known = {status.value for status in TenantStatus}
    eligible = config.lifecycle.eligible_statuses
    if not eligible:
        result.add_warning("lifecycle.eligible_statuses is empty: nothing will be recognized")
    for status in eligible:
        if status not in known:
            result.add_error(f"lifecycle.eligible_statuses has unknown status {status!r}")
        elif status == TenantStatus.RESIGNED.value:
            result.add_error("lifecycle.eligible_statuses may not include 'resigned'")
    if config.lifecycle.approaching_departure_days < 0:
        result.add_error("lifecycle.approaching_departure_days must be >= 0")


def _validate_classification(config: RecognitionConfig, result: ConfigValidationResult) -> None:
    if config.deposit_keywords == ():
        result.add_warning("classification.deposit_keywords is empty: deposits will be recognized")
    for alias, state in config.payment_status_aliases:
        if state not in _PAYMENT_STATES:
            result.add_error(
                f"classification.payment_status_aliases[{alias!r}] must be paid or unpaid, "
                f"got {state!r}"
            )
        if alias in config.cancelled_statuses:
            result.add_error(f"status {alias!r} is both an alias and a cancelled status")
