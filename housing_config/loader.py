"""
Configuration Loader (``housing_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``housing_config.schema`` dataclasses.  The single public entry point for
runtime config is ``housing_config.get_recognition_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Amounts are parsed through ``str`` into ``Decimal``, never via float.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrongly typed values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from housing_config.schema import LifecycleConfig, RecognitionConfig, WindowConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name}: expected a number, got {value!r}") from e


def parse_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}: expected an integer, got {value!r}")
    return value


def parse_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name}: expected true/false, got {value!r}")
    return value


def parse_str_list(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"{name}: expected a list, got {value!r}")
    return tuple(str(item) for item in value)


def parse_window(data: dict[str, Any]) -> WindowConfig:
    """Parse a WindowConfig from a dict."""
    defaults = WindowConfig()
    return WindowConfig(
        months_before=parse_int(data.get("months_before", defaults.months_before), "window.months_before"),
        months_after=parse_int(data.get("months_after", defaults.months_after), "window.months_after"),
    )


def parse_lifecycle(data: dict[str, Any]) -> LifecycleConfig:
    """Parse a LifecycleConfig from a dict."""
    defaults = LifecycleConfig()
    eligible = data.get("eligible_statuses")
    return LifecycleConfig(
        eligible_statuses=(
            parse_str_list(eligible, "lifecycle.eligible_statuses")
            if eligible is not None
            else defaults.eligible_statuses
        ),
        approaching_departure_days=parse_int(
            data.get("approaching_departure_days", defaults.approaching_departure_days),
            "lifecycle.approaching_departure_days",
        ),
    )


def parse_aliases(data: Any) -> tuple[tuple[str, str], ...]:
    if data is None:
        return ()
    if not isinstance(data, dict):
        raise ValueError(f"payment_status_aliases: expected a mapping, got {data!r}")
    return tuple(sorted((str(k).lower(), str(v).lower()) for k, v in data.items()))


def parse_recognition_config(data: dict[str, Any], checksum: str = "") -> RecognitionConfig:
    """
    Parse a RecognitionConfig from a dict.

    Preconditions:
        - ``data`` has ``config_id`` and ``version``.
    Raises:
        KeyError: if a required key is missing.
        ValueError: if a value has the wrong type.
    """
    recognition = data.get("recognition") or {}
    classification = data.get("classification") or {}
    defaults = RecognitionConfig(config_id="", version=0)

    default_rate = recognition.get("default_monthly_rate", defaults.default_monthly_rate)

    return RecognitionConfig(
        config_id=data["config_id"],
        version=parse_int(data["version"], "version"),
        window=parse_window(data.get("window") or {}),
        lifecycle=parse_lifecycle(data.get("lifecycle") or {}),
        default_monthly_rate=parse_decimal(default_rate, "recognition.default_monthly_rate"),
        use_face_amount_fallback=parse_bool(
            recognition.get("use_face_amount_fallback", defaults.use_face_amount_fallback),
            "recognition.use_face_amount_fallback",
        ),
        amount_places=parse_int(
            recognition.get("amount_places", defaults.amount_places),
            "recognition.amount_places",
        ),
        timezone=str(recognition.get("timezone", defaults.timezone)),
        redistribute_into_empty_months=parse_bool(
            recognition.get(
                "redistribute_into_empty_months", defaults.redistribute_into_empty_months
            ),
            "recognition.redistribute_into_empty_months",
        ),
        max_workers=parse_int(
            recognition.get("max_workers", defaults.max_workers),
            "recognition.max_workers",
        ),
        deposit_keywords=(
            parse_str_list(
                classification.get("deposit_keywords"), "classification.deposit_keywords"
            )
            if "deposit_keywords" in classification
            else None
        ),
        cancelled_statuses=(
            parse_str_list(
                classification.get("cancelled_statuses"), "classification.cancelled_statuses"
            )
            if "cancelled_statuses" in classification
            else defaults.cancelled_statuses
        ),
        payment_status_aliases=parse_aliases(classification.get("payment_status_aliases")),
        checksum=checksum,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_recognition_config(path: Path) -> RecognitionConfig:
    """Load and parse one configuration file, stamping its checksum."""
    data = load_yaml_file(path)
    return parse_recognition_config(data, checksum=compute_checksum(data))
