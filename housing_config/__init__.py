"""
housing_config -- single public entrypoint for rent recognition configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_recognition_config()``.  Services never read YAML files or
    environment variables themselves.

Architecture position:
    Configuration -- sits above ``housing_kernel`` and below
    ``housing_services``.  The kernel and engines MUST NEVER import from
    ``housing_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_recognition_config()``.
    - Validation: a configuration with errors is never returned.
    - Deterministic identity: the same YAML always produces the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- parse or validation failures.

Audit relevance:
    Every successful call emits a ``HOUSING_CONFIG_TRACE`` log entry with
    the config id, version and checksum, tying every recognition run to the
    configuration that governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from housing_config.loader import compute_checksum, load_recognition_config
from housing_config.schema import LifecycleConfig, RecognitionConfig, WindowConfig
from housing_config.validator import ConfigValidationResult, validate_recognition_config

_logger = logging.getLogger("housing_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_recognition_config(path: Path | str | None = None) -> RecognitionConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to a configuration file.  Defaults to
            housing_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If parsing or validation fails.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = load_recognition_config(config_path)

    validation = validate_recognition_config(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"warning": warning})

    _logger.info(
        "HOUSING_CONFIG_TRACE",
        extra={
            "trace_type": "HOUSING_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "months_before": config.window.months_before,
            "months_after": config.window.months_after,
            "eligible_statuses": list(config.lifecycle.eligible_statuses),
        },
    )
    return config


__all__ = [
    "get_recognition_config",
    "RecognitionConfig",
    "WindowConfig",
    "LifecycleConfig",
    "ConfigValidationResult",
    "validate_recognition_config",
    "compute_checksum",
]
