"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads the billing YAML file and parses it into the typed
``billing_config.schema`` dataclasses.  The single public entry point for
runtime config is ``billing_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required keys never get silent defaults.
* A non-empty ``metering`` list names every resource kind exactly once;
  an empty list selects the built-in catalog.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  configuration data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import (
    ActiveBalanceConfig,
    BillingConfiguration,
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    MeteringDef,
)
from billing_kernel.domain.catalog import ResourceKind

# Resource kinds accepted under ``metering``.
KNOWN_RESOURCES = frozenset(kind.value for kind in ResourceKind)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_metering(items: list[dict[str, Any]]) -> tuple[MeteringDef, ...]:
    seen: set[str] = set()
    parsed = []
    for item in items:
        resource = item["resource"]
        if resource not in KNOWN_RESOURCES:
            raise ValueError(f"Unknown metered resource: {resource!r}")
        if resource in seen:
            raise ValueError(f"Metered resource listed twice: {resource!r}")
        seen.add(resource)
        parsed.append(MeteringDef(resource=resource, label=item["label"]))
    missing = sorted(KNOWN_RESOURCES - seen) if parsed else []
    if missing:
        raise ValueError(f"Metering is missing resources: {missing}")
    return tuple(parsed)


def parse_active_balance(data: dict[str, Any]) -> ActiveBalanceConfig:
    years = data.get("lookback_years", 1)
    if not isinstance(years, int) or isinstance(years, bool) or years < 1:
        raise ValueError(f"active_balance.lookback_years must be a positive int, got {years!r}")
    return ActiveBalanceConfig(lookback_years=years)


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown logging.level: {level!r}")
    return LoggingConfig(level=level)


def parse_configuration(data: dict[str, Any]) -> BillingConfiguration:
    """
    Parse a full ``BillingConfiguration`` from a dict.

    Preconditions:
        - ``data`` contains ``config_id`` and ``version``.
    Postconditions:
        - Returns a frozen configuration whose ``checksum`` is
          ``compute_checksum(data)``.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if a value is out of range or unknown.
    """
    engine_data = data.get("engine") or {}
    database_data = data.get("database") or {}
    return BillingConfiguration(
        config_id=data["config_id"],
        version=int(data["version"]),
        active_balance=parse_active_balance(data.get("active_balance") or {}),
        metering=parse_metering(data.get("metering") or []),
        engine=EngineConfig(
            acting_identity=engine_data.get("acting_identity", "billing"),
        ),
        database=DatabaseConfig(
            url=database_data.get("url", "sqlite:///:memory:"),
            echo=bool(database_data.get("echo", False)),
        ),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
