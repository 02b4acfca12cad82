"""
Configuration Schema (``billing_config.schema``).

Responsibility
--------------
Frozen dataclass definitions for every section of the billing
configuration file.  Each dataclass maps one-to-one to a top-level YAML
section; ``BillingConfiguration`` is the root.

Architecture position
---------------------
**Config layer** -- pure data definitions.  No I/O and no imports from
``billing_kernel``; the bridges translate these into kernel inputs.

Invariants enforced
-------------------
* Every dataclass is ``frozen=True``.
* Collections are tuples, never lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MeteringDef:
    """One metered resource and the label used in overage descriptions."""

    resource: str
    label: str


@dataclass(frozen=True)
class ActiveBalanceConfig:
    """Active-balance suppression window."""

    lookback_years: int = 1


@dataclass(frozen=True)
class EngineConfig:
    """Overage engine settings."""

    acting_identity: str = "billing"


@dataclass(frozen=True)
class DatabaseConfig:
    """SQL collaborator connection settings."""

    url: str = "sqlite:///:memory:"
    echo: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging settings."""

    level: str = "INFO"


@dataclass(frozen=True)
class BillingConfiguration:
    """Root configuration object; ``checksum`` identifies the source data."""

    config_id: str
    version: int
    active_balance: ActiveBalanceConfig = field(default_factory=ActiveBalanceConfig)
    metering: tuple[MeteringDef, ...] = ()
    engine: EngineConfig = field(default_factory=EngineConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
