"""
Config -> Kernel Bridges.

Functions that convert a BillingConfiguration into kernel inputs.  These
live in billing_config (the producer) because the kernel must NEVER import
billing_config.

Usage:
    from billing_config import get_active_config
    from billing_config.bridges import build_ledger_store, build_overage_engine

    config = get_active_config()
    engine = build_overage_engine(config, catalog, accounts, usage)
    store = build_ledger_store(config, ledger_source, accounts, engine)
"""

from __future__ import annotations

import logging

from billing_config.schema import BillingConfiguration
from billing_kernel.domain.catalog import ResourceKind
from billing_kernel.domain.clock import Clock
from billing_kernel.domain.ports import (
    AccountDirectory,
    CatalogRepository,
    LedgerSnapshotSource,
    MonthlyRateProvider,
    UsageSource,
)
from billing_kernel.logging_config import configure_logging
from billing_kernel.services.ledger_store import LedgerStore
from billing_kernel.services.overage_engine import (
    DEFAULT_METERING,
    MeteredResource,
    OverageEngine,
)


def build_metering(config: BillingConfiguration) -> tuple[MeteredResource, ...]:
    """Metered resources in configured order; the full catalog when none are listed."""
    if not config.metering:
        return DEFAULT_METERING
    return tuple(
        MeteredResource(ResourceKind(item.resource), item.label)
        for item in config.metering
    )


def lookback_years(config: BillingConfiguration) -> int:
    return config.active_balance.lookback_years


def logging_level(config: BillingConfiguration) -> int:
    return logging.getLevelName(config.logging.level)


def configure_kernel_logging(config: BillingConfiguration) -> None:
    configure_logging(level=logging_level(config))


def build_overage_engine(
    config: BillingConfiguration,
    catalog: CatalogRepository,
    accounts: AccountDirectory,
    usage: UsageSource,
    clock: Clock | None = None,
) -> OverageEngine:
    return OverageEngine(
        catalog,
        accounts,
        usage,
        metering=build_metering(config),
        clock=clock,
        acting_identity=config.engine.acting_identity,
    )


def build_ledger_store(
    config: BillingConfiguration,
    source: LedgerSnapshotSource,
    accounts: AccountDirectory | None = None,
    monthly_rates: MonthlyRateProvider | None = None,
    clock: Clock | None = None,
) -> LedgerStore:
    return LedgerStore(
        source,
        accounts=accounts,
        monthly_rates=monthly_rates,
        clock=clock,
        lookback_years=lookback_years(config),
    )
