"""Services for the billing kernel: balances, overage billing and the write path."""

from billing_kernel.services.aggregate_cache import AggregateCache
from billing_kernel.services.catalog_service import CatalogService, PreparedLimitSet
from billing_kernel.services.invalidation import InvalidationBus
from billing_kernel.services.ledger_service import LedgerService
from billing_kernel.services.ledger_store import LedgerStore
from billing_kernel.services.overage_engine import (
    BillingLine,
    LineKind,
    MeteredResource,
    OverageEngine,
)

__all__ = [
    "AggregateCache",
    "BillingLine",
    "CatalogService",
    "InvalidationBus",
    "LedgerService",
    "LedgerStore",
    "LineKind",
    "MeteredResource",
    "OverageEngine",
    "PreparedLimitSet",
]
