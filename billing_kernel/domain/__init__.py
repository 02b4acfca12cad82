"""
Billing kernel domain layer -- pure values and rules, zero I/O.

Everything here is immutable and deterministic: money, ledger entries,
accounts, the rate catalog, search predicates and the repository ports the
services depend on.
"""

from billing_kernel.domain.account import AccountRecord
from billing_kernel.domain.catalog import (
    UNBOUNDED,
    MonthlyCharge,
    Package,
    PackageDefinition,
    PackageDefinitionLimit,
    RateCatalog,
    ResourceKind,
    Unbounded,
)
from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from billing_kernel.domain.ledger_entry import (
    ConfirmationState,
    LedgerEntry,
    PaymentMetadata,
)
from billing_kernel.domain.outcome import Outcome, OutcomeStatus
from billing_kernel.domain.search import SearchFilter
from billing_kernel.domain.values import Monies, MoneyValue

__all__ = [
    "AccountRecord",
    "Clock",
    "ConfirmationState",
    "DeterministicClock",
    "LedgerEntry",
    "Monies",
    "MoneyValue",
    "MonthlyCharge",
    "Outcome",
    "OutcomeStatus",
    "Package",
    "PackageDefinition",
    "PackageDefinitionLimit",
    "PaymentMetadata",
    "RateCatalog",
    "ResourceKind",
    "SearchFilter",
    "SystemClock",
    "UNBOUNDED",
    "Unbounded",
]
