"""Read-only selectors implementing the kernel's read ports over SQL."""

from billing_kernel.selectors.base import BaseSelector
from billing_kernel.selectors.catalog_selector import CatalogSelector, UsageSelector
from billing_kernel.selectors.ledger_selector import AccountSelector, LedgerSelector

__all__ = [
    "AccountSelector",
    "BaseSelector",
    "CatalogSelector",
    "LedgerSelector",
    "UsageSelector",
]
