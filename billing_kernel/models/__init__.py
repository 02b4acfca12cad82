"""SQLAlchemy ORM rows for the SQL collaborator."""

from billing_kernel.models.account import AccountRow
from billing_kernel.models.catalog import (
    MonthlyChargeRow,
    PackageDefinitionLimitRow,
    PackageDefinitionRow,
    PackageRow,
    ResourceUsageRow,
)
from billing_kernel.models.ledger import LedgerEntryRow

__all__ = [
    "AccountRow",
    "LedgerEntryRow",
    "MonthlyChargeRow",
    "PackageDefinitionLimitRow",
    "PackageDefinitionRow",
    "PackageRow",
    "ResourceUsageRow",
]
