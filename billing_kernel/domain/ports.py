"""
Ports -- Repository and writer interfaces the billing core depends on.

The core never reaches for a global connection.  Everything it reads arrives
through the read ports below, and everything it changes leaves through the
writer ports.  The SQL collaborator in ``billing_kernel.selectors`` and
``billing_kernel.services.sql_writers`` implements all of them; tests use
in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from billing_kernel.domain.account import AccountRecord
from billing_kernel.domain.catalog import (
    PackageDefinition,
    PackageDefinitionLimit,
    RateCatalog,
    ResourceKind,
)
from billing_kernel.domain.ledger_entry import LedgerAppendRequest, LedgerEntry
from billing_kernel.domain.values import Monies

# ============================================================================
# Read ports
# ============================================================================


@runtime_checkable
class LedgerSnapshotSource(Protocol):
    """Supplies the current ledger snapshot, ordered by time then entry id."""

    def ledger_entries(self) -> Sequence[LedgerEntry]: ...


@runtime_checkable
class CatalogRepository(Protocol):
    """Supplies the current rate catalog snapshot."""

    def rate_catalog(self) -> RateCatalog: ...


@runtime_checkable
class AccountDirectory(Protocol):
    """Account lookups.  ``account`` returns None for an unknown name."""

    def account(self, name: str) -> AccountRecord | None: ...

    def accounts(self) -> Sequence[AccountRecord]: ...


@runtime_checkable
class UsageSource(Protocol):
    """Live resource counts per package."""

    def usage(self, package_name: str, resource: ResourceKind) -> int: ...


@runtime_checkable
class MonthlyRateProvider(Protocol):
    """The account's current monthly-rate schedule, summed per currency."""

    def monthly_rate(self, account: str) -> Monies: ...


# ============================================================================
# Write ports
# ============================================================================


@runtime_checkable
class LedgerWriter(Protocol):
    """Persists ledger appends and confirmation transitions."""

    def append_entry(self, request: LedgerAppendRequest) -> int:
        """Create the entry and return its newly assigned id."""
        ...

    def approve(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None: ...

    def decline(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None: ...

    def hold(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None: ...


@runtime_checkable
class CatalogWriter(Protocol):
    """Persists administrative catalog changes."""

    def create_definition(self, definition: PackageDefinition) -> int:
        """Store a new definition and return its assigned id.

        The ``definition_id`` carried by the argument is ignored.
        """
        ...

    def update_definition(self, definition: PackageDefinition) -> None: ...

    def replace_limits(
        self, definition_id: int, limits: Sequence[PackageDefinitionLimit]
    ) -> None:
        """Replace the definition's whole limit set atomically."""
        ...

    def remove_definition(self, definition_id: int) -> None: ...

    def copy_definition(self, definition_id: int) -> int:
        """Duplicate a definition with its limits; return the copy's id."""
        ...

    def set_definition_active(self, definition_id: int, active: bool) -> None: ...
