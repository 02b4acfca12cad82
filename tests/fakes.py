"""
In-memory collaborators for the billing kernel's ports.

Each fake keeps plain Python state and implements the same Protocol as the
SQL collaborator, so services can be exercised without a database.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from datetime import datetime, timezone

from billing_kernel.domain.account import AccountRecord
from billing_kernel.domain.catalog import (
    MonthlyCharge,
    Package,
    PackageDefinition,
    PackageDefinitionLimit,
    RateCatalog,
    ResourceKind,
)
from billing_kernel.domain.ledger_entry import (
    ConfirmationState,
    LedgerAppendRequest,
    LedgerEntry,
    PaymentMetadata,
)
from billing_kernel.domain.values import MoneyValue
from billing_kernel.exceptions import (
    DefinitionInUseError,
    DefinitionNotFoundError,
    EntryNotFoundError,
)

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def usd(amount: str) -> MoneyValue:
    return MoneyValue.of(amount, "USD")


def eur(amount: str) -> MoneyValue:
    return MoneyValue.of(amount, "EUR")


def make_entry(
    entry_id: int,
    rate: MoneyValue,
    quantity: int = 1000,
    state: ConfirmationState = ConfirmationState.PENDING,
    account: str = "acme",
    time: datetime | None = None,
    source_account: str | None = None,
    administrator: str = "admin",
    type_code: str = "hosting",
    description: str = "Monthly hosting",
    payment: PaymentMetadata | None = None,
) -> LedgerEntry:
    return LedgerEntry(
        entry_id=entry_id,
        time=time or T0,
        account=account,
        source_account=source_account or account,
        administrator=administrator,
        type_code=type_code,
        description=description,
        quantity=quantity,
        rate=rate,
        payment=payment or PaymentMetadata(),
        state=state,
    )


class InMemoryLedger:
    """LedgerSnapshotSource and LedgerWriter over a list."""

    def __init__(self, entries: list[LedgerEntry] | None = None, load_delay: float = 0.0):
        self._entries: dict[int, LedgerEntry] = {e.entry_id: e for e in entries or []}
        self._next_id = max(self._entries, default=0) + 1
        self._lock = threading.Lock()
        self.load_count = 0
        self.load_delay = load_delay

    def ledger_entries(self) -> list[LedgerEntry]:
        with self._lock:
            self.load_count += 1
            entries = list(self._entries.values())
        if self.load_delay:
            time.sleep(self.load_delay)
        return sorted(entries, key=lambda e: (e.time, e.entry_id))

    def add(self, entry: LedgerEntry) -> None:
        with self._lock:
            self._entries[entry.entry_id] = entry
            self._next_id = max(self._next_id, entry.entry_id + 1)

    def append_entry(self, request: LedgerAppendRequest) -> int:
        with self._lock:
            entry_id = self._next_id
            self._next_id += 1
            self._entries[entry_id] = request.to_entry(entry_id)
        return entry_id

    def _transition(self, action, entry_id, external_payment_id, updated_payment_info):
        with self._lock:
            if entry_id not in self._entries:
                raise EntryNotFoundError(entry_id)
            current = self._entries[entry_id]
            self._entries[entry_id] = getattr(current, action)(
                external_payment_id, updated_payment_info
            )

    def approve(self, entry_id, external_payment_id, updated_payment_info):
        self._transition("approve", entry_id, external_payment_id, updated_payment_info)

    def decline(self, entry_id, external_payment_id, updated_payment_info):
        self._transition("decline", entry_id, external_payment_id, updated_payment_info)

    def hold(self, entry_id, external_payment_id, updated_payment_info):
        self._transition("hold", entry_id, external_payment_id, updated_payment_info)


class InMemoryAccounts:
    """AccountDirectory over a dict."""

    def __init__(self, *records: AccountRecord):
        self._records = {r.name: r for r in records}

    def put(self, record: AccountRecord) -> None:
        self._records[record.name] = record

    def account(self, name: str) -> AccountRecord | None:
        return self._records.get(name)

    def accounts(self) -> list[AccountRecord]:
        return sorted(self._records.values(), key=lambda r: r.name)


class InMemoryUsage:
    """UsageSource over a dict keyed by (package, resource)."""

    def __init__(self, counts: dict[tuple[str, ResourceKind], int] | None = None):
        self._counts = dict(counts or {})

    def set(self, package_name: str, resource: ResourceKind, count: int) -> None:
        self._counts[(package_name, resource)] = count

    def usage(self, package_name: str, resource: ResourceKind) -> int:
        return self._counts.get((package_name, resource), 0)


class InMemoryCatalog:
    """CatalogRepository and CatalogWriter over dicts."""

    def __init__(
        self,
        definitions: list[PackageDefinition] | None = None,
        limits: list[PackageDefinitionLimit] | None = None,
        packages: list[Package] | None = None,
        monthly_charges: list[MonthlyCharge] | None = None,
    ):
        self.definitions = {d.definition_id: d for d in definitions or []}
        self.limits: dict[int, list[PackageDefinitionLimit]] = {}
        for limit in limits or []:
            self.limits.setdefault(limit.definition_id, []).append(limit)
        self.packages = {p.name: p for p in packages or []}
        self.monthly_charges = list(monthly_charges or [])
        self.snapshot_count = 0
        self.writes: list[str] = []

    def rate_catalog(self) -> RateCatalog:
        self.snapshot_count += 1
        return RateCatalog(
            definitions=self.definitions.values(),
            limits=[limit for group in self.limits.values() for limit in group],
            packages=self.packages.values(),
            monthly_charges=self.monthly_charges,
        )

    def _require(self, definition_id: int) -> PackageDefinition:
        if definition_id not in self.definitions:
            raise DefinitionNotFoundError(definition_id)
        return self.definitions[definition_id]

    def create_definition(self, definition: PackageDefinition) -> int:
        new_id = max(self.definitions, default=0) + 1
        self.definitions[new_id] = replace(definition, definition_id=new_id)
        self.writes.append("create_definition")
        return new_id

    def update_definition(self, definition: PackageDefinition) -> None:
        self._require(definition.definition_id)
        self.definitions[definition.definition_id] = definition
        self.writes.append("update_definition")

    def replace_limits(self, definition_id, limits) -> None:
        self._require(definition_id)
        self.limits[definition_id] = list(limits)
        self.writes.append("replace_limits")

    def remove_definition(self, definition_id: int) -> None:
        self._require(definition_id)
        using = [p.name for p in self.packages.values() if p.definition_id == definition_id]
        if using:
            raise DefinitionInUseError(definition_id, using)
        del self.definitions[definition_id]
        self.limits.pop(definition_id, None)
        self.writes.append("remove_definition")

    def copy_definition(self, definition_id: int) -> int:
        original = self._require(definition_id)
        new_id = max(self.definitions) + 1
        self.definitions[new_id] = replace(original, definition_id=new_id)
        self.limits[new_id] = [
            replace(limit, definition_id=new_id) for limit in self.limits.get(definition_id, [])
        ]
        self.writes.append("copy_definition")
        return new_id

    def set_definition_active(self, definition_id: int, active: bool) -> None:
        self.definitions[definition_id] = replace(self._require(definition_id), active=active)
        self.writes.append("set_definition_active")


def make_definition(
    definition_id: int = 1,
    monthly_rate: MoneyValue | None = None,
    monthly_rate_type: str = "hosting",
    name: str = "Shared Hosting",
) -> PackageDefinition:
    return PackageDefinition(
        definition_id=definition_id,
        account_owner="root",
        category="hosting",
        name=name,
        version="2024",
        display=name,
        description=f"{name} package",
        monthly_rate=monthly_rate if monthly_rate is not None else usd("20.00"),
        monthly_rate_type=monthly_rate_type,
    )


def make_package(
    name: str = "acme-web",
    account: str = "acme",
    definition_id: int = 1,
    created_at: datetime | None = None,
) -> Package:
    return Package(
        name=name,
        account=account,
        definition_id=definition_id,
        created_at=created_at or T0,
        created_by="admin",
    )
