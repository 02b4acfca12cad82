"""
Catalog -- Packages, package definitions, resource limits and stored charges.

Responsibility:
    Holds an immutable snapshot of the rate catalog and answers the lookups
    the overage engine and the catalog write path need: which limit applies
    to a (definition, resource) pair, which packages use a definition, and
    whether a definition may be removed.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Snapshots are built
    by a CatalogRepository collaborator and replaced wholesale after every
    catalog write.

Invariants enforced:
    - Bounded limits are non-negative ints; soft <= hard when both bounded.
    - UNBOUNDED is an enum member, never a magic integer.
    - setup_fee and setup_fee_type are both present or both absent.

Failure modes:
    - DefinitionNotFoundError / PackageNotFoundError on missing lookups.
    - InvalidLimitError / ValidationError on malformed rows.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from billing_kernel.domain.values import MoneyValue
from billing_kernel.exceptions import (
    DefinitionNotFoundError,
    InvalidLimitError,
    InvalidQuantityError,
    PackageNotFoundError,
    ValidationError,
)


class ResourceKind(str, Enum):
    """Resource kinds metered against package limits, in billing order."""

    WEB_SERVER_COUNT = "web-server-count"
    IP_ADDRESS_COUNT = "ip-address-count"
    JAVA_VM_COUNT = "java-vm-count"
    MYSQL_REPLICA_COUNT = "mysql-replica-count"
    MAILBOX_COUNT = "mailbox-count"
    WEB_SITE_COUNT = "web-site-count"
    USER_ACCOUNT_COUNT = "user-account-count"

    @property
    def label(self) -> str:
        """Human label used in overage descriptions."""
        return _RESOURCE_LABELS[self]


_RESOURCE_LABELS = {
    ResourceKind.WEB_SERVER_COUNT: "HTTP Servers",
    ResourceKind.IP_ADDRESS_COUNT: "IP Addresses",
    ResourceKind.JAVA_VM_COUNT: "Java Virtual Machines",
    ResourceKind.MYSQL_REPLICA_COUNT: "MySQL Replications",
    ResourceKind.MAILBOX_COUNT: "Email Inboxes",
    ResourceKind.WEB_SITE_COUNT: "Web Sites",
    ResourceKind.USER_ACCOUNT_COUNT: "Shell Accounts",
}


class Unbounded(Enum):
    """Marker for a limit with no ceiling."""

    UNBOUNDED = "unbounded"

    def __str__(self) -> str:
        return "unbounded"


UNBOUNDED = Unbounded.UNBOUNDED

Limit = int | Unbounded


def _check_limit(resource: str, name: str, value: object) -> None:
    if value is UNBOUNDED:
        return
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidLimitError(resource, f"{name} must be an int or UNBOUNDED, got {value!r}")
    if value < 0:
        raise InvalidLimitError(resource, f"{name} must be non-negative, got {value}")


@dataclass(frozen=True, slots=True)
class PackageDefinition:
    """Reusable pricing template: base monthly rate plus per-resource limits."""

    definition_id: int
    account_owner: str
    category: str
    name: str
    version: str
    display: str
    description: str
    monthly_rate: MoneyValue
    monthly_rate_type: str
    setup_fee: MoneyValue | None = None
    setup_fee_type: str | None = None
    active: bool = True
    approved: bool = False

    def __post_init__(self) -> None:
        if (self.setup_fee is None) != (self.setup_fee_type is None):
            raise ValidationError(
                f"Definition {self.definition_id}: setup_fee and setup_fee_type "
                "must both be set or both be absent"
            )


@dataclass(frozen=True, slots=True)
class PackageDefinitionLimit:
    """Soft/hard threshold and overage pricing for one resource of one definition."""

    definition_id: int
    resource: ResourceKind
    soft_limit: Limit = UNBOUNDED
    hard_limit: Limit = UNBOUNDED
    additional_rate: MoneyValue | None = None
    additional_type: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.resource, ResourceKind):
            try:
                object.__setattr__(self, "resource", ResourceKind(self.resource))
            except ValueError as e:
                raise InvalidLimitError(str(self.resource), "unknown resource kind") from e
        _check_limit(self.resource.value, "soft_limit", self.soft_limit)
        _check_limit(self.resource.value, "hard_limit", self.hard_limit)
        if (
            self.soft_limit is not UNBOUNDED
            and self.hard_limit is not UNBOUNDED
            and self.soft_limit > self.hard_limit
        ):
            raise InvalidLimitError(
                self.resource.value,
                f"soft_limit {self.soft_limit} exceeds hard_limit {self.hard_limit}",
            )

    @property
    def is_soft_unbounded(self) -> bool:
        return self.soft_limit is UNBOUNDED


@dataclass(frozen=True, slots=True)
class Package:
    """Named bundle of hosting resources billed under one definition."""

    name: str
    account: str
    definition_id: int
    created_at: datetime
    created_by: str
    disabled: bool = False


@dataclass(frozen=True, slots=True)
class MonthlyCharge:
    """Recurring charge stored against a package."""

    charge_id: int
    account: str
    package_name: str
    type_code: str
    description: str | None
    quantity: int
    rate: MoneyValue
    created_at: datetime
    created_by: str
    active: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise InvalidQuantityError("quantity", self.quantity)


@dataclass(frozen=True, slots=True)
class CannotRemoveReason:
    """Why a catalog row cannot be removed, with the rows that block it."""

    reason: str
    packages: tuple[str, ...]


class RateCatalog:
    """
    Immutable snapshot of the rate catalog.

    Contract:
        Built once from catalog rows; every lookup reads the same rows.
        Limits are kept per definition in the order supplied and resolved by
        a linear scan, so a catalog snapshot never needs an index rebuild.
    """

    __slots__ = ("_definitions", "_limits", "_packages", "_monthly_charges")

    def __init__(
        self,
        definitions: Iterable[PackageDefinition] = (),
        limits: Iterable[PackageDefinitionLimit] = (),
        packages: Iterable[Package] = (),
        monthly_charges: Iterable[MonthlyCharge] = (),
    ):
        self._definitions: dict[int, PackageDefinition] = {
            d.definition_id: d for d in definitions
        }
        grouped: dict[int, list[PackageDefinitionLimit]] = {}
        for limit in limits:
            grouped.setdefault(limit.definition_id, []).append(limit)
        self._limits = {k: tuple(v) for k, v in grouped.items()}
        self._packages: dict[str, Package] = {p.name: p for p in packages}
        self._monthly_charges = tuple(monthly_charges)

    # -- lookups -------------------------------------------------------------

    def resolve(
        self, definition_id: int, resource: ResourceKind
    ) -> PackageDefinitionLimit | None:
        """The limit for ``resource`` under ``definition_id``, or None."""
        for limit in self._limits.get(definition_id, ()):
            if limit.resource is resource:
                return limit
        return None

    def definition(self, definition_id: int) -> PackageDefinition:
        try:
            return self._definitions[definition_id]
        except KeyError:
            raise DefinitionNotFoundError(definition_id) from None

    def package(self, name: str) -> Package:
        try:
            return self._packages[name]
        except KeyError:
            raise PackageNotFoundError(name) from None

    def limits_for(self, definition_id: int) -> tuple[PackageDefinitionLimit, ...]:
        return self._limits.get(definition_id, ())

    def packages_using(self, definition_id: int) -> tuple[Package, ...]:
        return tuple(
            p for p in self._packages.values() if p.definition_id == definition_id
        )

    def monthly_charges(
        self, package_name: str | None = None
    ) -> tuple[MonthlyCharge, ...]:
        if package_name is None:
            return self._monthly_charges
        return tuple(c for c in self._monthly_charges if c.package_name == package_name)

    def cannot_remove_reasons(self, definition_id: int) -> list[CannotRemoveReason]:
        """Reasons a definition may not be removed; empty when removal is allowed."""
        self.definition(definition_id)
        using = self.packages_using(definition_id)
        if not using:
            return []
        noun = "package" if len(using) == 1 else "packages"
        return [
            CannotRemoveReason(
                f"Used by {len(using)} {noun}", tuple(p.name for p in using)
            )
        ]

    @property
    def definitions(self) -> tuple[PackageDefinition, ...]:
        return tuple(self._definitions.values())

    @property
    def packages(self) -> tuple[Package, ...]:
        return tuple(self._packages.values())
