"""
OverageEngine -- Derives monthly billing lines from live resource usage.

Responsibility:
    For every package in scope, emits the package's stored monthly charges,
    its base charge, and one overage line per metered resource whose live
    count exceeds the definition's soft limit.  Lines are never persisted by
    the engine; callers decide what to do with them.

Architecture position:
    Kernel > Services -- pure computation over collaborator snapshots.
    Reads a CatalogRepository, an AccountDirectory and a UsageSource.
    Implements MonthlyRateProvider for LedgerStore.active_balance.

Invariants enforced:
    - Every call recomputes from a fresh catalog snapshot; nothing is cached.
    - Output order is (package name, line id, type code, created time), with
      synthetic lines ordered as line id -1.
    - A metered resource with usage but no limit record, or with overage but
      no additional rate or type, aborts the whole batch.

Failure modes:
    - IncompleteMeteringError at construction when the metering catalog
      skips or repeats a resource kind.
    - MissingLimitError / MissingAdditionalRateError /
      MissingAdditionalTypeError (Configuration).
    - AccountNotFoundError / DefinitionNotFoundError (NotFound).
    ``run`` folds these into an Outcome instead of raising.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import uuid4

from billing_kernel.domain.account import AccountRecord, billing_account_of
from billing_kernel.domain.catalog import (
    MonthlyCharge,
    Package,
    PackageDefinition,
    RateCatalog,
    ResourceKind,
)
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.outcome import Outcome
from billing_kernel.domain.ports import AccountDirectory, CatalogRepository, UsageSource
from billing_kernel.domain.values import Monies, MoneyValue
from billing_kernel.exceptions import (
    AccountNotFoundError,
    IncompleteMeteringError,
    MissingAdditionalRateError,
    MissingAdditionalTypeError,
    MissingLimitError,
)
from billing_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.overage_engine")

UNIT = 1000


class LineKind(str, Enum):
    """Where a billing line came from."""

    STORED = "stored"
    BASE = "base"
    OVERAGE = "overage"


@dataclass(frozen=True, slots=True)
class MeteredResource:
    """A resource kind to meter and the label used in overage descriptions."""

    resource: ResourceKind
    label: str


DEFAULT_METERING: tuple[MeteredResource, ...] = tuple(
    MeteredResource(kind, kind.label) for kind in ResourceKind
)


def check_metering(metering: Sequence[MeteredResource]) -> tuple[MeteredResource, ...]:
    """Reject a metering catalog that skips or repeats a resource kind."""
    metering = tuple(metering)
    listed = [m.resource for m in metering]
    missing = [kind.value for kind in ResourceKind if kind not in listed]
    duplicated = sorted({kind.value for kind in listed if listed.count(kind) > 1})
    if missing or duplicated:
        raise IncompleteMeteringError(missing, duplicated)
    return metering


@dataclass(frozen=True, slots=True)
class BillingLine:
    """One monthly charge, stored or derived."""

    line_id: int | None
    account: str
    source_account: str
    package_name: str
    type_code: str
    description: str | None
    quantity: int
    rate: MoneyValue
    created_at: datetime
    created_by: str
    active: bool
    kind: LineKind
    resource: ResourceKind | None = None

    @property
    def amount(self) -> MoneyValue:
        return self.rate.multiply(self.quantity)

    def sort_key(self) -> tuple:
        return (
            self.package_name,
            self.line_id if self.line_id is not None else -1,
            self.type_code,
            self.created_at,
        )


class OverageEngine:
    """
    Computes billing lines for packages.

    Usage:
        engine = OverageEngine(catalog_repo, account_directory, usage_source)
        lines = engine.billing_lines(account="acme")
        outcome = engine.run(account="acme")
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        accounts: AccountDirectory,
        usage: UsageSource,
        metering: Sequence[MeteredResource] | None = None,
        clock: Clock | None = None,
        acting_identity: str = "billing",
    ):
        self._catalog = catalog
        self._accounts = accounts
        self._usage = usage
        self._metering = check_metering(metering) if metering is not None else DEFAULT_METERING
        self._clock = clock or SystemClock()
        self._acting_identity = acting_identity

    def billing_lines(
        self, account: str | None = None, source_account: str | None = None
    ) -> list[BillingLine]:
        """
        Billing lines for every package in scope.

        Args:
            account: Only packages whose billing account is this account.
            source_account: Only packages owned by this account.

        Raises:
            ConfigurationError: Usage exists that the catalog cannot price.
            NotFoundError: A package references a missing account or definition.
        """
        catalog = self._catalog.rate_catalog()
        now = self._clock.now()
        known: dict[str, AccountRecord | None] = {}

        def lookup(name: str) -> AccountRecord | None:
            if name not in known:
                known[name] = self._accounts.account(name)
            return known[name]

        lines: list[BillingLine] = []
        for package in catalog.packages:
            if source_account is not None and package.account != source_account:
                continue
            owner = lookup(package.account)
            if owner is None:
                raise AccountNotFoundError(package.account)
            billing = billing_account_of(package.account, lookup)
            if account is not None and billing.name != account:
                continue
            with LogContext.bind(package=package.name):
                lines.extend(
                    self._package_lines(catalog, package, owner, billing.name, now)
                )

        lines.sort(key=BillingLine.sort_key)
        return lines

    def _package_lines(
        self,
        catalog: RateCatalog,
        package: Package,
        owner: AccountRecord,
        billing_account: str,
        now: datetime,
    ) -> list[BillingLine]:
        lines = [
            self._stored_line(charge, package)
            for charge in catalog.monthly_charges(package.name)
        ]
        definition = catalog.definition(package.definition_id)
        active = not owner.is_canceled

        if not definition.monthly_rate.is_zero:
            lines.append(
                BillingLine(
                    line_id=None,
                    account=billing_account,
                    source_account=package.account,
                    package_name=package.name,
                    type_code=definition.monthly_rate_type,
                    description=None,
                    quantity=UNIT,
                    rate=definition.monthly_rate,
                    created_at=now,
                    created_by=self._acting_identity,
                    active=active,
                    kind=LineKind.BASE,
                )
            )

        for metered in self._metering:
            line = self._overage_line(
                catalog, package, definition, metered, billing_account, active, now
            )
            if line is not None:
                lines.append(line)
        return lines

    def _stored_line(self, charge: MonthlyCharge, package: Package) -> BillingLine:
        return BillingLine(
            line_id=charge.charge_id,
            account=charge.account,
            source_account=package.account,
            package_name=charge.package_name,
            type_code=charge.type_code,
            description=charge.description,
            quantity=charge.quantity,
            rate=charge.rate,
            created_at=charge.created_at,
            created_by=charge.created_by,
            active=charge.active,
            kind=LineKind.STORED,
        )

    def _overage_line(
        self,
        catalog: RateCatalog,
        package: Package,
        definition: PackageDefinition,
        metered: MeteredResource,
        billing_account: str,
        active: bool,
        now: datetime,
    ) -> BillingLine | None:
        resource = metered.resource
        limit = catalog.resolve(definition.definition_id, resource)
        usage = self._usage.usage(package.name, resource)

        if limit is None:
            if usage == 0:
                return None
            raise MissingLimitError(
                package.name, definition.definition_id, resource.value, usage
            )
        if limit.is_soft_unbounded or usage <= limit.soft_limit:
            return None
        if limit.additional_rate is None:
            raise MissingAdditionalRateError(
                package.name, definition.definition_id, resource.value
            )
        if limit.additional_type is None:
            raise MissingAdditionalTypeError(
                package.name, definition.definition_id, resource.value
            )

        return BillingLine(
            line_id=None,
            account=billing_account,
            source_account=package.account,
            package_name=package.name,
            type_code=limit.additional_type,
            description=(
                f"Additional {metered.label} "
                f"({limit.soft_limit} included with package, have {usage})"
            ),
            quantity=(usage - limit.soft_limit) * UNIT,
            rate=limit.additional_rate,
            created_at=now,
            created_by=self._acting_identity,
            active=active,
            kind=LineKind.OVERAGE,
            resource=resource,
        )

    def run(
        self, account: str | None = None, source_account: str | None = None
    ) -> Outcome[list[BillingLine]]:
        """``billing_lines`` as a tagged Outcome, with run logging."""
        run_id = str(uuid4())
        with LogContext.bind(correlation_id=run_id, account=account):
            logger.info(
                "overage_run_started",
                extra={"source_account": source_account},
            )
            outcome = Outcome.capture(
                self.billing_lines, account=account, source_account=source_account
            )
            if outcome.is_success:
                logger.info(
                    "overage_run_completed",
                    extra={"line_count": len(outcome.value)},
                )
            else:
                logger.warning(
                    "overage_run_failed",
                    extra={
                        "status": outcome.status.value,
                        "error_code": outcome.error_code,
                        "error_message": outcome.error_message,
                    },
                )
            return outcome

    # -- MonthlyRateProvider -------------------------------------------------

    def monthly_rate(self, account: str) -> Monies:
        """Sum of the active lines billed to ``account``."""
        return Monies(
            line.amount for line in self.billing_lines(account=account) if line.active
        )

    def source_monthly_rate(self, source_account: str) -> Monies:
        """Sum of the active lines for packages owned by ``source_account``."""
        return Monies(
            line.amount
            for line in self.billing_lines(source_account=source_account)
            if line.active
        )
