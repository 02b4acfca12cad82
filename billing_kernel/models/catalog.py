"""
Module: billing_kernel.models.catalog
Responsibility: ORM persistence for the rate catalog -- package definitions,
    their per-resource limits, packages, stored monthly charges -- and the
    live resource counts the overage engine meters.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - At most one limit per (definition, resource) (uq_limit_resource).
    - A NULL soft or hard limit column means UNBOUNDED.
    - Money columns are (currency, unscaled, scale) triples, all NULL when the
      amount is absent.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base, Identifier
from billing_kernel.db.types import (
    CurrencyCode,
    LongText,
    Scale,
    ShortCode,
    Unscaled,
    money_from_columns,
    money_to_columns,
)
from billing_kernel.domain.catalog import (
    UNBOUNDED,
    Limit,
    MonthlyCharge,
    Package,
    PackageDefinition,
    PackageDefinitionLimit,
    ResourceKind,
)


def _limit_to_column(limit: Limit) -> int | None:
    return None if limit is UNBOUNDED else limit


def _limit_from_column(value: int | None) -> Limit:
    return UNBOUNDED if value is None else value


class PackageDefinitionRow(Base):
    """Reusable pricing template."""

    __tablename__ = "package_definitions"

    account_owner: Mapped[ShortCode] = mapped_column(nullable=False)
    category: Mapped[ShortCode] = mapped_column(nullable=False)
    name: Mapped[ShortCode] = mapped_column(nullable=False)
    version: Mapped[ShortCode] = mapped_column(nullable=False)
    display: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[LongText] = mapped_column(nullable=False, default="")

    setup_fee_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    setup_fee_unscaled: Mapped[int | None] = mapped_column(nullable=True)
    setup_fee_scale: Mapped[int | None] = mapped_column(nullable=True)
    setup_fee_type: Mapped[str | None] = mapped_column(String(64), nullable=True)

    monthly_rate_currency: Mapped[CurrencyCode] = mapped_column(nullable=False)
    monthly_rate_unscaled: Mapped[Unscaled] = mapped_column(nullable=False)
    monthly_rate_scale: Mapped[Scale] = mapped_column(nullable=False)
    monthly_rate_type: Mapped[ShortCode] = mapped_column(nullable=False)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<PackageDefinitionRow {self.id}: {self.category}/{self.name} {self.version}>"

    def assign(self, definition: PackageDefinition) -> None:
        """Overwrite every column from ``definition`` (the id is left alone)."""
        self.account_owner = definition.account_owner
        self.category = definition.category
        self.name = definition.name
        self.version = definition.version
        self.display = definition.display
        self.description = definition.description
        (
            self.setup_fee_currency,
            self.setup_fee_unscaled,
            self.setup_fee_scale,
        ) = money_to_columns(definition.setup_fee)
        self.setup_fee_type = definition.setup_fee_type
        (
            self.monthly_rate_currency,
            self.monthly_rate_unscaled,
            self.monthly_rate_scale,
        ) = money_to_columns(definition.monthly_rate)
        self.monthly_rate_type = definition.monthly_rate_type
        self.active = definition.active
        self.approved = definition.approved

    @classmethod
    def from_domain(cls, definition: PackageDefinition) -> PackageDefinitionRow:
        row = cls()
        row.assign(definition)
        return row

    def to_domain(self) -> PackageDefinition:
        return PackageDefinition(
            definition_id=self.id,
            account_owner=self.account_owner,
            category=self.category,
            name=self.name,
            version=self.version,
            display=self.display,
            description=self.description,
            setup_fee=money_from_columns(
                self.setup_fee_currency, self.setup_fee_unscaled, self.setup_fee_scale
            ),
            setup_fee_type=self.setup_fee_type,
            monthly_rate=money_from_columns(
                self.monthly_rate_currency,
                self.monthly_rate_unscaled,
                self.monthly_rate_scale,
            ),
            monthly_rate_type=self.monthly_rate_type,
            active=self.active,
            approved=self.approved,
        )


class PackageDefinitionLimitRow(Base):
    """Limit and overage pricing for one resource under one definition."""

    __tablename__ = "package_definition_limits"

    __table_args__ = (
        UniqueConstraint("definition_id", "resource", name="uq_limit_resource"),
    )

    definition_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("package_definitions.id"), nullable=False
    )
    resource: Mapped[ShortCode] = mapped_column(nullable=False)

    # NULL means unbounded
    soft_limit: Mapped[int | None] = mapped_column(nullable=True)
    hard_limit: Mapped[int | None] = mapped_column(nullable=True)

    additional_rate_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    additional_rate_unscaled: Mapped[int | None] = mapped_column(nullable=True)
    additional_rate_scale: Mapped[int | None] = mapped_column(nullable=True)
    additional_type: Mapped[str | None] = mapped_column(String(64), nullable=True)

    @classmethod
    def from_domain(
        cls, limit: PackageDefinitionLimit, definition_id: int | None = None
    ) -> PackageDefinitionLimitRow:
        currency, unscaled, scale = money_to_columns(limit.additional_rate)
        return cls(
            definition_id=definition_id if definition_id is not None else limit.definition_id,
            resource=limit.resource.value,
            soft_limit=_limit_to_column(limit.soft_limit),
            hard_limit=_limit_to_column(limit.hard_limit),
            additional_rate_currency=currency,
            additional_rate_unscaled=unscaled,
            additional_rate_scale=scale,
            additional_type=limit.additional_type,
        )

    def to_domain(self) -> PackageDefinitionLimit:
        return PackageDefinitionLimit(
            definition_id=self.definition_id,
            resource=ResourceKind(self.resource),
            soft_limit=_limit_from_column(self.soft_limit),
            hard_limit=_limit_from_column(self.hard_limit),
            additional_rate=money_from_columns(
                self.additional_rate_currency,
                self.additional_rate_unscaled,
                self.additional_rate_scale,
            ),
            additional_type=self.additional_type,
        )


class PackageRow(Base):
    """A package owned by an account and billed under a definition."""

    __tablename__ = "packages"

    __table_args__ = (
        UniqueConstraint("name", name="uq_package_name"),
        Index("idx_packages_definition", "definition_id"),
    )

    name: Mapped[ShortCode] = mapped_column(nullable=False)
    account: Mapped[ShortCode] = mapped_column(nullable=False)
    definition_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("package_definitions.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    created_by: Mapped[ShortCode] = mapped_column(nullable=False)
    disabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @classmethod
    def from_domain(cls, package: Package) -> PackageRow:
        return cls(
            name=package.name,
            account=package.account,
            definition_id=package.definition_id,
            created_at=package.created_at,
            created_by=package.created_by,
            disabled=package.disabled,
        )

    def to_domain(self) -> Package:
        return Package(
            name=self.name,
            account=self.account,
            definition_id=self.definition_id,
            created_at=self.created_at,
            created_by=self.created_by,
            disabled=self.disabled,
        )


class MonthlyChargeRow(Base):
    """A stored recurring charge; ``id`` is the charge id."""

    __tablename__ = "monthly_charges"

    account: Mapped[ShortCode] = mapped_column(nullable=False)
    package_name: Mapped[ShortCode] = mapped_column(nullable=False)
    type_code: Mapped[ShortCode] = mapped_column(nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    quantity: Mapped[Unscaled] = mapped_column(nullable=False)
    rate_currency: Mapped[CurrencyCode] = mapped_column(nullable=False)
    rate_unscaled: Mapped[Unscaled] = mapped_column(nullable=False)
    rate_scale: Mapped[Scale] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    created_by: Mapped[ShortCode] = mapped_column(nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_domain(self) -> MonthlyCharge:
        return MonthlyCharge(
            charge_id=self.id,
            account=self.account,
            package_name=self.package_name,
            type_code=self.type_code,
            description=self.description,
            quantity=self.quantity,
            rate=money_from_columns(self.rate_currency, self.rate_unscaled, self.rate_scale),
            created_at=self.created_at,
            created_by=self.created_by,
            active=self.active,
        )


class ResourceUsageRow(Base):
    """Live count of one resource kind for one package."""

    __tablename__ = "resource_usage"

    __table_args__ = (
        UniqueConstraint("package_name", "resource", name="uq_usage_package_resource"),
    )

    package_name: Mapped[ShortCode] = mapped_column(nullable=False)
    resource: Mapped[ShortCode] = mapped_column(nullable=False)
    count: Mapped[int] = mapped_column(nullable=False, default=0)
