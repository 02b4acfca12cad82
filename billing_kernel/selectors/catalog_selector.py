"""
Module: billing_kernel.selectors.catalog_selector
Responsibility: Read-only catalog and usage queries.  CatalogSelector builds
    RateCatalog snapshots; UsageSelector is the SQL UsageSource.
Architecture position: Kernel > Selectors.
"""

from sqlalchemy import select

from billing_kernel.domain.catalog import RateCatalog, ResourceKind
from billing_kernel.models.catalog import (
    MonthlyChargeRow,
    PackageDefinitionLimitRow,
    PackageDefinitionRow,
    PackageRow,
    ResourceUsageRow,
)
from billing_kernel.selectors.base import BaseSelector


class CatalogSelector(BaseSelector[PackageDefinitionRow]):
    """Reads the whole rate catalog into one immutable snapshot."""

    def rate_catalog(self) -> RateCatalog:
        definitions = self.session.scalars(
            select(PackageDefinitionRow).order_by(PackageDefinitionRow.id)
        )
        limits = self.session.scalars(
            select(PackageDefinitionLimitRow).order_by(
                PackageDefinitionLimitRow.definition_id, PackageDefinitionLimitRow.id
            )
        )
        packages = self.session.scalars(select(PackageRow).order_by(PackageRow.name))
        charges = self.session.scalars(
            select(MonthlyChargeRow).order_by(MonthlyChargeRow.id)
        )
        return RateCatalog(
            definitions=[row.to_domain() for row in definitions],
            limits=[row.to_domain() for row in limits],
            packages=[row.to_domain() for row in packages],
            monthly_charges=[row.to_domain() for row in charges],
        )


class UsageSelector(BaseSelector[ResourceUsageRow]):
    """Live resource counts; a missing row counts as zero."""

    def usage(self, package_name: str, resource: ResourceKind) -> int:
        count = self.session.scalars(
            select(ResourceUsageRow.count).where(
                ResourceUsageRow.package_name == package_name,
                ResourceUsageRow.resource == resource.value,
            )
        ).one_or_none()
        return count or 0
