"""
SQL writers -- LedgerWriter and CatalogWriter over a SQLAlchemy Session.

Responsibility:
    Persist ledger appends, confirmation transitions and catalog changes in
    the caller's transaction.  Each write re-checks the domain rule it
    depends on against the row it is about to change, so a writer used
    without the LedgerService / CatalogService front doors still cannot
    break the ledger state machine or orphan a package.

Architecture position:
    Kernel > Services -- SQL collaborator, write side.  Flush only.

Failure modes:
    - EntryNotFoundError / DefinitionNotFoundError for unknown ids.
    - InvalidStateTransitionError for transitions out of terminal states.
    - DefinitionInUseError when removing a definition packages reference.
"""

from collections.abc import Sequence

from sqlalchemy import delete, func, select

from billing_kernel.domain.catalog import PackageDefinition, PackageDefinitionLimit
from billing_kernel.domain.ledger_entry import LedgerAppendRequest
from billing_kernel.exceptions import (
    DefinitionInUseError,
    DefinitionNotFoundError,
    EntryNotFoundError,
)
from billing_kernel.logging_config import get_logger
from billing_kernel.models.catalog import (
    PackageDefinitionLimitRow,
    PackageDefinitionRow,
    PackageRow,
)
from billing_kernel.models.ledger import LedgerEntryRow
from billing_kernel.services.base import BaseService

logger = get_logger("services.sql_writers")


class SqlLedgerWriter(BaseService[LedgerEntryRow]):
    """Appends ledger rows and applies confirmation transitions."""

    def append_entry(self, request: LedgerAppendRequest) -> int:
        row = LedgerEntryRow.from_request(request)
        self.session.add(row)
        self.session.flush()
        logger.debug("ledger_row_inserted", extra={"entry_id": row.id})
        return row.id

    def approve(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None:
        self._transition("approve", entry_id, external_payment_id, updated_payment_info)

    def decline(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None:
        self._transition("decline", entry_id, external_payment_id, updated_payment_info)

    def hold(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None:
        self._transition("hold", entry_id, external_payment_id, updated_payment_info)

    def _transition(
        self,
        action: str,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> None:
        row = self.session.get(LedgerEntryRow, entry_id)
        if row is None:
            raise EntryNotFoundError(entry_id)
        successor = getattr(row.to_domain(), action)(
            external_payment_id, updated_payment_info
        )
        row.apply(successor)
        self.session.flush()


class SqlCatalogWriter(BaseService[PackageDefinitionRow]):
    """Administrative writes to definitions and their limit sets."""

    def _definition_row(self, definition_id: int) -> PackageDefinitionRow:
        row = self.session.get(PackageDefinitionRow, definition_id)
        if row is None:
            raise DefinitionNotFoundError(definition_id)
        return row

    def create_definition(self, definition: PackageDefinition) -> int:
        row = PackageDefinitionRow.from_domain(definition)
        self.session.add(row)
        self.session.flush()
        return row.id

    def update_definition(self, definition: PackageDefinition) -> None:
        self._definition_row(definition.definition_id).assign(definition)
        self.session.flush()

    def replace_limits(
        self, definition_id: int, limits: Sequence[PackageDefinitionLimit]
    ) -> None:
        self._definition_row(definition_id)
        self.session.execute(
            delete(PackageDefinitionLimitRow).where(
                PackageDefinitionLimitRow.definition_id == definition_id
            )
        )
        self.session.add_all(
            PackageDefinitionLimitRow.from_domain(limit, definition_id) for limit in limits
        )
        self.session.flush()

    def remove_definition(self, definition_id: int) -> None:
        row = self._definition_row(definition_id)
        packages = list(
            self.session.scalars(
                select(PackageRow.name).where(PackageRow.definition_id == definition_id)
            )
        )
        if packages:
            raise DefinitionInUseError(definition_id, packages)
        self.session.execute(
            delete(PackageDefinitionLimitRow).where(
                PackageDefinitionLimitRow.definition_id == definition_id
            )
        )
        self.session.delete(row)
        self.session.flush()

    def copy_definition(self, definition_id: int) -> int:
        original = self._definition_row(definition_id).to_domain()
        copy = PackageDefinitionRow.from_domain(original)
        self.session.add(copy)
        self.session.flush()
        limits = self.session.scalars(
            select(PackageDefinitionLimitRow).where(
                PackageDefinitionLimitRow.definition_id == definition_id
            )
        ).all()
        self.session.add_all(
            PackageDefinitionLimitRow.from_domain(limit.to_domain(), copy.id)
            for limit in limits
        )
        self.session.flush()
        return copy.id

    def set_definition_active(self, definition_id: int, active: bool) -> None:
        self._definition_row(definition_id).active = active
        self.session.flush()

    def limit_count(self, definition_id: int) -> int:
        return self.session.scalar(
            select(func.count())
            .select_from(PackageDefinitionLimitRow)
            .where(
                PackageDefinitionLimitRow.definition_id == definition_id
            )
        )
