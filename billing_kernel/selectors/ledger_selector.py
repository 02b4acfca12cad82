"""
Module: billing_kernel.selectors.ledger_selector
Responsibility: Read-only ledger and account queries.  LedgerSelector is the
    SQL LedgerSnapshotSource; AccountSelector is the SQL AccountDirectory.
Architecture position: Kernel > Selectors.
"""

from collections.abc import Sequence

from sqlalchemy import select

from billing_kernel.domain.account import AccountRecord
from billing_kernel.domain.ledger_entry import LedgerEntry
from billing_kernel.models.account import AccountRow
from billing_kernel.models.ledger import LedgerEntryRow
from billing_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector[LedgerEntryRow]):
    """Ledger snapshot in table order (time ascending, then id)."""

    def ledger_entries(self) -> Sequence[LedgerEntry]:
        rows = self.session.scalars(
            select(LedgerEntryRow).order_by(LedgerEntryRow.time, LedgerEntryRow.id)
        )
        return [row.to_domain() for row in rows]

    def entry(self, entry_id: int) -> LedgerEntry | None:
        row = self.session.get(LedgerEntryRow, entry_id)
        return row.to_domain() if row is not None else None


class AccountSelector(BaseSelector[AccountRow]):
    """Account directory backed by the accounts table."""

    def account(self, name: str) -> AccountRecord | None:
        row = self.session.scalars(
            select(AccountRow).where(AccountRow.name == name)
        ).one_or_none()
        return row.to_domain() if row is not None else None

    def accounts(self) -> Sequence[AccountRecord]:
        rows = self.session.scalars(select(AccountRow).order_by(AccountRow.name))
        return [row.to_domain() for row in rows]
