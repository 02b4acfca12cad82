"""
Module: billing_kernel.models.account
Responsibility: ORM persistence for the account facts billing reads.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.db.types import ShortCode
from billing_kernel.domain.account import AccountRecord


class AccountRow(Base):
    """A hosting account, as far as billing is concerned."""

    __tablename__ = "accounts"

    __table_args__ = (UniqueConstraint("name", name="uq_account_name"),)

    name: Mapped[ShortCode] = mapped_column(nullable=False)
    parent: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Charges are paid by the parent account
    bill_parent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    canceled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    def __repr__(self) -> str:
        return f"<AccountRow {self.name}>"

    @classmethod
    def from_domain(cls, record: AccountRecord) -> AccountRow:
        return cls(
            name=record.name,
            parent=record.parent,
            bill_parent=record.bill_parent,
            canceled_at=record.canceled_at,
            cancel_reason=record.cancel_reason,
        )

    def to_domain(self) -> AccountRecord:
        return AccountRecord(
            name=self.name,
            parent=self.parent,
            bill_parent=self.bill_parent,
            canceled_at=self.canceled_at,
            cancel_reason=self.cancel_reason,
        )
