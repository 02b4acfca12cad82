"""
Module: billing_kernel.models.ledger
Responsibility: ORM persistence for ledger entries.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - Rows are never deleted.  Only state and payment columns change after
      insert, and only through SqlLedgerWriter transitions.
    - The rate is stored as (currency, unscaled, scale); the amount is never
      stored, it is always rate x quantity.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.db.types import CurrencyCode, LongText, Scale, ShortCode, StateCode, Unscaled
from billing_kernel.domain.ledger_entry import (
    ConfirmationState,
    LedgerAppendRequest,
    LedgerEntry,
    PaymentMetadata,
)
from billing_kernel.domain.values import MoneyValue


class LedgerEntryRow(Base):
    """One ledger entry row; ``id`` is the entry id."""

    __tablename__ = "ledger_entries"

    __table_args__ = (
        Index("idx_ledger_entries_time", "time", "id"),
        Index("idx_ledger_entries_account", "account"),
        Index("idx_ledger_entries_source", "source_account"),
    )

    time: Mapped[datetime] = mapped_column(nullable=False)
    account: Mapped[ShortCode] = mapped_column(nullable=False)
    source_account: Mapped[ShortCode] = mapped_column(nullable=False)
    administrator: Mapped[ShortCode] = mapped_column(nullable=False)
    type_code: Mapped[ShortCode] = mapped_column(nullable=False)
    description: Mapped[LongText] = mapped_column(nullable=False, default="")
    quantity: Mapped[Unscaled] = mapped_column(nullable=False)

    rate_currency: Mapped[CurrencyCode] = mapped_column(nullable=False)
    rate_unscaled: Mapped[Unscaled] = mapped_column(nullable=False)
    rate_scale: Mapped[Scale] = mapped_column(nullable=False)

    payment_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_info: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    processor: Mapped[str | None] = mapped_column(String(64), nullable=True)
    external_payment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    state: Mapped[StateCode] = mapped_column(
        nullable=False, default=ConfirmationState.PENDING.value
    )

    def __repr__(self) -> str:
        return f"<LedgerEntryRow {self.id}: {self.account} {self.type_code} {self.state}>"

    @classmethod
    def from_request(cls, request: LedgerAppendRequest) -> LedgerEntryRow:
        """Create a row ready for session.add(); the database assigns the id."""
        return cls(
            time=request.time,
            account=request.account,
            source_account=request.source_account,
            administrator=request.administrator,
            type_code=request.type_code,
            description=request.description,
            quantity=request.quantity,
            rate_currency=request.rate.currency,
            rate_unscaled=request.rate.unscaled,
            rate_scale=request.rate.scale,
            payment_type=request.payment.payment_type,
            payment_info=request.payment.payment_info,
            processor=request.payment.processor,
            external_payment_id=request.payment.external_payment_id,
            state=request.initial_state.value,
        )

    def to_domain(self) -> LedgerEntry:
        return LedgerEntry(
            entry_id=self.id,
            time=self.time,
            account=self.account,
            source_account=self.source_account,
            administrator=self.administrator,
            type_code=self.type_code,
            description=self.description,
            quantity=self.quantity,
            rate=MoneyValue(self.rate_currency, self.rate_unscaled, self.rate_scale),
            payment=PaymentMetadata(
                payment_type=self.payment_type,
                payment_info=self.payment_info,
                processor=self.processor,
                external_payment_id=self.external_payment_id,
            ),
            state=ConfirmationState.from_code(self.state),
        )

    def apply(self, entry: LedgerEntry) -> None:
        """Copy a transitioned entry's state and payment metadata onto the row."""
        self.state = entry.state.value
        self.payment_info = entry.payment.payment_info
        self.external_payment_id = entry.payment.external_payment_id
