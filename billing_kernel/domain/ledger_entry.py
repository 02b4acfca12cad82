"""
LedgerEntry -- Immutable accounting record with a confirmation state.

Responsibility:
    Defines the ledger entry value object, its payment metadata and the
    PENDING / CONFIRMED / FAILED state machine.  Transitions never mutate an
    entry; they return the successor entry the writer should persist.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ``amount == rate.multiply(quantity)``.
    - CONFIRMED and FAILED are terminal.  Only PENDING entries accept
      ``approve``, ``decline`` or ``hold``.
    - A transition changes the state and payment metadata only.

Failure modes:
    - InvalidStateTransitionError on any transition out of a terminal state.
    - InvalidQuantityError / ValidationError on malformed construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from billing_kernel.domain.values import MoneyValue
from billing_kernel.exceptions import (
    InvalidQuantityError,
    InvalidStateTransitionError,
    ValidationError,
)


class ConfirmationState(str, Enum):
    """Payment confirmation state, stored as its single-letter code."""

    PENDING = "W"
    CONFIRMED = "Y"
    FAILED = "N"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self is not ConfirmationState.PENDING

    @classmethod
    def from_code(cls, code: str) -> ConfirmationState:
        try:
            return cls(code)
        except ValueError as e:
            raise ValidationError(f"Unknown confirmation state code: {code!r}") from e


_STATE_LABELS = {
    ConfirmationState.PENDING: "Waiting",
    ConfirmationState.CONFIRMED: "Confirmed",
    ConfirmationState.FAILED: "Failed",
}


@dataclass(frozen=True, slots=True)
class PaymentMetadata:
    """How an entry is being paid, if it is a payment at all."""

    payment_type: str | None = None
    payment_info: str | None = None
    processor: str | None = None
    external_payment_id: str | None = None


def _check_entry_fields(quantity: object, rate: object) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise InvalidQuantityError("quantity", quantity)
    if not isinstance(rate, MoneyValue):
        raise ValidationError(f"rate must be a MoneyValue, got {type(rate).__name__}")


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """
    One charge, credit or payment on an account.

    Contract:
        Created once by the ledger writer; immutable afterwards except for
        confirmation transitions, which yield a new instance.

    Guarantees:
        - ``quantity`` is in thousandths of a unit.
        - ``amount`` is in the rate's currency at the rate's scale.
    """

    entry_id: int
    time: datetime
    account: str
    source_account: str
    administrator: str
    type_code: str
    description: str
    quantity: int
    rate: MoneyValue
    payment: PaymentMetadata = field(default_factory=PaymentMetadata)
    state: ConfirmationState = ConfirmationState.PENDING

    def __post_init__(self) -> None:
        _check_entry_fields(self.quantity, self.rate)

    @property
    def amount(self) -> MoneyValue:
        return self.rate.multiply(self.quantity)

    @property
    def currency(self) -> str:
        return self.rate.currency

    @property
    def is_confirmed(self) -> bool:
        return self.state is ConfirmationState.CONFIRMED

    @property
    def is_failed(self) -> bool:
        return self.state is ConfirmationState.FAILED

    @property
    def is_pending(self) -> bool:
        return self.state is ConfirmationState.PENDING

    def approve(
        self, external_payment_id: str | None, updated_payment_info: str | None = None
    ) -> LedgerEntry:
        """PENDING -> CONFIRMED."""
        return self._transition(
            "approve",
            ConfirmationState.CONFIRMED,
            external_payment_id,
            updated_payment_info,
        )

    def decline(
        self, external_payment_id: str | None, updated_payment_info: str | None = None
    ) -> LedgerEntry:
        """PENDING -> FAILED."""
        return self._transition(
            "decline",
            ConfirmationState.FAILED,
            external_payment_id,
            updated_payment_info,
        )

    def hold(
        self, external_payment_id: str | None, updated_payment_info: str | None = None
    ) -> LedgerEntry:
        """PENDING -> PENDING, recording new payment metadata."""
        return self._transition(
            "hold",
            ConfirmationState.PENDING,
            external_payment_id,
            updated_payment_info,
        )

    def _transition(
        self,
        action: str,
        target: ConfirmationState,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> LedgerEntry:
        if self.state.is_terminal:
            raise InvalidStateTransitionError(self.entry_id, self.state.label, action)
        payment = replace(
            self.payment,
            external_payment_id=external_payment_id,
            payment_info=(
                updated_payment_info
                if updated_payment_info is not None
                else self.payment.payment_info
            ),
        )
        return replace(self, state=target, payment=payment)

    def __str__(self) -> str:
        units = Decimal(self.quantity).scaleb(-3)
        return (
            f"{self.entry_id}|{self.account}|{self.source_account}|"
            f"{self.type_code}|{units}x{self.rate}|{self.state.value}"
        )


@dataclass(frozen=True, slots=True)
class LedgerAppendRequest:
    """Everything the ledger writer needs to create a new entry."""

    time: datetime
    account: str
    source_account: str
    administrator: str
    type_code: str
    description: str
    quantity: int
    rate: MoneyValue
    payment: PaymentMetadata = field(default_factory=PaymentMetadata)
    initial_state: ConfirmationState = ConfirmationState.PENDING

    def __post_init__(self) -> None:
        _check_entry_fields(self.quantity, self.rate)
        if not self.account:
            raise ValidationError("account is required")
        if not self.type_code:
            raise ValidationError("type_code is required")

    def to_entry(self, entry_id: int) -> LedgerEntry:
        return LedgerEntry(
            entry_id=entry_id,
            time=self.time,
            account=self.account,
            source_account=self.source_account,
            administrator=self.administrator,
            type_code=self.type_code,
            description=self.description,
            quantity=self.quantity,
            rate=self.rate,
            payment=self.payment,
            state=self.initial_state,
        )
