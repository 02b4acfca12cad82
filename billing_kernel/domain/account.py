"""Account facts the billing core needs, and billing-account resolution."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from billing_kernel.exceptions import AccountNotFoundError, ValidationError


@dataclass(frozen=True, slots=True)
class AccountRecord:
    """
    Billing view of a hosting account.

    ``bill_parent`` means this account's charges are paid by ``parent``.
    """

    name: str
    parent: str | None = None
    bill_parent: bool = False
    canceled_at: datetime | None = None
    cancel_reason: str | None = None

    def __post_init__(self) -> None:
        if self.bill_parent and not self.parent:
            raise ValidationError(f"Account {self.name} bills its parent but has none")

    @property
    def is_canceled(self) -> bool:
        return self.canceled_at is not None


def billing_account_of(
    name: str, lookup: Callable[[str], AccountRecord | None]
) -> AccountRecord:
    """
    Walk up ``parent`` while ``bill_parent`` is set.

    Raises:
        AccountNotFoundError: ``name`` or any parent on the way is absent.
        ValidationError: the parent chain loops back on itself.
    """
    record = lookup(name)
    if record is None:
        raise AccountNotFoundError(name)
    seen = {record.name}
    while record.bill_parent:
        parent = lookup(record.parent)
        if parent is None:
            raise AccountNotFoundError(record.parent)
        if parent.name in seen:
            raise ValidationError(f"Billing parent cycle at account {parent.name}")
        seen.add(parent.name)
        record = parent
    return record
