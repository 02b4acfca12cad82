"""
Search -- Predicate object over ledger entries.

Responsibility:
    SearchFilter describes which ledger entries a caller wants and evaluates
    itself against a snapshot with a single linear pass.  There is no index;
    an ``entry_id`` filter short-circuits to one lookup.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Evaluated by
    LedgerStore.search against its current snapshot.

Invariants enforced:
    - Every field left as None matches anything.
    - The time range is half-open: ``time_after <= time < time_before``.
    - Description and payment-info filters match when every
      whitespace-separated word is a case-insensitive substring, in any order.

Failure modes:
    - InvalidSearchRangeError when ``time_after`` is later than
      ``time_before``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from billing_kernel.domain.ledger_entry import ConfirmationState, LedgerEntry
from billing_kernel.exceptions import InvalidSearchRangeError


def _words(text: str | None) -> tuple[str, ...]:
    if text is None:
        return ()
    return tuple(word.lower() for word in text.split())


def _contains_all(words: tuple[str, ...], text: str | None) -> bool:
    if not words:
        return True
    if text is None:
        return False
    haystack = text.lower()
    return all(word in haystack for word in words)


@dataclass(frozen=True, slots=True)
class SearchFilter:
    """Ledger search criteria; None fields are wildcards."""

    entry_id: int | None = None
    time_after: datetime | None = None
    time_before: datetime | None = None
    account: str | None = None
    source_account: str | None = None
    administrator: str | None = None
    type_code: str | None = None
    description: str | None = None
    payment_type: str | None = None
    payment_info: str | None = None
    state: ConfirmationState | None = None

    def __post_init__(self) -> None:
        if (
            self.time_after is not None
            and self.time_before is not None
            and self.time_after > self.time_before
        ):
            raise InvalidSearchRangeError(self.time_after, self.time_before)

    @staticmethod
    def default_after(now: datetime) -> datetime:
        """First instant of the calendar month before ``now``."""
        first_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        if first_of_month.month == 1:
            return first_of_month.replace(year=first_of_month.year - 1, month=12)
        return first_of_month.replace(month=first_of_month.month - 1)

    @classmethod
    def recent(cls, account: str, now: datetime) -> SearchFilter:
        """Entries for ``account`` since the start of last month."""
        return cls(account=account, time_after=cls.default_after(now))

    def matches(self, entry: LedgerEntry) -> bool:
        if self.entry_id is not None and entry.entry_id != self.entry_id:
            return False
        if self.time_after is not None and entry.time < self.time_after:
            return False
        if self.time_before is not None and entry.time >= self.time_before:
            return False
        if self.account is not None and entry.account != self.account:
            return False
        if self.source_account is not None and entry.source_account != self.source_account:
            return False
        if self.administrator is not None and entry.administrator != self.administrator:
            return False
        if self.type_code is not None and entry.type_code != self.type_code:
            return False
        if self.payment_type is not None and entry.payment.payment_type != self.payment_type:
            return False
        if self.state is not None and entry.state is not self.state:
            return False
        if not _contains_all(_words(self.description), entry.description):
            return False
        return _contains_all(_words(self.payment_info), entry.payment.payment_info)

    def evaluate(
        self,
        entries: Iterable[LedgerEntry],
        by_id: Mapping[int, LedgerEntry] | None = None,
    ) -> list[LedgerEntry]:
        """
        Entries satisfying every predicate, in snapshot order.

        When ``entry_id`` is set and ``by_id`` is given, the result comes from
        a single lookup instead of a scan.
        """
        if self.entry_id is not None and by_id is not None:
            entry = by_id.get(self.entry_id)
            return [entry] if entry is not None and self.matches(entry) else []
        return [entry for entry in entries if self.matches(entry)]
