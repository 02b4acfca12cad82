"""
LedgerStore -- Ledger snapshot with lazily cached multi-currency balances.

Responsibility:
    Serves balance and search queries over the current ledger snapshot.
    Whole-table aggregates (total balances, confirmed balances, running
    balances) are computed in one pass on first use and kept until the next
    ``invalidate()``.

Architecture position:
    Kernel > Services -- read side.  Consumes a LedgerSnapshotSource and,
    for active balances, an AccountDirectory and a MonthlyRateProvider.
    Subscribes to the ledger table on an InvalidationBus.

Invariants enforced:
    - FAILED entries never contribute to any balance.
    - Only CONFIRMED entries contribute to confirmed balances.
    - All aggregates of one cache generation derive from the same snapshot.
    - ``invalidate()`` empties every cache as a unit.
    - Balances for unknown accounts are an empty Monies, never an error.

Failure modes:
    - EntryNotFoundError from ``get_entry`` for an unknown id.
    - AccountNotFoundError from ``active_balance`` when the directory does not
      know the account.  Nothing partial is cached.

Concurrency:
    Each aggregate cache owns a lock.  A cache computing its table holds its
    own lock and then the snapshot lock; ``invalidate()`` takes the locks in
    the order totals, confirmed, running, snapshot, so lock order is the same
    everywhere.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.ledger_entry import ConfirmationState, LedgerEntry
from billing_kernel.domain.ports import (
    AccountDirectory,
    LedgerSnapshotSource,
    MonthlyRateProvider,
)
from billing_kernel.domain.search import SearchFilter
from billing_kernel.domain.values import Monies, MoneyValue
from billing_kernel.exceptions import AccountNotFoundError, EntryNotFoundError
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.services.aggregate_cache import AggregateCache, clear_all
from billing_kernel.services.invalidation import LEDGER_TABLE, InvalidationBus

logger = get_logger("services.ledger_store")

_EMPTY = Monies()


@dataclass(frozen=True)
class LedgerSnapshot:
    """One generation of the ledger, in table order, with an id index."""

    entries: tuple[LedgerEntry, ...]
    by_id: Mapping[int, LedgerEntry]

    @classmethod
    def of(cls, entries) -> LedgerSnapshot:
        ordered = tuple(sorted(entries, key=lambda e: (e.time, e.entry_id)))
        return cls(entries=ordered, by_id={e.entry_id: e for e in ordered})


def lookback_start(reference: datetime, years: int) -> datetime:
    """``reference`` moved back by whole calendar years (Feb 29 -> Feb 28)."""
    try:
        return reference.replace(year=reference.year - years)
    except ValueError:
        return reference.replace(year=reference.year - years, day=28)


def _sum_by_account(
    entries: tuple[LedgerEntry, ...], states: frozenset[ConfirmationState]
) -> dict[str, Monies]:
    amounts: dict[str, list[MoneyValue]] = {}
    for entry in entries:
        if entry.state in states:
            amounts.setdefault(entry.account, []).append(entry.amount)
    return {account: Monies(values) for account, values in amounts.items()}


_COUNTED = frozenset({ConfirmationState.PENDING, ConfirmationState.CONFIRMED})
_CONFIRMED = frozenset({ConfirmationState.CONFIRMED})


class LedgerStore:
    """
    Balance and search queries over the ledger.

    All balance methods return Monies.  ``balance_as_of`` and
    ``active_balance`` are computed on demand; the other balances come from
    whole-table caches.
    """

    def __init__(
        self,
        source: LedgerSnapshotSource,
        accounts: AccountDirectory | None = None,
        monthly_rates: MonthlyRateProvider | None = None,
        clock: Clock | None = None,
        lookback_years: int = 1,
    ):
        self._source = source
        self._accounts = accounts
        self._monthly_rates = monthly_rates
        self._clock = clock or SystemClock()
        self._lookback_years = lookback_years

        self._totals: AggregateCache[dict[str, Monies]] = AggregateCache("total_balances")
        self._confirmed: AggregateCache[dict[str, Monies]] = AggregateCache(
            "confirmed_balances"
        )
        self._running: AggregateCache[dict[int, Monies]] = AggregateCache(
            "running_balances"
        )
        self._snapshot: AggregateCache[LedgerSnapshot] = AggregateCache("snapshot")

    def subscribe_to(self, bus: InvalidationBus) -> None:
        """Invalidate whenever the ledger table is reported as updated."""
        bus.subscribe(LEDGER_TABLE, self.invalidate)

    # -- cache population ----------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot.get_or_compute(self._load_snapshot)

    def _load_snapshot(self) -> LedgerSnapshot:
        snapshot = LedgerSnapshot.of(self._source.ledger_entries())
        logger.info(
            "ledger_cache_populated",
            extra={"cache": "snapshot", "entry_count": len(snapshot.entries)},
        )
        return snapshot

    def _compute_totals(self) -> dict[str, Monies]:
        totals = _sum_by_account(self.snapshot().entries, _COUNTED)
        logger.info(
            "ledger_cache_populated",
            extra={"cache": "total_balances", "account_count": len(totals)},
        )
        return totals

    def _compute_confirmed(self) -> dict[str, Monies]:
        confirmed = _sum_by_account(self.snapshot().entries, _CONFIRMED)
        logger.info(
            "ledger_cache_populated",
            extra={"cache": "confirmed_balances", "account_count": len(confirmed)},
        )
        return confirmed

    def _compute_running(self) -> dict[int, Monies]:
        per_account: dict[str, Monies] = {}
        running: dict[int, Monies] = {}
        for entry in self.snapshot().entries:
            balance = per_account.get(entry.account, _EMPTY)
            if not entry.is_failed:
                balance = balance.add(entry.amount)
                per_account[entry.account] = balance
            running[entry.entry_id] = balance
        logger.info(
            "ledger_cache_populated",
            extra={"cache": "running_balances", "entry_count": len(running)},
        )
        return running

    def invalidate(self) -> None:
        """Drop every cached aggregate and the snapshot they derive from."""
        clear_all((self._totals, self._confirmed, self._running, self._snapshot))
        logger.info("ledger_cache_invalidated")

    # -- balances ------------------------------------------------------------

    def total_balance(self, account: str) -> Monies:
        """Sum of every non-FAILED entry of ``account``."""
        return self._totals.get_or_compute(self._compute_totals).get(account, _EMPTY)

    def confirmed_balance(self, account: str) -> Monies:
        """Sum of the CONFIRMED entries of ``account``."""
        return self._confirmed.get_or_compute(self._compute_confirmed).get(
            account, _EMPTY
        )

    def balance_as_of(
        self, account: str, cutoff: datetime, confirmed_only: bool = False
    ) -> Monies:
        """Balance of entries strictly before ``cutoff``.  Never cached."""
        states = _CONFIRMED if confirmed_only else _COUNTED
        return Monies(
            entry.amount
            for entry in self.snapshot().entries
            if entry.account == account and entry.time < cutoff and entry.state in states
        )

    def running_balance(self, entry: LedgerEntry | int) -> Monies:
        """
        Balance of the entry's account right after the entry.

        A FAILED entry reports the balance of the entries before it.
        """
        entry_id = entry if isinstance(entry, int) else entry.entry_id
        running = self._running.get_or_compute(self._compute_running)
        try:
            return running[entry_id]
        except KeyError:
            raise EntryNotFoundError(entry_id) from None

    def active_balance(self, account: str, now: datetime | None = None) -> Monies:
        """
        Balances relevant to current billing.

        Starts from the total balance and adds a zero for every currency the
        account is currently charged in.  For a canceled account, a currency
        is dropped when it is not charged, nets to exactly zero and has seen
        no entry within the lookback of either the cancellation time or
        ``now``.  Without an AccountDirectory nothing is dropped.
        """
        now = now or self._clock.now()
        with LogContext.bind(account=account):
            balance = self.total_balance(account)
            schedule = (
                self._monthly_rates.monthly_rate(account)
                if self._monthly_rates is not None
                else _EMPTY
            )
            for currency in schedule:
                balance = balance.with_currency(currency)

            if self._accounts is None:
                return balance
            record = self._accounts.account(account)
            if record is None:
                raise AccountNotFoundError(account)
            if not record.is_canceled:
                return balance

            since_canceled = lookback_start(record.canceled_at, self._lookback_years)
            since_now = lookback_start(now, self._lookback_years)
            dropped: list[str] = []
            for currency in list(balance):
                if currency in schedule or not balance[currency].is_zero:
                    continue
                if self._has_entry_since(account, currency, since_canceled):
                    continue
                if self._has_entry_since(account, currency, since_now):
                    continue
                balance = balance.without(currency)
                dropped.append(currency)

            if dropped:
                logger.debug(
                    "active_balance_currencies_dropped",
                    extra={"currencies": dropped},
                )
            return balance

    def _has_entry_since(self, account: str, currency: str, since: datetime) -> bool:
        return any(
            entry.account == account
            and entry.currency == currency
            and entry.time >= since
            for entry in self.snapshot().entries
        )

    # -- entry queries -------------------------------------------------------

    def get_entry(self, entry_id: int) -> LedgerEntry:
        try:
            return self.snapshot().by_id[entry_id]
        except KeyError:
            raise EntryNotFoundError(entry_id) from None

    def entries_for(self, account: str) -> list[LedgerEntry]:
        return [e for e in self.snapshot().entries if e.account == account]

    def entries_from(self, source_account: str) -> list[LedgerEntry]:
        return [e for e in self.snapshot().entries if e.source_account == source_account]

    def entries_by(self, administrator: str) -> list[LedgerEntry]:
        return [e for e in self.snapshot().entries if e.administrator == administrator]

    def pending_payments(self) -> list[LedgerEntry]:
        """PENDING entries that carry a payment type."""
        return [
            e
            for e in self.snapshot().entries
            if e.is_pending and e.payment.payment_type is not None
        ]

    def search(self, search_filter: SearchFilter) -> list[LedgerEntry]:
        snapshot = self.snapshot()
        return search_filter.evaluate(snapshot.entries, snapshot.by_id)
