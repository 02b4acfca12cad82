"""
InvalidationBus -- routes "tables updated" signals to subscribed caches.

Writers announce which tables changed; anything holding derived state
subscribes to the tables it derives from.  Callbacks run synchronously on the
caller's thread, in subscription order.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable

from billing_kernel.logging_config import get_logger

logger = get_logger("services.invalidation")

LEDGER_TABLE = "ledger_entries"
DEFINITIONS_TABLE = "package_definitions"
LIMITS_TABLE = "package_definition_limits"
PACKAGES_TABLE = "packages"
MONTHLY_CHARGES_TABLE = "monthly_charges"

CATALOG_TABLES = (DEFINITIONS_TABLE, LIMITS_TABLE, PACKAGES_TABLE, MONTHLY_CHARGES_TABLE)


class InvalidationBus:
    """Synchronous publish/subscribe keyed by table name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Callable[[], None]]] = {}

    def subscribe(self, table: str, callback: Callable[[], None]) -> None:
        with self._lock:
            self._subscribers.setdefault(table, []).append(callback)

    def tables_updated(self, tables: Iterable[str]) -> None:
        """Invoke each subscribed callback once, even if it covers several tables."""
        tables = tuple(tables)
        with self._lock:
            callbacks: list[Callable[[], None]] = []
            for table in tables:
                for callback in self._subscribers.get(table, ()):
                    if callback not in callbacks:
                        callbacks.append(callback)

        logger.info(
            "tables_updated",
            extra={"tables": tables, "subscriber_count": len(callbacks)},
        )
        for callback in callbacks:
            callback()
