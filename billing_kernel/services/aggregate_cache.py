"""
AggregateCache -- Compute-once-under-lock holder for a whole-table aggregate.

Responsibility:
    Holds one lazily computed value (a snapshot, or a per-account balance
    table).  The first reader after the cache is emptied computes the value
    while holding the cache's lock; concurrent readers block on the lock and
    then read the same value.

Architecture position:
    Kernel > Services.  Owned by LedgerStore; never shared across stores.

Invariants enforced:
    - A value is published only after its computation finished.  A failed
      computation leaves the cache empty and the exception propagates.
    - ``clear_all`` acquires every lock in the order given and empties all
      caches before releasing any of them.

Failure modes:
    - Whatever the compute callable raises.  Computation is never retried
      inside the cache.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from typing import Generic, TypeVar

from billing_kernel.logging_config import get_logger

logger = get_logger("services.aggregate_cache")

T = TypeVar("T")


class AggregateCache(Generic[T]):
    """A single lazily populated value guarded by its own lock."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._value: T | None = None
        self._populated = False
        self._populations = 0

    @property
    def populated(self) -> bool:
        return self._populated

    @property
    def populations(self) -> int:
        """How many times the value has been computed since construction."""
        return self._populations

    def get_or_compute(self, compute: Callable[[], T]) -> T:
        with self._lock:
            if not self._populated:
                value = compute()
                self._value = value
                self._populated = True
                self._populations += 1
                logger.debug(
                    "aggregate_cache_populated",
                    extra={"cache": self.name, "populations": self._populations},
                )
            return self._value

    def clear(self) -> None:
        with self._lock:
            self._clear_locked()

    def _clear_locked(self) -> None:
        self._value = None
        self._populated = False


def clear_all(caches: Sequence[AggregateCache]) -> None:
    """Empty every cache as one unit, locking in the order given."""
    with ExitStack() as stack:
        for cache in caches:
            stack.enter_context(cache._lock)
        for cache in caches:
            cache._clear_locked()
