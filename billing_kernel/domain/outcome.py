"""
Outcome -- Tagged result for callers that prefer values over exceptions.

Billing code raises typed exceptions.  Callers that batch work (reporting,
scheduled billing runs) often want a value instead, so ``Outcome.capture``
runs an operation and folds the NotFound, Configuration, Validation and
Concurrent-modification categories into a status.  Anything else propagates.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from billing_kernel.exceptions import (
    BillingKernelError,
    ConcurrentModificationError,
    ConfigurationError,
    NotFoundError,
    ValidationError,
)

T = TypeVar("T")


class OutcomeStatus(str, Enum):
    """Status of a captured billing operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    CONCURRENT_MODIFICATION = "concurrent_modification"


_CATEGORY_STATUS: tuple[tuple[type[BillingKernelError], OutcomeStatus], ...] = (
    (NotFoundError, OutcomeStatus.NOT_FOUND),
    (ConfigurationError, OutcomeStatus.CONFIGURATION),
    (ValidationError, OutcomeStatus.VALIDATION),
    (ConcurrentModificationError, OutcomeStatus.CONCURRENT_MODIFICATION),
)

_CAPTURED = tuple(exc_type for exc_type, _ in _CATEGORY_STATUS)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a billing operation.

    Contains the status and either the value or the error that stopped it.
    """

    status: OutcomeStatus
    value: T | None = None
    error_code: str | None = None
    error_message: str | None = None
    error: BillingKernelError | None = field(default=None, compare=False, repr=False)

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        """Create a successful outcome."""
        return cls(status=OutcomeStatus.OK, value=value)

    @classmethod
    def from_error(cls, error: BillingKernelError) -> Outcome[T]:
        """Create a failed outcome tagged with the error's category."""
        for exc_type, status in _CATEGORY_STATUS:
            if isinstance(error, exc_type):
                return cls(
                    status=status,
                    error_code=error.code,
                    error_message=str(error),
                    error=error,
                )
        raise error

    @classmethod
    def capture(cls, operation: Callable[..., T], *args, **kwargs) -> Outcome[T]:
        """Run ``operation`` and fold captured error categories into an Outcome."""
        try:
            return cls.success(operation(*args, **kwargs))
        except _CAPTURED as e:
            return cls.from_error(e)

    @property
    def is_success(self) -> bool:
        return self.status is OutcomeStatus.OK

    def unwrap(self) -> T:
        """Return the value, or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value
