"""Tests for Outcome capture of the kernel's error categories."""

import pytest

from billing_kernel.domain.outcome import Outcome, OutcomeStatus
from billing_kernel.exceptions import (
    AccountNotFoundError,
    DefinitionInUseError,
    InvalidCurrencyError,
    LimitSetModifiedError,
    MissingLimitError,
)


def _raise(exc):
    raise exc


class TestOutcome:
    def test_success(self):
        outcome = Outcome.capture(lambda: 42)
        assert outcome.is_success
        assert outcome.status is OutcomeStatus.OK
        assert outcome.unwrap() == 42

    def test_capture_passes_arguments(self):
        outcome = Outcome.capture(lambda a, b=0: a + b, 1, b=2)
        assert outcome.value == 3

    @pytest.mark.parametrize(
        "error, status",
        [
            (AccountNotFoundError("ghost"), OutcomeStatus.NOT_FOUND),
            (MissingLimitError("pkg", 1, "mailbox-count", 3), OutcomeStatus.CONFIGURATION),
            (InvalidCurrencyError("usd"), OutcomeStatus.VALIDATION),
            (LimitSetModifiedError(1, 2, 3), OutcomeStatus.CONCURRENT_MODIFICATION),
        ],
    )
    def test_captured_categories(self, error, status):
        outcome = Outcome.capture(_raise, error)
        assert not outcome.is_success
        assert outcome.status is status
        assert outcome.error_code == error.code
        assert outcome.error is error

    def test_unwrap_reraises(self):
        error = AccountNotFoundError("ghost")
        outcome = Outcome.capture(_raise, error)
        with pytest.raises(AccountNotFoundError):
            outcome.unwrap()

    def test_other_kernel_errors_propagate(self):
        with pytest.raises(DefinitionInUseError):
            Outcome.capture(_raise, DefinitionInUseError(1, ["pkg"]))

    def test_non_kernel_errors_propagate(self):
        with pytest.raises(ZeroDivisionError):
            Outcome.capture(lambda: 1 / 0)

    def test_from_error_rejects_uncategorized(self):
        with pytest.raises(DefinitionInUseError):
            Outcome.from_error(DefinitionInUseError(1, ["pkg"]))
