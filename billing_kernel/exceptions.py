"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Billing callers must be able to tell an absent row from a pricing defect from
a malformed value without parsing message strings. Every exception here:
  1. Is a TYPED class (catch by type, not message)
  2. Has a class-level CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (account, package, resource...)

Example - RIGHT way:
    try:
        lines = engine.billing_lines(account="acme")
    except MissingAdditionalRateError as e:
        alert_billing_admin(e.package, e.resource)
    except NotFoundError as e:
        log.warning("billing aborted", extra={"code": e.code})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- EntryNotFoundError
    |   +-- DefinitionNotFoundError
    |   +-- PackageNotFoundError
    |
    +-- ConfigurationError
    |   +-- MissingLimitError
    |   +-- MissingAdditionalRateError
    |   +-- MissingAdditionalTypeError
    |   +-- IncompleteMeteringError
    |
    +-- ValidationError
    |   +-- InvalidCurrencyError
    |   +-- InvalidScaleError
    |   +-- CurrencyMismatchError
    |   +-- InvalidSearchRangeError
    |   +-- InvalidLimitError
    |   +-- InvalidQuantityError
    |
    +-- ConcurrentModificationError
    |   +-- LimitSetModifiedError
    |
    +-- StateTransitionError
    |   +-- InvalidStateTransitionError
    |
    +-- CatalogError
        +-- DefinitionInUseError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
NotFound        | ACCOUNT_NOT_FOUND           | Account (or billing parent) is absent
                | ENTRY_NOT_FOUND             | Ledger entry id is absent
                | DEFINITION_NOT_FOUND        | Package definition is absent
                | PACKAGE_NOT_FOUND           | Package is absent
----------------|-----------------------------|-----------------------------------------
Configuration   | MISSING_LIMIT               | Usage > 0 with no limit record
                | MISSING_ADDITIONAL_RATE     | Overage with no additional rate
                | MISSING_ADDITIONAL_TYPE     | Overage with no additional type
                | INCOMPLETE_METERING         | Metering skips or repeats a resource
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_CURRENCY            | Not a valid ISO 4217 code
                | INVALID_SCALE               | Negative or non-integer scale
                | CURRENCY_MISMATCH           | Direct combination of two currencies
                | INVALID_SEARCH_RANGE        | time_after later than time_before
                | INVALID_LIMIT               | Negative limit, soft > hard, bad set
                | INVALID_QUANTITY            | Non-integer quantity / unscaled value
----------------|-----------------------------|-----------------------------------------
Concurrency     | LIMIT_SET_MODIFIED          | Limit set size changed after prepare
----------------|-----------------------------|-----------------------------------------
State           | INVALID_STATE_TRANSITION    | Transition out of a terminal state
----------------|-----------------------------|-----------------------------------------
Catalog         | DEFINITION_IN_USE           | Removing a definition packages use

===============================================================================
PROPAGATION
===============================================================================

NotFound and Configuration abort the enclosing aggregate or batch. Nothing
partial is published and no zero is substituted. Validation is raised when the
offending value is constructed. Concurrent modification leaves the catalog
untouched. The kernel never retries any of these.
"""


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# NotFound exceptions


class NotFoundError(BillingKernelError):
    """A referenced row is required but absent from the snapshot."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with the given name was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"Account not found: {account}")


class EntryNotFoundError(NotFoundError):
    """Ledger entry with the given id was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Ledger entry not found: {entry_id}")


class DefinitionNotFoundError(NotFoundError):
    """Package definition with the given id was not found."""

    code: str = "DEFINITION_NOT_FOUND"

    def __init__(self, definition_id: int):
        self.definition_id = definition_id
        super().__init__(f"Package definition not found: {definition_id}")


class PackageNotFoundError(NotFoundError):
    """Package with the given name was not found."""

    code: str = "PACKAGE_NOT_FOUND"

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"Package not found: {package}")


# Configuration exceptions


class ConfigurationError(BillingKernelError):
    """Resource usage exists without the pricing metadata to bill it."""

    code: str = "CONFIGURATION_ERROR"


class MissingLimitError(ConfigurationError):
    """Usage exists for a resource but the definition has no limit record."""

    code: str = "MISSING_LIMIT"

    def __init__(self, package: str, definition_id: int, resource: str, usage: int):
        self.package = package
        self.definition_id = definition_id
        self.resource = resource
        self.usage = usage
        super().__init__(
            f"{resource} in use ({usage}) but no limit defined for "
            f"package={package}, definition={definition_id}"
        )


class MissingAdditionalRateError(ConfigurationError):
    """Usage exceeds the soft limit but no additional rate is defined."""

    code: str = "MISSING_ADDITIONAL_RATE"

    def __init__(self, package: str, definition_id: int, resource: str):
        self.package = package
        self.definition_id = definition_id
        self.resource = resource
        super().__init__(
            f"Additional {resource} in use but no additional rate defined for "
            f"package={package}, definition={definition_id}"
        )


class MissingAdditionalTypeError(ConfigurationError):
    """Usage exceeds the soft limit but no additional type is defined."""

    code: str = "MISSING_ADDITIONAL_TYPE"

    def __init__(self, package: str, definition_id: int, resource: str):
        self.package = package
        self.definition_id = definition_id
        self.resource = resource
        super().__init__(
            f"Additional {resource} in use but no additional type defined for "
            f"package={package}, definition={definition_id}"
        )


class IncompleteMeteringError(ConfigurationError):
    """The metering catalog does not list every resource kind exactly once."""

    code: str = "INCOMPLETE_METERING"

    def __init__(self, missing: list[str], duplicated: list[str]):
        self.missing = missing
        self.duplicated = duplicated
        super().__init__(
            f"Metering must list every resource kind once: "
            f"missing={missing}, duplicated={duplicated}"
        )


# Validation exceptions


class ValidationError(BillingKernelError):
    """A value was rejected at construction time."""

    code: str = "VALIDATION_ERROR"


class InvalidCurrencyError(ValidationError):
    """Currency code is not a valid ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: object):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: {currency!r}")


class InvalidScaleError(ValidationError):
    """Monetary scale is negative or not an integer."""

    code: str = "INVALID_SCALE"

    def __init__(self, scale: object):
        self.scale = scale
        super().__init__(f"Scale must be a non-negative integer: {scale!r}")


class CurrencyMismatchError(ValidationError):
    """Two amounts in different currencies were combined directly."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str, operation: str):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(
            f"Cannot {operation} amounts in different currencies: {left} and {right}"
        )


class InvalidSearchRangeError(ValidationError):
    """Search range lower bound is later than its upper bound."""

    code: str = "INVALID_SEARCH_RANGE"

    def __init__(self, time_after: object, time_before: object):
        self.time_after = time_after
        self.time_before = time_before
        super().__init__(
            f"Search range is empty: after={time_after} is later than before={time_before}"
        )


class InvalidLimitError(ValidationError):
    """A package definition limit or limit set is malformed."""

    code: str = "INVALID_LIMIT"

    def __init__(self, resource: str, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"Invalid limit for {resource}: {reason}")


class InvalidQuantityError(ValidationError):
    """Quantity or unscaled amount is not an integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be an integer: {value!r}")


# Concurrency exceptions


class ConcurrentModificationError(BillingKernelError):
    """Data changed between preparing a write and sending it."""

    code: str = "CONCURRENT_MODIFICATION"


class LimitSetModifiedError(ConcurrentModificationError):
    """The limit set sent differs in size from the limit set prepared."""

    code: str = "LIMIT_SET_MODIFIED"

    def __init__(self, definition_id: int, expected: int, actual: int):
        self.definition_id = definition_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Limit set for definition {definition_id} changed during write: "
            f"prepared {expected} limits, sending {actual}"
        )


# State transition exceptions


class StateTransitionError(BillingKernelError):
    """Base exception for confirmation state machine errors."""

    code: str = "STATE_TRANSITION_ERROR"


class InvalidStateTransitionError(StateTransitionError):
    """A confirmation transition was requested from a terminal state."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, entry_id: int | None, state: str, action: str):
        self.entry_id = entry_id
        self.state = state
        self.action = action
        super().__init__(
            f"Cannot {action} ledger entry {entry_id}: state is {state}"
        )


# Catalog exceptions


class CatalogError(BillingKernelError):
    """Base exception for rate catalog write errors."""

    code: str = "CATALOG_ERROR"


class DefinitionInUseError(CatalogError):
    """Package definition cannot be removed while packages reference it."""

    code: str = "DEFINITION_IN_USE"

    def __init__(self, definition_id: int, packages: list[str]):
        self.definition_id = definition_id
        self.packages = packages
        noun = "package" if len(packages) == 1 else "packages"
        super().__init__(
            f"Package definition {definition_id} is used by {len(packages)} {noun}"
        )
