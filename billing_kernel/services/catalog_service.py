"""
Catalog service - Administrative writes to the rate catalog.

The CatalogService is responsible for:
- Checking catalog writes against the current RateCatalog snapshot
- Validating limit sets before they are replaced
- Detecting limit sets that changed size between prepare and send
- Announcing catalog table updates after every write

Catalog writes are last-writer-wins.  The only optimistic check is the limit
set size; a mismatch raises LimitSetModifiedError and nothing is written.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from billing_kernel.domain.catalog import PackageDefinition, PackageDefinitionLimit
from billing_kernel.domain.ports import CatalogRepository, CatalogWriter
from billing_kernel.exceptions import (
    DefinitionInUseError,
    InvalidLimitError,
    LimitSetModifiedError,
)
from billing_kernel.logging_config import get_logger
from billing_kernel.services.invalidation import (
    DEFINITIONS_TABLE,
    LIMITS_TABLE,
    InvalidationBus,
)

logger = get_logger("services.catalog_service")


@dataclass(frozen=True)
class PreparedLimitSet:
    """
    A validated limit set awaiting ``replace_limits``.

    ``limits`` is the caller's own sequence, not a copy, so changes made to
    it after preparation are caught when the set is sent.
    """

    definition_id: int
    limits: Sequence[PackageDefinitionLimit]
    expected_count: int


def validate_limit_set(
    definition_id: int, limits: Sequence[PackageDefinitionLimit]
) -> None:
    """Every limit targets ``definition_id`` and no resource repeats."""
    seen: set = set()
    for limit in limits:
        if not isinstance(limit, PackageDefinitionLimit):
            raise InvalidLimitError("?", f"not a PackageDefinitionLimit: {limit!r}")
        if limit.definition_id != definition_id:
            raise InvalidLimitError(
                limit.resource.value,
                f"belongs to definition {limit.definition_id}, not {definition_id}",
            )
        if limit.resource in seen:
            raise InvalidLimitError(limit.resource.value, "appears more than once")
        seen.add(limit.resource)


class CatalogService:
    """Validated, invalidating front door for a CatalogWriter."""

    def __init__(
        self,
        writer: CatalogWriter,
        catalog: CatalogRepository,
        bus: InvalidationBus,
    ):
        self._writer = writer
        self._catalog = catalog
        self._bus = bus

    def create_definition(self, definition: PackageDefinition) -> int:
        definition_id = self._writer.create_definition(definition)
        logger.info(
            "definition_created",
            extra={"definition_id": definition_id, "definition_name": definition.name},
        )
        self._bus.tables_updated([DEFINITIONS_TABLE])
        return definition_id

    def update_definition(self, definition: PackageDefinition) -> None:
        """Replace the whole definition record."""
        self._catalog.rate_catalog().definition(definition.definition_id)
        self._writer.update_definition(definition)
        logger.info(
            "definition_updated", extra={"definition_id": definition.definition_id}
        )
        self._bus.tables_updated([DEFINITIONS_TABLE])

    def prepare_limits(
        self, definition_id: int, limits: Sequence[PackageDefinitionLimit]
    ) -> PreparedLimitSet:
        self._catalog.rate_catalog().definition(definition_id)
        validate_limit_set(definition_id, limits)
        return PreparedLimitSet(definition_id, limits, len(limits))

    def replace_limits(self, prepared: PreparedLimitSet) -> None:
        """Send a prepared limit set, replacing the definition's whole set."""
        sent = tuple(prepared.limits)
        if len(sent) != prepared.expected_count:
            logger.warning(
                "limit_set_modified",
                extra={
                    "definition_id": prepared.definition_id,
                    "expected": prepared.expected_count,
                    "actual": len(sent),
                },
            )
            raise LimitSetModifiedError(
                prepared.definition_id, prepared.expected_count, len(sent)
            )
        validate_limit_set(prepared.definition_id, sent)
        self._writer.replace_limits(prepared.definition_id, sent)
        logger.info(
            "limits_replaced",
            extra={"definition_id": prepared.definition_id, "limit_count": len(sent)},
        )
        self._bus.tables_updated([LIMITS_TABLE])

    def set_limits(
        self, definition_id: int, limits: Sequence[PackageDefinitionLimit]
    ) -> None:
        self.replace_limits(self.prepare_limits(definition_id, limits))

    def remove_definition(self, definition_id: int) -> None:
        catalog = self._catalog.rate_catalog()
        reasons = catalog.cannot_remove_reasons(definition_id)
        if reasons:
            packages = [name for reason in reasons for name in reason.packages]
            raise DefinitionInUseError(definition_id, packages)
        self._writer.remove_definition(definition_id)
        logger.info("definition_removed", extra={"definition_id": definition_id})
        self._bus.tables_updated([LIMITS_TABLE, DEFINITIONS_TABLE])

    def copy_definition(self, definition_id: int) -> int:
        self._catalog.rate_catalog().definition(definition_id)
        copy_id = self._writer.copy_definition(definition_id)
        logger.info(
            "definition_copied",
            extra={"definition_id": definition_id, "copy_id": copy_id},
        )
        self._bus.tables_updated([DEFINITIONS_TABLE, LIMITS_TABLE])
        return copy_id

    def set_definition_active(self, definition_id: int, active: bool) -> None:
        self._catalog.rate_catalog().definition(definition_id)
        self._writer.set_definition_active(definition_id, active)
        logger.info(
            "definition_active_set",
            extra={"definition_id": definition_id, "active": active},
        )
        self._bus.tables_updated([DEFINITIONS_TABLE])
