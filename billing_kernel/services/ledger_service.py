"""
Ledger service - Write path for ledger entries.

The LedgerService is responsible for:
- Building validated append requests and handing them to the LedgerWriter
- Checking confirmation transitions against the current entry before writing
- Announcing ledger table updates so cached balances are invalidated

The LedgerService does NOT:
- Persist anything itself (that's the LedgerWriter)
- Compute balances (that's the LedgerStore)
"""

from datetime import datetime

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.ledger_entry import (
    ConfirmationState,
    LedgerAppendRequest,
    LedgerEntry,
    PaymentMetadata,
)
from billing_kernel.domain.ports import LedgerWriter
from billing_kernel.domain.values import MoneyValue
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.services.invalidation import LEDGER_TABLE, InvalidationBus
from billing_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.ledger_service")


class LedgerService:
    """
    Appends ledger entries and moves them through confirmation.

    Every successful write signals the ledger table on the InvalidationBus;
    a LedgerStore subscribed to the bus drops its cached balances.
    """

    def __init__(
        self,
        writer: LedgerWriter,
        store: LedgerStore,
        bus: InvalidationBus,
        clock: Clock | None = None,
    ):
        self._writer = writer
        self._store = store
        self._bus = bus
        self._clock = clock or SystemClock()

    def append_entry(
        self,
        account: str,
        source_account: str,
        administrator: str,
        type_code: str,
        description: str,
        quantity: int,
        rate: MoneyValue,
        payment_type: str | None = None,
        payment_info: str | None = None,
        processor: str | None = None,
        initial_state: ConfirmationState = ConfirmationState.PENDING,
        time: datetime | None = None,
    ) -> int:
        """Append a new entry and return the id the writer assigned."""
        request = LedgerAppendRequest(
            time=time or self._clock.now(),
            account=account,
            source_account=source_account,
            administrator=administrator,
            type_code=type_code,
            description=description,
            quantity=quantity,
            rate=rate,
            payment=PaymentMetadata(
                payment_type=payment_type,
                payment_info=payment_info,
                processor=processor,
            ),
            initial_state=initial_state,
        )
        with LogContext.bind(account=account, actor_id=administrator):
            entry_id = self._writer.append_entry(request)
            logger.info(
                "ledger_entry_appended",
                extra={
                    "entry_id": entry_id,
                    "type_code": type_code,
                    "amount": str(request.rate.multiply(quantity)),
                    "state": initial_state.label,
                },
            )
        self._bus.tables_updated([LEDGER_TABLE])
        return entry_id

    def approve(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None = None,
    ) -> LedgerEntry:
        """PENDING -> CONFIRMED."""
        return self._transition(
            "approve", entry_id, external_payment_id, updated_payment_info
        )

    def decline(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None = None,
    ) -> LedgerEntry:
        """PENDING -> FAILED."""
        return self._transition(
            "decline", entry_id, external_payment_id, updated_payment_info
        )

    def hold(
        self,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None = None,
    ) -> LedgerEntry:
        """PENDING -> PENDING with new payment metadata."""
        return self._transition(
            "hold", entry_id, external_payment_id, updated_payment_info
        )

    def _transition(
        self,
        action: str,
        entry_id: int,
        external_payment_id: str | None,
        updated_payment_info: str | None,
    ) -> LedgerEntry:
        current = self._store.get_entry(entry_id)
        with LogContext.bind(account=current.account, entry_id=str(entry_id)):
            # Raises InvalidStateTransitionError before anything is written
            successor = getattr(current, action)(external_payment_id, updated_payment_info)
            getattr(self._writer, action)(
                entry_id, external_payment_id, updated_payment_info
            )
            logger.info(
                "ledger_entry_transitioned",
                extra={
                    "action": action,
                    "from_state": current.state.label,
                    "to_state": successor.state.label,
                },
            )
        self._bus.tables_updated([LEDGER_TABLE])
        return successor
