"""
Append-only transaction ledger.

Every position change of a plan is recorded here as an immutable event. The
ledger is the source of truth for a plan's economics: on each append the
whole history plus the new event is folded through the cost-basis engine and
the resulting aggregates are written together with the event in one unit of
work. A failing fold (an over-exit, for example) therefore leaves no trace.
"""

import uuid
from collections.abc import Iterator
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from ..data.models import TransactionEvent, TransactionType
from ..errors import UnknownPlan, ValidationError
from ..logging.config import get_ledger_logger
from ..persistence.base import JournalStore, UnitOfWork
from ..utils.numeric import DEFAULT_LOT_SIZE, require_lot, to_price
from ..utils.time import Clock, monotonic_timestamp, utc_now
from .cost_basis import CostBasisEngine

logger = get_ledger_logger("transaction_ledger")


def new_id() -> str:
    """Generate a unique identifier for journal records."""
    return uuid.uuid4().hex


class LedgerHistory:
    """
    Ordered, restartable view of a plan's ledger.

    Nothing is read until iteration starts, and every iteration reads a fresh
    committed snapshot ordered by (timestamp, sequence).
    """

    def __init__(self, store: JournalStore, plan_id: str):
        self._store = store
        self.plan_id = plan_id

    def __iter__(self) -> Iterator[TransactionEvent]:
        return iter(self._store.list_events(self.plan_id))


class TransactionLedger:
    """Validates, sequences and persists ledger events."""

    def __init__(self, store: JournalStore,
                 cost_basis: Optional[CostBasisEngine] = None,
                 lot_size: int = DEFAULT_LOT_SIZE,
                 clock: Clock = utc_now,
                 id_factory: Callable[[], str] = new_id):
        self.store = store
        self.cost_basis = cost_basis or CostBasisEngine(store)
        self.lot_size = lot_size
        self.clock = clock
        self.id_factory = id_factory

    def append(self, plan_id: str, type: Union[TransactionType, str], price: Any,
               quantity: Any, logic: Optional[str] = None, *,
               uow: Optional[UnitOfWork] = None,
               timestamp: Optional[datetime] = None) -> TransactionEvent:
        """
        Append an event to a plan's ledger and recompute its aggregates.

        Args:
            plan_id: Target plan
            type: Event type
            price: Execution price, strictly positive
            quantity: Shares, a positive multiple of the lot size
            logic: Free-text rationale captured with the event
            uow: Enclosing unit of work; a new one is opened when omitted
            timestamp: Event time; defaults to the ledger clock

        Returns:
            The persisted event

        Raises:
            InvalidPrice: If price is not positive
            InvalidQuantity: If quantity is not a positive lot multiple
            UnknownPlan: If the plan does not exist
            OverExit: If an exit exceeds the remaining quantity
            ValidationError: If a FULL_EXIT leaves shares open
            ConsistencyError: If the recorded history cannot be replayed
        """
        event_type = TransactionType(type)
        event_price = to_price(price)
        event_quantity = require_lot(quantity, self.lot_size)

        if uow is not None:
            return self._append(uow, plan_id, event_type, event_price, event_quantity, logic, timestamp)

        with self.store.unit_of_work() as own_uow:
            return self._append(own_uow, plan_id, event_type, event_price, event_quantity, logic, timestamp)

    def _append(self, uow: UnitOfWork, plan_id: str, event_type: TransactionType,
                price: Decimal, quantity: int, logic: Optional[str],
                timestamp: Optional[datetime]) -> TransactionEvent:
        plan = uow.get_plan(plan_id)
        if plan is None:
            raise UnknownPlan(plan_id)

        history = uow.list_events(plan_id)
        previous = history[-1].timestamp if history else None

        event = TransactionEvent(
            id=self.id_factory(),
            plan_id=plan_id,
            type=event_type,
            price=price,
            quantity=quantity,
            timestamp=monotonic_timestamp(timestamp or self.clock(), previous),
            sequence=max((e.sequence for e in history), default=0) + 1,
            logic_snapshot=logic,
        )

        self.cost_basis.replay(plan_id, history)
        # Fold before writing so a rejected event never reaches the store
        aggregates = self.cost_basis.fold(history + [event])

        if event_type == TransactionType.FULL_EXIT and aggregates.remaining_quantity != 0:
            raise ValidationError(
                f"FULL_EXIT of {quantity} leaves {aggregates.remaining_quantity} shares open",
                field="quantity",
                value=quantity
            )

        uow.append_event(event)
        uow.save_plan(plan.with_aggregates(aggregates))

        logger.info(
            "Ledger event appended",
            plan_id=plan_id,
            type=event_type.value,
            price=str(price),
            quantity=quantity,
            sequence=event.sequence,
            remaining_quantity=aggregates.remaining_quantity,
            avg_entry_price=str(aggregates.avg_entry_price),
            realized_pnl=str(aggregates.realized_pnl)
        )
        return event

    def list_by_plan(self, plan_id: str) -> LedgerHistory:
        """
        Ordered history of a plan.

        Raises:
            UnknownPlan: If the plan does not exist
        """
        if self.store.get_plan(plan_id) is None:
            raise UnknownPlan(plan_id)
        return LedgerHistory(self.store, plan_id)
