"""
Weighted-average cost basis.

Derives a plan's position economics purely from its ledger events. Buys move
the average entry price; exits book realized PnL against the current average
and never move it.

Fold rules, applied in (timestamp, sequence) order:
- INITIAL_ENTRY / ADD_POSITION: total_cost += price * qty,
  total_quantity += qty, remaining += qty, avg = total_cost / total_quantity
- PARTIAL_EXIT / FULL_EXIT: realized += (price - avg) * qty, remaining -= qty
"""

from collections.abc import Iterable
from typing import Optional

from ..data.models import PositionAggregates, TradePlan, TransactionEvent, TransactionType
from ..errors import ConsistencyError, OverExit
from ..logging.config import get_ledger_logger
from ..persistence.base import JournalStore, event_order
from ..utils.numeric import ZERO, quantize_money, quantize_price

logger = get_ledger_logger("cost_basis")


class CostBasisEngine:
    """Stateless fold from ledger events to position aggregates."""

    def __init__(self, store: Optional[JournalStore] = None):
        self.store = store

    def fold(self, events: Iterable[TransactionEvent]) -> PositionAggregates:
        """
        Replay events into aggregates.

        Args:
            events: Ledger events of a single plan, in any order

        Returns:
            PositionAggregates for the replayed history

        Raises:
            OverExit: If an exit exceeds the remaining quantity
            ConsistencyError: If the history is structurally corrupt
        """
        total_cost = ZERO
        total_quantity = 0
        remaining = 0
        realized = ZERO
        avg = None
        seen_entry = False

        for event in sorted(events, key=event_order):
            if event.type == TransactionType.INITIAL_ENTRY:
                if seen_entry:
                    raise ConsistencyError(
                        f"Second initial entry in ledger of plan {event.plan_id}",
                        plan_id=event.plan_id
                    )
                seen_entry = True
            elif not seen_entry:
                raise ConsistencyError(
                    f"{event.type.value} precedes initial entry in ledger of plan {event.plan_id}",
                    plan_id=event.plan_id
                )

            if event.type.is_buy:
                total_cost += event.price * event.quantity
                total_quantity += event.quantity
                remaining += event.quantity
                avg = quantize_price(total_cost / total_quantity)
            else:
                if event.quantity > remaining:
                    raise OverExit(
                        f"Exit quantity {event.quantity} exceeds remaining quantity {remaining}",
                        requested=event.quantity,
                        remaining=remaining
                    )
                realized += quantize_money((event.price - avg) * event.quantity)
                remaining -= event.quantity

        return PositionAggregates(
            avg_entry_price=avg,
            total_quantity=total_quantity,
            remaining_quantity=remaining,
            realized_pnl=realized,
        )

    def recompute(self, plan_id: str) -> PositionAggregates:
        """Fold the committed ledger history of a plan."""
        if self.store is None:
            raise ValueError("CostBasisEngine.recompute requires a store")
        return self.replay(plan_id, self.store.list_events(plan_id))

    def replay(self, plan_id: str, events: Iterable[TransactionEvent]) -> PositionAggregates:
        """
        Fold a recorded history.

        A recorded history that over-exits is corruption, not a rejected
        request, so it surfaces as ConsistencyError.
        """
        try:
            return self.fold(events)
        except OverExit as e:
            logger.critical(
                "Ledger history exits more than it holds",
                plan_id=plan_id,
                requested=e.requested,
                remaining=e.remaining
            )
            raise ConsistencyError(
                f"Ledger history of plan {plan_id} is not replayable: {e.message}",
                plan_id=plan_id
            ) from e

    def verify(self, plan: TradePlan,
               events: Optional[Iterable[TransactionEvent]] = None) -> PositionAggregates:
        """
        Check that a plan's stored aggregates equal the replay of its ledger.

        Args:
            plan: Plan carrying the stored aggregates
            events: History to replay; the committed history when omitted

        Raises:
            ConsistencyError: If stored and replayed aggregates differ, or the
                history itself cannot be replayed
        """
        if events is None:
            replayed = self.recompute(plan.id)
        else:
            replayed = self.replay(plan.id, events)

        stored = plan.aggregates
        if stored != replayed:
            logger.critical(
                "Stored aggregates diverge from ledger replay",
                plan_id=plan.id,
                stored=stored.as_dict(),
                replayed=replayed.as_dict()
            )
            raise ConsistencyError(
                f"Stored aggregates of plan {plan.id} diverge from ledger replay",
                plan_id=plan.id,
                stored=stored.as_dict(),
                replayed=replayed.as_dict()
            )
        return replayed
