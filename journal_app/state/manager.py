"""
Plan lifecycle manager.

Owns every mutating journal operation. Each one runs under the plan's lock
inside a single unit of work, so the ledger append, the recomputed
aggregates, the status change and the consistency check commit together or
not at all. Notices describing what happened are published only after the
commit.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from ..config.defaults import JournalConfig, get_default_config
from ..config.settings import SettingsStore
from ..data.models import (
    Execution,
    PlanDraft,
    PlanStatus,
    PositionAggregates,
    TradeDirection,
    TradePlan,
    TransactionEvent,
    TransactionType,
)
from ..data.plan_normalizer import PlanNormalizer
from ..errors import (
    ConsistencyError,
    InvalidState,
    OverExit,
    UnknownExecution,
    UnknownPlan,
    ValidationError,
    ZeroRiskDistance,
)
from ..ledger.cost_basis import CostBasisEngine
from ..ledger.transaction_ledger import LedgerHistory, TransactionLedger, new_id
from ..logging.config import get_state_logger, log_admin_action, log_state_transition
from ..notifications.base import JournalNotice, NoticeKind
from ..notifications.dispatcher import NotificationDispatcher
from ..persistence.base import JournalStore, UnitOfWork
from ..risk.guard import RiskGuard
from ..utils.numeric import HUNDRED, ZERO, quantize_percent, to_price
from ..utils.time import Clock, utc_now
from .locks import PlanLockRegistry
from .transitions import require_status, require_transition

logger = get_state_logger(__name__)

TRIM_TO_FLAT_SUFFIX = " (trimmed to flat)"


@dataclass
class _Mutation:
    """Working context of one locked, transactional plan mutation."""
    uow: UnitOfWork
    plan: TradePlan
    notices: list[JournalNotice] = field(default_factory=list)

    def notify(self, kind: NoticeKind, timestamp: datetime, **payload: Any) -> None:
        self.notices.append(JournalNotice(kind=kind, plan_id=self.plan.id,
                                          timestamp=timestamp, payload=payload))


def _require_text(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required", field=field_name, value=value)
    return str(value).strip()


def realized_pnl_percent(realized_pnl: Decimal, avg_entry_price: Optional[Decimal],
                         total_quantity: int) -> Decimal:
    """Realized PnL as a percentage of total capital deployed (2 dp)."""
    if avg_entry_price is None or total_quantity == 0:
        return quantize_percent(ZERO)
    invested = avg_entry_price * total_quantity
    if invested == ZERO:
        return quantize_percent(ZERO)
    return quantize_percent(realized_pnl / invested * HUNDRED)


class PlanLifecycleManager:
    """Drives plans through PENDING -> OPEN -> CLOSED, or PENDING -> CANCELLED."""

    def __init__(self, store: JournalStore,
                 config: Optional[JournalConfig] = None,
                 settings: Optional[SettingsStore] = None,
                 dispatcher: Optional[NotificationDispatcher] = None,
                 clock: Clock = utc_now,
                 id_factory: Callable[[], str] = new_id):
        self.config = config or get_default_config()
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.lot_size = self.config.ledger.lot_size

        self.settings = settings or SettingsStore(self.config.settings)
        self.dispatcher = dispatcher
        self.locks = PlanLockRegistry()
        self.normalizer = PlanNormalizer()
        self.risk_guard = RiskGuard(self.config.risk, self.lot_size)
        self.cost_basis = CostBasisEngine(store)
        self.ledger = TransactionLedger(
            store,
            cost_basis=self.cost_basis,
            lot_size=self.lot_size,
            clock=clock,
            id_factory=id_factory,
        )
        self.logger = logger

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _mutation(self, plan_id: str, operation: Optional[str]) -> Iterator[_Mutation]:
        """
        Lock the plan, open a unit of work and check the operation is allowed.

        Notices queued on the context are published after the commit.
        """
        with self.locks.hold(plan_id):
            with self.store.unit_of_work() as uow:
                plan = uow.get_plan(plan_id)
                if plan is None:
                    raise UnknownPlan(plan_id)
                if operation is not None:
                    try:
                        require_status(plan, operation)
                    except InvalidState:
                        self._release_if_terminal(plan)
                        raise
                mutation = _Mutation(uow=uow, plan=plan)
                yield mutation

        self._release_if_terminal(mutation.plan)
        self._publish(mutation.notices)

    def _release_if_terminal(self, plan: TradePlan) -> None:
        # Closed and cancelled plans take no further ledger writes
        if plan.is_terminal:
            self.locks.discard(plan.id)

    def _publish(self, notices: list[JournalNotice]) -> None:
        if self.dispatcher is not None and notices:
            self.dispatcher.publish(notices)

    def _commit_plan(self, mutation: _Mutation, plan: TradePlan) -> TradePlan:
        """Verify the plan against its staged ledger and stage it for commit."""
        try:
            self.cost_basis.verify(plan, mutation.uow.list_events(plan.id))
        except ConsistencyError:
            self.logger.critical("Aborting operation on inconsistent plan", plan_id=plan.id)
            raise
        mutation.uow.save_plan(plan)
        mutation.plan = plan
        return plan

    def _append(self, mutation: _Mutation, event_type: TransactionType, price: Decimal,
                quantity: int, logic: Optional[str]) -> tuple[TransactionEvent, TradePlan]:
        event = self.ledger.append(mutation.plan.id, event_type, price, quantity, logic, uow=mutation.uow)
        plan = mutation.uow.get_plan(mutation.plan.id)
        if plan is None:
            raise UnknownPlan(mutation.plan.id)
        return event, plan

    def _build_execution(self, plan: TradePlan, exit_price: Decimal, exit_logic: str,
                         emotional_state: Optional[str], timestamp: datetime,
                         trimmed_to_flat: bool) -> Execution:
        return Execution(
            id=self.id_factory(),
            plan_id=plan.id,
            exit_price=exit_price,
            realized_pnl=plan.realized_pnl,
            realized_pnl_percent=realized_pnl_percent(
                plan.realized_pnl, plan.avg_entry_price, plan.total_quantity
            ),
            exit_logic=exit_logic,
            created_at=timestamp,
            emotional_state=emotional_state,
            trimmed_to_flat=trimmed_to_flat,
        )

    def _finalize_close(self, mutation: _Mutation, plan: TradePlan, event: TransactionEvent,
                        exit_logic: str, emotional_state: Optional[str],
                        trimmed_to_flat: bool, trigger: str) -> Execution:
        require_transition(mutation.plan, PlanStatus.CLOSED, trigger)
        closed = plan.with_status(PlanStatus.CLOSED, event.timestamp)
        execution = self._build_execution(
            closed, event.price, exit_logic, emotional_state, event.timestamp, trimmed_to_flat
        )
        self._commit_plan(mutation, closed)
        mutation.uow.save_execution(execution)

        log_state_transition(
            self.logger, plan.id, PlanStatus.OPEN.value, PlanStatus.CLOSED.value, trigger,
            {"realized_pnl": str(closed.realized_pnl), "execution_id": execution.id}
        )
        mutation.notify(
            NoticeKind.PLAN_CLOSED,
            event.timestamp,
            execution_id=execution.id,
            exit_price=execution.exit_price,
            realized_pnl=execution.realized_pnl,
            realized_pnl_percent=execution.realized_pnl_percent,
            trimmed_to_flat=trimmed_to_flat,
        )
        return execution

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_plan(self, draft: Union[PlanDraft, dict[str, Any]]) -> TradePlan:
        """
        Create a PENDING plan after the pre-trade discipline checks.

        Args:
            draft: PlanDraft or raw mapping accepted by PlanNormalizer

        Returns:
            The stored plan

        Raises:
            ValidationError: Malformed draft, SHORT direction or bad lot
            RiskRejected: Risk/reward below the critical threshold or zero risk distance
        """
        if not isinstance(draft, PlanDraft):
            draft = self.normalizer.normalize_plan(draft).unwrap()

        if draft.direction != TradeDirection.LONG:
            raise ValidationError(
                f"Only LONG plans are supported, got {draft.direction.value}",
                field="direction",
                value=draft.direction.value
            )

        symbol = _require_text(draft.symbol, "symbol")
        entry_logic = _require_text(draft.entry_logic, "entry_logic")
        entry = to_price(draft.entry_price, "entry_price")
        stop = to_price(draft.stop_loss, "stop_loss")
        target = to_price(draft.take_profit, "take_profit")

        plan_id = self.id_factory()
        assessment = self.risk_guard.check_risk_reward(entry, stop, target, plan_id=plan_id)

        if draft.quantity is not None:
            quantity = self.risk_guard.validate_lot(draft.quantity)
        else:
            account = self.settings.get()
            sizing = self.risk_guard.suggested_position_size(
                account.total_capital, account.risk_percent, entry, stop
            )
            if sizing.zero_risk_distance:
                raise ZeroRiskDistance(f"Entry price {entry} equals stop loss; cannot size position")
            quantity = sizing.quantity

        now = self.clock()
        plan = TradePlan(
            id=plan_id,
            symbol=symbol,
            display_name=draft.display_name,
            direction=draft.direction,
            planned_entry_price=entry,
            stop_loss=stop,
            take_profit=target,
            planned_quantity=quantity,
            risk_reward_ratio=assessment.ratio,
            discipline_warning=assessment.discipline_warning,
            entry_logic=entry_logic,
            status=PlanStatus.PENDING,
            created_at=now,
        )

        with self.locks.hold(plan_id):
            with self.store.unit_of_work() as uow:
                uow.save_plan(plan)

        log_state_transition(
            self.logger, plan.id, None, PlanStatus.PENDING.value, "create_plan",
            {"symbol": symbol, "risk_reward_ratio": str(assessment.ratio), "quantity": quantity}
        )

        notices = [JournalNotice(
            kind=NoticeKind.PLAN_CREATED,
            plan_id=plan.id,
            timestamp=now,
            payload={"symbol": symbol, "planned_quantity": quantity,
                     "risk_reward_ratio": assessment.ratio},
        )]
        if assessment.discipline_warning:
            notices.append(JournalNotice(
                kind=NoticeKind.DISCIPLINE_WARNING,
                plan_id=plan.id,
                timestamp=now,
                payload={"risk_reward_ratio": assessment.ratio,
                         "recommended_minimum": self.risk_guard.warning_threshold},
            ))
        self._publish(notices)
        return plan

    def execute(self, plan_id: str, actual_price: Any, quantity: Any,
                logic: Optional[str] = None) -> TradePlan:
        """
        Fill a PENDING plan: INITIAL_ENTRY and PENDING -> OPEN.

        Raises:
            InvalidPrice, InvalidQuantity: Bad fill input
            UnknownPlan, InvalidState: Plan missing or not PENDING
        """
        price = to_price(actual_price, "actual_price")
        shares = self.risk_guard.validate_lot(quantity)

        with self._mutation(plan_id, "execute") as m:
            event, plan = self._append(
                m, TransactionType.INITIAL_ENTRY, price, shares, logic or m.plan.entry_logic
            )
            require_transition(m.plan, PlanStatus.OPEN, "execute")
            plan = self._commit_plan(m, plan.with_status(PlanStatus.OPEN))

            log_state_transition(
                self.logger, plan_id, PlanStatus.PENDING.value, PlanStatus.OPEN.value, "execute",
                {"price": str(price), "quantity": shares}
            )
            m.notify(NoticeKind.POSITION_OPENED, event.timestamp,
                     price=price, quantity=shares, avg_entry_price=plan.avg_entry_price)

        return plan

    def add_position(self, plan_id: str, price: Any, quantity: Any,
                     logic: Optional[str] = None) -> TradePlan:
        """
        Add to an OPEN position; the average entry price is re-weighted.

        Raises:
            InvalidPrice, InvalidQuantity: Bad input
            UnknownPlan, InvalidState: Plan missing or not OPEN
        """
        add_price = to_price(price, "price")
        shares = self.risk_guard.validate_lot(quantity)

        with self._mutation(plan_id, "add_position") as m:
            event, plan = self._append(m, TransactionType.ADD_POSITION, add_price, shares, logic)
            plan = self._commit_plan(m, plan)

            log_state_transition(
                self.logger, plan_id, PlanStatus.OPEN.value, PlanStatus.OPEN.value, "add_position",
                {"price": str(add_price), "quantity": shares,
                 "avg_entry_price": str(plan.avg_entry_price)}
            )
            m.notify(NoticeKind.POSITION_ADDED, event.timestamp,
                     price=add_price, quantity=shares, avg_entry_price=plan.avg_entry_price,
                     remaining_quantity=plan.remaining_quantity)

        return plan

    def trim(self, plan_id: str, exit_price: Any, exit_quantity: Any, logic: str,
             new_stop_loss: Any = None, new_take_profit: Any = None,
             move_stop_to_break_even: bool = False,
             emotional_state: Optional[str] = None) -> TradePlan:
        """
        Partially exit an OPEN position.

        Realized PnL is booked against the current average entry price. A trim
        that empties the position closes the plan exactly like close() would,
        including its Execution record. Otherwise stop loss and take profit may
        be re-based; move_stop_to_break_even sets the stop to the average entry.

        Raises:
            ValidationError: Missing logic, conflicting stop arguments or bad input
            OverExit: exit_quantity exceeds the remaining quantity
            UnknownPlan, InvalidState: Plan missing or not OPEN
        """
        trim_logic = _require_text(logic, "logic")
        price = to_price(exit_price, "exit_price")
        shares = self.risk_guard.validate_lot(exit_quantity, "exit_quantity")

        if move_stop_to_break_even and new_stop_loss is not None:
            raise ValidationError(
                "new_stop_loss cannot be combined with move_stop_to_break_even",
                field="new_stop_loss",
                value=new_stop_loss
            )
        stop = to_price(new_stop_loss, "new_stop_loss") if new_stop_loss is not None else None
        target = to_price(new_take_profit, "new_take_profit") if new_take_profit is not None else None

        with self._mutation(plan_id, "trim") as m:
            if shares > m.plan.remaining_quantity:
                raise OverExit(
                    f"Cannot trim {shares} shares; only {m.plan.remaining_quantity} remain",
                    requested=shares,
                    remaining=m.plan.remaining_quantity
                )

            event, plan = self._append(m, TransactionType.PARTIAL_EXIT, price, shares, trim_logic)
            m.notify(NoticeKind.POSITION_TRIMMED, event.timestamp,
                     price=price, quantity=shares, remaining_quantity=plan.remaining_quantity,
                     realized_pnl=plan.realized_pnl)

            if plan.remaining_quantity == 0:
                self._finalize_close(
                    m, plan, event, trim_logic + TRIM_TO_FLAT_SUFFIX, emotional_state,
                    trimmed_to_flat=True, trigger="trim"
                )
                return m.plan

            if move_stop_to_break_even:
                stop = plan.avg_entry_price
            plan = self._commit_plan(m, plan.with_targets(stop, target))

            log_state_transition(
                self.logger, plan_id, PlanStatus.OPEN.value, PlanStatus.OPEN.value, "trim",
                {"price": str(price), "quantity": shares,
                 "remaining_quantity": plan.remaining_quantity,
                 "stop_loss": str(plan.stop_loss), "take_profit": str(plan.take_profit)}
            )

        return plan

    def close(self, plan_id: str, exit_price: Any, exit_logic: str,
              emotional_state: Optional[str] = None) -> Execution:
        """
        Exit the whole remaining position: FULL_EXIT and OPEN -> CLOSED.

        Returns:
            Execution carrying the final realized PnL and its percentage of
            capital deployed

        Raises:
            ValidationError: Missing exit logic or bad price
            UnknownPlan, InvalidState: Plan missing or not OPEN
        """
        logic = _require_text(exit_logic, "exit_logic")
        price = to_price(exit_price, "exit_price")

        with self._mutation(plan_id, "close") as m:
            event, plan = self._append(m, TransactionType.FULL_EXIT, price, m.plan.remaining_quantity, logic)
            execution = self._finalize_close(
                m, plan, event, logic, emotional_state, trimmed_to_flat=False, trigger="close"
            )

        return execution

    def cancel(self, plan_id: str) -> TradePlan:
        """
        Abandon a PENDING plan; no ledger events are written.

        Raises:
            UnknownPlan, InvalidState: Plan missing or not PENDING
        """
        with self._mutation(plan_id, "cancel") as m:
            require_transition(m.plan, PlanStatus.CANCELLED, "cancel")
            plan = self._commit_plan(m, m.plan.with_status(PlanStatus.CANCELLED))

            log_state_transition(
                self.logger, plan_id, PlanStatus.PENDING.value, PlanStatus.CANCELLED.value, "cancel"
            )
            m.notify(NoticeKind.PLAN_CANCELLED, self.clock(), symbol=plan.symbol)

        return plan

    def delete(self, plan_id: str) -> None:
        """
        Administratively remove a plan with its events and executions.

        Works in any status and skips consistency checks.

        Raises:
            UnknownPlan: If the plan does not exist
        """
        with self._mutation(plan_id, None) as m:
            events = m.uow.list_events(plan_id)
            m.uow.delete_plan(plan_id)

            log_admin_action(
                self.logger, "admin_delete", plan_id,
                {"status": m.plan.status.value, "events_removed": len(events)}
            )
            m.notify(NoticeKind.PLAN_DELETED, self.clock(),
                     symbol=m.plan.symbol, status=m.plan.status.value)

        self.locks.discard(plan_id)

    def delete_by_symbol(self, symbol: str) -> list[str]:
        """
        Administratively remove every plan of a symbol.

        Each plan is deleted under its own lock, as by delete().

        Returns:
            Identifiers of the deleted plans

        Raises:
            UnknownPlan: If no plan has the symbol
        """
        symbol = _require_text(symbol, "symbol")
        plan_ids = [plan.id for plan in self.store.list_plans() if plan.symbol == symbol]
        if not plan_ids:
            raise UnknownPlan(symbol, context={"symbol": symbol})

        deleted = []
        for plan_id in plan_ids:
            try:
                self.delete(plan_id)
            except UnknownPlan:
                # Removed concurrently
                self.logger.debug("Plan already deleted", plan_id=plan_id, symbol=symbol)
                continue
            deleted.append(plan_id)

        self.logger.warning("Deleted plans by symbol", symbol=symbol, deleted_count=len(deleted))
        return deleted

    def request_review(self, execution_id: str) -> Execution:
        """
        Announce a committed close again so subscribers can (re)analyse it.

        Publishes a PLAN_CLOSED notice flagged with review_requested; nothing
        is written to the store.

        Raises:
            UnknownExecution: No such execution
        """
        execution = self.store.get_execution(execution_id)
        if execution is None:
            raise UnknownExecution(execution_id)

        self._publish([JournalNotice(
            kind=NoticeKind.PLAN_CLOSED,
            plan_id=execution.plan_id,
            timestamp=self.clock(),
            payload={
                "execution_id": execution.id,
                "exit_price": execution.exit_price,
                "realized_pnl": execution.realized_pnl,
                "realized_pnl_percent": execution.realized_pnl_percent,
                "trimmed_to_flat": execution.trimmed_to_flat,
                "review_requested": True,
            },
        )])
        self.logger.info("Requested execution review", execution_id=execution_id,
                         plan_id=execution.plan_id)
        return execution

    def record_review(self, execution_id: str, score: Any,
                      comment: Optional[str] = None) -> Execution:
        """
        Store a post-close review on an Execution.

        Raises:
            ValidationError: Score is not an integer in 0..100
            UnknownExecution: No such execution
        """
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
            raise ValidationError("score must be an integer between 0 and 100", field="score", value=score)

        execution = self.store.get_execution(execution_id)
        if execution is None:
            raise UnknownExecution(execution_id)

        with self.locks.hold(execution.plan_id):
            with self.store.unit_of_work() as uow:
                current = uow.get_execution(execution_id)
                if current is None:
                    raise UnknownExecution(execution_id)
                reviewed = current.with_review(score, comment)
                uow.save_execution(reviewed)

        # Only closed plans carry executions
        self.locks.discard(reviewed.plan_id)
        self.logger.info("Recorded execution review", execution_id=execution_id,
                         plan_id=reviewed.plan_id, review_score=score)
        return reviewed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_plan(self, plan_id: str) -> TradePlan:
        """
        Committed plan.

        Raises:
            UnknownPlan: If the plan does not exist
        """
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise UnknownPlan(plan_id)
        return plan

    def list_plans(self, status: Optional[PlanStatus] = None) -> list[TradePlan]:
        return self.store.list_plans(status)

    def list_transactions(self, plan_id: str) -> LedgerHistory:
        return self.ledger.list_by_plan(plan_id)

    def list_executions(self, plan_id: Optional[str] = None) -> list[Execution]:
        if plan_id is not None:
            self.get_plan(plan_id)
        return self.store.list_executions(plan_id)

    def verify_plan(self, plan_id: str) -> PositionAggregates:
        """
        Replay the committed ledger and compare with the stored aggregates.

        Raises:
            UnknownPlan: If the plan does not exist
            ConsistencyError: If they differ
        """
        with self.locks.hold(plan_id):
            plan = self.get_plan(plan_id)
            replayed = self.cost_basis.verify(plan)
        self._release_if_terminal(plan)
        return replayed
