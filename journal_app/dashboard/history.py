"""
Closed-trade history and open risk exposure.

Read-only summaries over committed executions and plans, used by the
history and overview screens.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..data.models import Execution, PlanStatus, TradePlan
from ..utils.numeric import HUNDRED, ZERO, quantize_money, quantize_percent, quantize_r_multiple, to_decimal
from .projector import r_multiple


@dataclass(frozen=True)
class HistoryEntry:
    """One closed trade."""
    execution_id: str
    plan_id: str
    symbol: str
    display_name: Optional[str]
    exit_price: Decimal
    realized_pnl: Decimal
    realized_pnl_percent: Decimal
    r_multiple: Optional[Decimal]
    exit_logic: str
    closed_at: datetime
    emotional_state: Optional[str] = None
    trimmed_to_flat: bool = False
    review_score: Optional[int] = None


@dataclass(frozen=True)
class HistorySummary:
    """Aggregate statistics over closed trades."""
    total_trades: int
    wins: int
    losses: int
    break_even: int
    total_pnl: Decimal
    average_pnl_percent: Decimal
    win_rate: Decimal            # percent of trades with positive PnL
    total_r: Decimal             # sum over trades whose R is available


@dataclass(frozen=True)
class ExposureSummary:
    """Capital at risk across open positions."""
    open_positions: int
    capital_at_risk: Decimal     # loss if every open position hits its stop
    cost_of_positions: Decimal   # average cost of remaining shares
    risk_percent_of_capital: Decimal


def build_history(executions: Iterable[Execution], plans: Iterable[TradePlan]) -> list[HistoryEntry]:
    """
    Join close records with their plans, newest first.

    R-multiple uses the plan's average entry, its current stop loss and the
    total quantity bought; it is None when that risk is zero, e.g. after the
    stop was moved to break-even.
    """
    by_id = {plan.id: plan for plan in plans}
    entries = []

    for execution in executions:
        plan = by_id.get(execution.plan_id)
        if plan is None:
            continue
        entries.append(HistoryEntry(
            execution_id=execution.id,
            plan_id=plan.id,
            symbol=plan.symbol,
            display_name=plan.display_name,
            exit_price=execution.exit_price,
            realized_pnl=execution.realized_pnl,
            realized_pnl_percent=execution.realized_pnl_percent,
            r_multiple=r_multiple(execution.realized_pnl, plan.cost_basis,
                                  plan.stop_loss, plan.total_quantity),
            exit_logic=execution.exit_logic,
            closed_at=execution.created_at,
            emotional_state=execution.emotional_state,
            trimmed_to_flat=execution.trimmed_to_flat,
            review_score=execution.review_score,
        ))

    entries.sort(key=lambda e: (e.closed_at, e.execution_id), reverse=True)
    return entries


def summarize_history(entries: Iterable[HistoryEntry]) -> HistorySummary:
    """Win/loss counts, PnL totals and R totals."""
    entries = list(entries)
    total = len(entries)
    wins = sum(1 for e in entries if e.realized_pnl > ZERO)
    losses = sum(1 for e in entries if e.realized_pnl < ZERO)

    total_pnl = sum((e.realized_pnl for e in entries), ZERO)
    total_r = sum((e.r_multiple for e in entries if e.r_multiple is not None), ZERO)

    if total:
        average_pct = sum((e.realized_pnl_percent for e in entries), ZERO) / total
        win_rate = Decimal(wins) / total * HUNDRED
    else:
        average_pct = ZERO
        win_rate = ZERO

    return HistorySummary(
        total_trades=total,
        wins=wins,
        losses=losses,
        break_even=total - wins - losses,
        total_pnl=quantize_money(total_pnl),
        average_pnl_percent=quantize_percent(average_pct),
        win_rate=quantize_percent(win_rate),
        total_r=quantize_r_multiple(total_r),
    )


def risk_exposure(plans: Iterable[TradePlan], capital: Any) -> ExposureSummary:
    """Capital at risk over OPEN plans, also as a share of total capital."""
    open_plans = [p for p in plans if p.status == PlanStatus.OPEN and p.remaining_quantity > 0]

    at_risk = ZERO
    cost = ZERO
    for plan in open_plans:
        basis = plan.cost_basis
        at_risk += max(basis - plan.stop_loss, ZERO) * plan.remaining_quantity
        cost += basis * plan.remaining_quantity

    total_capital = to_decimal(capital, "capital")
    share = at_risk / total_capital * HUNDRED if total_capital > ZERO else ZERO

    return ExposureSummary(
        open_positions=len(open_plans),
        capital_at_risk=quantize_money(at_risk),
        cost_of_positions=quantize_money(cost),
        risk_percent_of_capital=quantize_percent(share),
    )
