"""
Journal data models.

This module defines immutable data structures for trade plans, ledger events,
close records and dashboard views. A plan is one canonical entity; live market
figures are attached by the dashboard projector in a DashboardView rather than
through a second plan type.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ..utils.numeric import ZERO


class PlanStatus(str, Enum):
    """Plan lifecycle states."""
    PENDING = "PENDING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (PlanStatus.CLOSED, PlanStatus.CANCELLED)


class TradeDirection(str, Enum):
    """Trade direction. Only LONG plans are accepted."""
    LONG = "LONG"
    SHORT = "SHORT"


class TransactionType(str, Enum):
    """Ledger event types."""
    INITIAL_ENTRY = "INITIAL_ENTRY"
    ADD_POSITION = "ADD_POSITION"
    PARTIAL_EXIT = "PARTIAL_EXIT"
    FULL_EXIT = "FULL_EXIT"

    @property
    def is_buy(self) -> bool:
        return self in (TransactionType.INITIAL_ENTRY, TransactionType.ADD_POSITION)


class RiskRewardLevel(str, Enum):
    """Risk/reward screening bands."""
    CRITICAL = "CRITICAL"        # below critical threshold, blocks creation
    WARNING = "WARNING"          # passes, caller surfaces a discipline warning
    ACCEPTABLE = "ACCEPTABLE"


class RiskLevel(str, Enum):
    """Dashboard risk banding relative to the stop loss."""
    SAFE = "SAFE"
    DANGER = "DANGER"


@dataclass(frozen=True)
class PositionAggregates:
    """Derived economics produced by folding a plan's ledger."""

    avg_entry_price: Optional[Decimal] = None
    total_quantity: int = 0                          # cumulative ever bought
    remaining_quantity: int = 0                      # current open size
    realized_pnl: Decimal = ZERO                     # booked by trims/exits

    def as_dict(self) -> dict[str, Any]:
        return {
            "avg_entry_price": self.avg_entry_price,
            "total_quantity": self.total_quantity,
            "remaining_quantity": self.remaining_quantity,
            "realized_pnl": self.realized_pnl,
        }


@dataclass(frozen=True)
class PlanDraft:
    """Caller-supplied input for creating a plan."""

    symbol: str
    entry_price: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    entry_logic: str
    quantity: Optional[int] = None                   # None -> suggested from settings
    display_name: Optional[str] = None
    direction: TradeDirection = TradeDirection.LONG


@dataclass(frozen=True)
class TradePlan:
    """One trading idea, from proposal to close."""

    # Identity and instrument
    id: str
    symbol: str

    # Planned economics
    planned_entry_price: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    planned_quantity: int
    risk_reward_ratio: Decimal

    entry_logic: str
    status: PlanStatus
    created_at: datetime

    display_name: Optional[str] = None
    direction: TradeDirection = TradeDirection.LONG
    discipline_warning: bool = False

    # Derived economics, owned by the cost-basis engine
    avg_entry_price: Optional[Decimal] = None
    total_quantity: int = 0
    remaining_quantity: int = 0
    realized_pnl: Decimal = ZERO

    closed_at: Optional[datetime] = None

    @property
    def aggregates(self) -> PositionAggregates:
        return PositionAggregates(
            avg_entry_price=self.avg_entry_price,
            total_quantity=self.total_quantity,
            remaining_quantity=self.remaining_quantity,
            realized_pnl=self.realized_pnl,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def cost_basis(self) -> Decimal:
        """Average entry price once filled, planned entry price before."""
        if self.avg_entry_price is not None:
            return self.avg_entry_price
        return self.planned_entry_price

    def with_aggregates(self, aggregates: PositionAggregates) -> 'TradePlan':
        """Create new plan version carrying recomputed aggregates."""
        return replace(
            self,
            avg_entry_price=aggregates.avg_entry_price,
            total_quantity=aggregates.total_quantity,
            remaining_quantity=aggregates.remaining_quantity,
            realized_pnl=aggregates.realized_pnl,
        )

    def with_status(self, status: PlanStatus, timestamp: Optional[datetime] = None) -> 'TradePlan':
        """Create new plan version with updated status; CLOSED stamps closed_at."""
        closed_at = self.closed_at
        if status == PlanStatus.CLOSED and timestamp is not None:
            closed_at = timestamp
        return replace(self, status=status, closed_at=closed_at)

    def with_targets(self, stop_loss: Optional[Decimal] = None,
                     take_profit: Optional[Decimal] = None) -> 'TradePlan':
        """Create new plan version with re-based stop loss and/or take profit."""
        return replace(
            self,
            stop_loss=stop_loss if stop_loss is not None else self.stop_loss,
            take_profit=take_profit if take_profit is not None else self.take_profit,
        )


@dataclass(frozen=True)
class TransactionEvent:
    """Immutable ledger entry."""

    id: str
    plan_id: str
    type: TransactionType
    price: Decimal
    quantity: int
    timestamp: datetime
    sequence: int                                    # per-plan insertion order, 1-based
    logic_snapshot: Optional[str] = None


@dataclass(frozen=True)
class Execution:
    """Close record written when a plan reaches CLOSED."""

    id: str
    plan_id: str
    exit_price: Decimal
    realized_pnl: Decimal
    realized_pnl_percent: Decimal
    exit_logic: str
    created_at: datetime
    emotional_state: Optional[str] = None
    trimmed_to_flat: bool = False

    # Written back by the external post-close reviewer
    review_score: Optional[int] = None
    review_comment: Optional[str] = None

    def with_review(self, score: int, comment: Optional[str]) -> 'Execution':
        return replace(self, review_score=score, review_comment=comment)


@dataclass(frozen=True)
class DashboardView:
    """A plan combined with live market figures for display."""

    plan: TradePlan
    current_price: Decimal
    price_available: bool
    pnl_amount: Decimal                              # unrealized, remaining quantity only
    pnl_percentage: Decimal
    distance_to_stop_loss: Decimal
    risk_level: RiskLevel
    r_multiple: Optional[Decimal] = None             # None means not displayable

    @property
    def plan_id(self) -> str:
        return self.plan.id

    @property
    def realized_pnl(self) -> Decimal:
        return self.plan.realized_pnl


@dataclass(frozen=True)
class AccountSettings:
    """Capital and per-trade risk used for position sizing."""

    total_capital: Decimal
    risk_percent: Decimal
    extra: dict[str, Any] = field(default_factory=dict)
