"""
Pre-trade risk discipline.

The guard is pure: it computes and classifies, it never touches the ledger.

Risk/reward:
    ratio = |take_profit - entry| / |entry - stop_loss|
    CRITICAL   ratio < critical_risk_reward            -> plan rejected
    WARNING    critical <= ratio < warning_risk_reward -> plan carries a warning
    ACCEPTABLE ratio >= warning_risk_reward

Position sizing:
    shares = floor(capital * risk_percent / |entry - stop_loss|)
    rounded down to a lot multiple, never below one lot
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from ..config.defaults import RiskParams
from ..data.models import RiskRewardLevel
from ..errors import CriticalRiskReward, ZeroRiskDistance
from ..logging.config import get_risk_logger, log_risk_decision
from ..utils.numeric import (
    DEFAULT_LOT_SIZE,
    ZERO,
    floor_int,
    floor_to_lot,
    quantize_money,
    quantize_ratio,
    require_lot,
    to_decimal,
    to_price,
)

logger = get_risk_logger("guard")


@dataclass(frozen=True)
class RiskAssessment:
    """Risk/reward ratio with its screening band."""
    ratio: Decimal
    level: RiskRewardLevel

    @property
    def passed(self) -> bool:
        return self.level != RiskRewardLevel.CRITICAL

    @property
    def discipline_warning(self) -> bool:
        return self.level == RiskRewardLevel.WARNING


@dataclass(frozen=True)
class PositionSizing:
    """Suggested quantity for a capital-at-risk budget."""
    quantity: int
    risk_amount: Decimal             # capital * risk_percent
    risk_per_share: Decimal          # |entry - stop_loss|
    zero_risk_distance: bool = False


class RiskGuard:
    """Risk/reward screening, lot validation and position sizing."""

    def __init__(self, params: Optional[RiskParams] = None, lot_size: int = DEFAULT_LOT_SIZE):
        params = params or RiskParams()
        self.critical_threshold = to_decimal(params.critical_risk_reward, "critical_risk_reward")
        self.warning_threshold = to_decimal(params.warning_risk_reward, "warning_risk_reward")
        self.lot_size = lot_size

    def _raw_ratio(self, entry: Decimal, stop: Decimal, target: Decimal) -> Decimal:
        risk = abs(entry - stop)
        if risk == ZERO:
            raise ZeroRiskDistance(
                f"Entry price {entry} equals stop loss; risk per share is zero",
                context={"entry_price": str(entry), "stop_loss": str(stop)}
            )
        return abs(target - entry) / risk

    def risk_reward_ratio(self, entry_price: Any, stop_loss: Any, take_profit: Any) -> Decimal:
        """
        Risk/reward ratio rounded to 4 decimal places.

        Raises:
            InvalidPrice: If any price is not positive
            ZeroRiskDistance: If entry equals stop loss
        """
        entry = to_price(entry_price, "entry_price")
        stop = to_price(stop_loss, "stop_loss")
        target = to_price(take_profit, "take_profit")
        return quantize_ratio(self._raw_ratio(entry, stop, target))

    def assess_risk_reward(self, entry_price: Any, stop_loss: Any, take_profit: Any) -> RiskAssessment:
        """Classify the ratio; banding uses the unrounded value."""
        entry = to_price(entry_price, "entry_price")
        stop = to_price(stop_loss, "stop_loss")
        target = to_price(take_profit, "take_profit")

        raw = self._raw_ratio(entry, stop, target)
        if raw < self.critical_threshold:
            level = RiskRewardLevel.CRITICAL
        elif raw < self.warning_threshold:
            level = RiskRewardLevel.WARNING
        else:
            level = RiskRewardLevel.ACCEPTABLE

        return RiskAssessment(ratio=quantize_ratio(raw), level=level)

    def check_risk_reward(self, entry_price: Any, stop_loss: Any, take_profit: Any,
                          plan_id: Optional[str] = None) -> RiskAssessment:
        """
        Assess and enforce the risk/reward discipline.

        Raises:
            CriticalRiskReward: If the ratio is below the critical threshold
            ZeroRiskDistance: If entry equals stop loss
        """
        try:
            assessment = self.assess_risk_reward(entry_price, stop_loss, take_profit)
        except ZeroRiskDistance as e:
            log_risk_decision(logger, "risk_reward", False, plan_id, e.message)
            raise

        context = {"ratio": str(assessment.ratio), "level": assessment.level.value}

        if assessment.level == RiskRewardLevel.CRITICAL:
            reason = f"Risk/reward {assessment.ratio} below critical threshold {self.critical_threshold}"
            log_risk_decision(logger, "risk_reward", False, plan_id, reason, context)
            raise CriticalRiskReward(
                reason,
                threshold=self.critical_threshold,
                ratio=assessment.ratio,
                context=context
            )

        if assessment.level == RiskRewardLevel.WARNING:
            reason = f"Risk/reward {assessment.ratio} below recommended {self.warning_threshold}"
        else:
            reason = f"Risk/reward {assessment.ratio} acceptable"
        log_risk_decision(logger, "risk_reward", True, plan_id, reason, context)
        return assessment

    def suggested_position_size(self, capital: Any, risk_percent: Any,
                                entry_price: Any, stop_loss: Any) -> PositionSizing:
        """
        Quantity whose stop-out loss fits the capital-at-risk budget.

        A zero risk distance yields quantity 0 with zero_risk_distance set;
        callers decide whether that is an error.
        """
        entry = to_price(entry_price, "entry_price")
        stop = to_price(stop_loss, "stop_loss")
        risk_amount = quantize_money(to_decimal(capital, "capital") * to_decimal(risk_percent, "risk_percent"))
        risk_per_share = abs(entry - stop)

        if risk_per_share == ZERO:
            return PositionSizing(
                quantity=0,
                risk_amount=risk_amount,
                risk_per_share=risk_per_share,
                zero_risk_distance=True
            )

        shares = floor_to_lot(floor_int(risk_amount / risk_per_share), self.lot_size)
        return PositionSizing(
            quantity=max(shares, self.lot_size),
            risk_amount=risk_amount,
            risk_per_share=risk_per_share,
        )

    def validate_lot(self, quantity: Any, field: str = "quantity") -> int:
        """
        Enforce the lot constraint.

        Raises:
            InvalidLot: If quantity is not a positive multiple of the lot size
        """
        return require_lot(quantity, self.lot_size, field)
