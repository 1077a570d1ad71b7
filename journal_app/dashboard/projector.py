"""
Dashboard projection.

Combines a committed plan with an externally supplied market price. The
projector is read-only: it never writes to the ledger or the store, and the
same plan and price always produce the same view.
"""

from decimal import Decimal
from typing import Any, Optional

from ..config.defaults import DashboardParams
from ..data.models import DashboardView, RiskLevel, TradePlan
from ..logging.config import get_logger
from ..utils.numeric import (
    HUNDRED,
    ZERO,
    quantize_money,
    quantize_percent,
    quantize_price,
    quantize_r_multiple,
    to_decimal,
)

logger = get_logger(__name__)


def r_multiple(pnl: Decimal, entry: Decimal, stop: Decimal, quantity: int) -> Optional[Decimal]:
    """
    PnL expressed in units of initial risk.

    Returns None when the risk per share or the quantity is zero, so callers
    can show the value as not available instead of dividing by zero.
    """
    if quantity <= 0:
        return None
    risk = abs(entry - stop) * quantity
    if risk == ZERO:
        return None
    return quantize_r_multiple(pnl / risk)


class DashboardProjector:
    """Projects plans into dashboard views."""

    def __init__(self, params: Optional[DashboardParams] = None):
        params = params or DashboardParams()
        self.danger_band = to_decimal(params.danger_band_pct, "danger_band_pct")

    def _resolve_price(self, plan: TradePlan, current_price: Any) -> tuple[Decimal, bool]:
        """Market price when usable, otherwise the plan's cost basis."""
        if current_price is not None:
            price = to_decimal(current_price, "current_price")
            if price > ZERO:
                return quantize_price(price), True
        return plan.cost_basis, False

    def risk_level(self, plan: TradePlan, price: Decimal) -> RiskLevel:
        """DANGER at or below the stop, or inside the lowest band of the stop-to-target span."""
        if price <= plan.stop_loss:
            return RiskLevel.DANGER

        span = plan.take_profit - plan.stop_loss
        if span <= ZERO:
            return RiskLevel.SAFE

        position = (price - plan.stop_loss) / span
        if position < self.danger_band:
            return RiskLevel.DANGER
        return RiskLevel.SAFE

    def project(self, plan: TradePlan, current_price: Any = None) -> DashboardView:
        """
        Build the live view of a plan.

        Args:
            plan: Committed plan
            current_price: Latest market price; missing or non-positive
                values fall back to the average (or planned) entry price

        Returns:
            DashboardView with unrealized PnL, distance to stop, risk band and R-multiple
        """
        price, available = self._resolve_price(plan, current_price)
        basis = plan.cost_basis
        remaining = plan.remaining_quantity

        pnl_amount = quantize_money((price - basis) * remaining)
        pnl_percentage = quantize_percent((price - basis) / basis * HUNDRED)

        if not available:
            logger.debug("Market price unavailable, using cost basis", plan_id=plan.id,
                         symbol=plan.symbol, fallback_price=str(price))

        return DashboardView(
            plan=plan,
            current_price=price,
            price_available=available,
            pnl_amount=pnl_amount,
            pnl_percentage=pnl_percentage,
            distance_to_stop_loss=quantize_price(price - plan.stop_loss),
            risk_level=self.risk_level(plan, price),
            r_multiple=r_multiple(pnl_amount, basis, plan.stop_loss, remaining),
        )
