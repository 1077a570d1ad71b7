"""
Risk discipline rejections raised by the risk guard.
"""

from decimal import Decimal
from typing import Optional

from .base import JournalError


class RiskRejected(JournalError):
    """A pre-trade discipline rule rejected the plan."""

    def __init__(self, message: str, ratio: Optional[Decimal] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.ratio = ratio


class CriticalRiskReward(RiskRejected):
    """Risk/reward ratio below the critical threshold."""

    def __init__(self, message: str, threshold: Optional[Decimal] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.threshold = threshold


class ZeroRiskDistance(RiskRejected):
    """Entry price equals stop loss, so risk per share is zero."""
