"""Pre-trade risk discipline: risk/reward screening, lot rules, sizing."""

from .guard import PositionSizing, RiskAssessment, RiskGuard

__all__ = ["PositionSizing", "RiskAssessment", "RiskGuard"]
