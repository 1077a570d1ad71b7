"""Data models and input normalization for the trade journal."""

from .models import (
    AccountSettings,
    DashboardView,
    Execution,
    PlanDraft,
    PlanStatus,
    PositionAggregates,
    RiskLevel,
    RiskRewardLevel,
    TradeDirection,
    TradePlan,
    TransactionEvent,
    TransactionType,
)

__all__ = [
    "AccountSettings",
    "DashboardView",
    "Execution",
    "PlanDraft",
    "PlanStatus",
    "PositionAggregates",
    "RiskLevel",
    "RiskRewardLevel",
    "TradeDirection",
    "TradePlan",
    "TransactionEvent",
    "TransactionType",
]
