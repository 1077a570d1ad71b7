"""Read-only projections: live dashboard views, trade history and exposure."""

from .history import (
    ExposureSummary,
    HistoryEntry,
    HistorySummary,
    build_history,
    risk_exposure,
    summarize_history,
)
from .projector import DashboardProjector, r_multiple

__all__ = [
    "DashboardProjector",
    "r_multiple",
    "ExposureSummary",
    "HistoryEntry",
    "HistorySummary",
    "build_history",
    "risk_exposure",
    "summarize_history",
]
