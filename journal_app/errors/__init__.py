"""
Error classification for the trade journal core.

Validation and risk errors are recoverable and raised before any ledger
mutation. Domain errors are surfaced to the caller verbatim. System failures
abort the operation and require investigation.
"""

from .base import JournalError
from .validation import (
    ValidationError,
    InvalidPrice,
    InvalidQuantity,
    InvalidLot,
    ConfigurationError,
)
from .risk import (
    RiskRejected,
    CriticalRiskReward,
    ZeroRiskDistance,
)
from .domain import (
    DomainError,
    UnknownPlan,
    UnknownExecution,
    InvalidState,
    OverExit,
)
from .system_failures import (
    SystemFailureError,
    ConsistencyError,
    PersistenceError,
)

__all__ = [
    "JournalError",
    # Validation Errors
    "ValidationError",
    "InvalidPrice",
    "InvalidQuantity",
    "InvalidLot",
    "ConfigurationError",
    # Risk Rejections
    "RiskRejected",
    "CriticalRiskReward",
    "ZeroRiskDistance",
    # Domain Errors
    "DomainError",
    "UnknownPlan",
    "UnknownExecution",
    "InvalidState",
    "OverExit",
    # System Failures
    "SystemFailureError",
    "ConsistencyError",
    "PersistenceError",
]
