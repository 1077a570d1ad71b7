"""
Plan lifecycle.

The manager owns all mutating operations; the transition table decides which
operation is legal in which status; the lock registry serializes mutations
of one plan.
"""

from .locks import PlanLockRegistry
from .manager import PlanLifecycleManager, realized_pnl_percent
from .transitions import ALLOWED_TRANSITIONS, OPERATION_REQUIREMENTS, can_transition, require_status

__all__ = [
    "PlanLockRegistry",
    "PlanLifecycleManager",
    "realized_pnl_percent",
    "ALLOWED_TRANSITIONS",
    "OPERATION_REQUIREMENTS",
    "can_transition",
    "require_status",
]
