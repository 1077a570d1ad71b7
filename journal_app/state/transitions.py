"""
Plan lifecycle transition rules.

PENDING --execute--> OPEN --add/trim--> OPEN --close/trim to flat--> CLOSED
PENDING --cancel--> CANCELLED

CLOSED and CANCELLED are terminal: no operation may mutate them.
"""

from ..data.models import PlanStatus, TradePlan
from ..errors import InvalidState

ALLOWED_TRANSITIONS: dict[PlanStatus, frozenset[PlanStatus]] = {
    PlanStatus.PENDING: frozenset({PlanStatus.OPEN, PlanStatus.CANCELLED}),
    PlanStatus.OPEN: frozenset({PlanStatus.OPEN, PlanStatus.CLOSED}),
    PlanStatus.CLOSED: frozenset(),
    PlanStatus.CANCELLED: frozenset(),
}

# Status a plan must be in for each mutating operation
OPERATION_REQUIREMENTS: dict[str, PlanStatus] = {
    "execute": PlanStatus.PENDING,
    "cancel": PlanStatus.PENDING,
    "add_position": PlanStatus.OPEN,
    "trim": PlanStatus.OPEN,
    "close": PlanStatus.OPEN,
}


def can_transition(from_status: PlanStatus, to_status: PlanStatus) -> bool:
    """Return True if the lifecycle permits from_status -> to_status."""
    return to_status in ALLOWED_TRANSITIONS[from_status]


def require_status(plan: TradePlan, operation: str) -> None:
    """
    Guard an operation against the plan's current status.

    Raises:
        InvalidState: If the operation is not permitted in the current status
    """
    required = OPERATION_REQUIREMENTS[operation]
    if plan.status != required:
        raise InvalidState(
            f"Cannot {operation} plan {plan.id} in status {plan.status.value}; "
            f"requires {required.value}",
            plan_id=plan.id,
            current_state=plan.status.value,
            attempted_operation=operation
        )


def require_transition(plan: TradePlan, to_status: PlanStatus, operation: str) -> None:
    """
    Guard a status change.

    Raises:
        InvalidState: If the transition is not in the lifecycle table
    """
    if not can_transition(plan.status, to_status):
        raise InvalidState(
            f"Transition {plan.status.value} -> {to_status.value} not permitted for plan {plan.id}",
            plan_id=plan.id,
            current_state=plan.status.value,
            attempted_operation=operation
        )
