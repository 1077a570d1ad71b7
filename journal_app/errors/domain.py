"""
Domain errors surfaced verbatim to the caller.
"""

from typing import Optional

from .base import JournalError


class DomainError(JournalError):
    """Operation is well-formed but not permitted for the plan."""


class UnknownPlan(DomainError):
    """No plan exists with the given identifier."""

    def __init__(self, plan_id: str, **kwargs):
        super().__init__(f"Unknown plan: {plan_id}", **kwargs)
        self.plan_id = plan_id


class InvalidState(DomainError):
    """Lifecycle transition not permitted from the plan's current status."""

    def __init__(self, message: str, plan_id: Optional[str] = None,
                 current_state: Optional[str] = None,
                 attempted_operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.plan_id = plan_id
        self.current_state = current_state
        self.attempted_operation = attempted_operation


class OverExit(DomainError):
    """Exit quantity exceeds the remaining open quantity."""

    def __init__(self, message: str, requested: Optional[int] = None,
                 remaining: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.requested = requested
        self.remaining = remaining


class UnknownExecution(DomainError):
    """No close record exists with the given identifier."""

    def __init__(self, execution_id: str, **kwargs):
        super().__init__(f"Unknown execution: {execution_id}", **kwargs)
        self.execution_id = execution_id
