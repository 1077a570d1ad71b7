"""
System failure error classifications for unrecoverable errors.

These exceptions represent faults that require investigation. They abort the
offending operation and must never be caught and ignored.
"""

from typing import Any, Dict, Optional

from .base import JournalError


class SystemFailureError(JournalError):
    """Base class for unrecoverable system failures."""

    recoverable = False


class ConsistencyError(SystemFailureError):
    """Stored aggregates diverge from the replayed ledger history."""

    def __init__(self, message: str, plan_id: Optional[str] = None,
                 stored: Optional[Dict[str, Any]] = None,
                 replayed: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.plan_id = plan_id
        self.stored = stored
        self.replayed = replayed


class PersistenceError(SystemFailureError):
    """Database or file system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
