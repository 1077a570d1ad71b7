"""
Input validation errors.

These are raised at the boundary, before any ledger mutation, for bad input
shapes, prices, quantities and lot sizes. They are recoverable: the caller can
fix the input and retry.
"""

from typing import Any, Optional

from .base import JournalError


class ValidationError(JournalError):
    """Input failed shape or business-rule validation."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class InvalidPrice(ValidationError):
    """Price is missing, non-numeric or not strictly positive."""


class InvalidQuantity(ValidationError):
    """Quantity is not a positive whole number of shares."""


class InvalidLot(InvalidQuantity):
    """Quantity is not a positive multiple of the lot size."""

    def __init__(self, message: str, lot_size: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.lot_size = lot_size


class ConfigurationError(ValidationError):
    """Configuration or settings values are out of range."""

    def __init__(self, message: str, issues: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.issues = issues or []
