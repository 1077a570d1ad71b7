"""
Root of the journal error hierarchy.
"""

from typing import Any, Dict, Optional


class JournalError(Exception):
    """Base class for every error raised by the journal core."""

    recoverable: bool = True

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
