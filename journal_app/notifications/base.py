"""Base classes for post-commit journal notifications."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ..logging.config import get_logger
from ..utils.time import format_timestamp


class NoticeKind(Enum):
    """Journal events announced after a successful commit."""
    PLAN_CREATED = "plan_created"
    DISCIPLINE_WARNING = "discipline_warning"
    POSITION_OPENED = "position_opened"
    POSITION_ADDED = "position_added"
    POSITION_TRIMMED = "position_trimmed"
    PLAN_CLOSED = "plan_closed"
    PLAN_CANCELLED = "plan_cancelled"
    PLAN_DELETED = "plan_deleted"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class JournalNotice:
    """One committed journal event."""
    kind: NoticeKind
    plan_id: str
    timestamp: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation; Decimals become strings."""
        return {
            "kind": self.kind.value,
            "plan_id": self.plan_id,
            "timestamp": format_timestamp(self.timestamp),
            "payload": _jsonable(self.payload),
        }


class NotificationStatus(Enum):
    """Notification delivery status."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class NotificationResult:
    """Result of a notification attempt."""
    status: NotificationStatus
    message: Optional[str] = None
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == NotificationStatus.SUCCESS


class NotificationError(Exception):
    """Notifier could not be built or used."""


class BaseNotifier(ABC):
    """Base class for notification destinations."""

    def __init__(self, name: str, config: Any):
        self.name = name
        self.config = config
        self.logger = get_logger(f"journal.notify.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def notify(self, notices: list[JournalNotice]) -> list[NotificationResult]:
        """
        Deliver notices to the configured destination.

        Args:
            notices: Committed journal notices

        Returns:
            One result per notice
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the destination is usable."""
        pass

    def notify_timed(self, notices: list[JournalNotice]) -> list[NotificationResult]:
        """Deliver and record timing and statistics."""
        start_time = time.time()
        results = self.notify(notices)
        elapsed_ms = int((time.time() - start_time) * 1000)

        for result in results:
            result.delivery_time_ms = elapsed_ms
            if result.ok:
                self._delivery_count += 1
            else:
                self._error_count += 1
        return results

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": (
                self._delivery_count / (self._delivery_count + self._error_count)
                if (self._delivery_count + self._error_count) > 0 else 0.0
            )
        }
