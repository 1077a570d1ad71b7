"""
Post-commit notice fan-out.

Notices are published only after the unit of work that produced them has
committed. Notifier and subscriber failures are logged; they never undo or
fail the journal operation that triggered them.
"""

import threading
from collections.abc import Iterable
from typing import Any, Callable, Optional

from ..config.notifications import (
    NotificationConfig,
    NotifierDestination,
    NotifierKind,
    get_default_notification_config,
)
from ..logging.config import get_logger
from .base import BaseNotifier, JournalNotice, NoticeKind
from .file_notifier import FileNotifier
from .log_notifier import LogNotifier

logger = get_logger(__name__)

Subscriber = Callable[[JournalNotice], Any]


class NotificationDispatcher:
    """Routes committed notices to notifiers and in-process subscribers."""

    def __init__(self, config: Optional[NotificationConfig] = None):
        self.logger = logger
        self.config = config or get_default_notification_config()
        self.notifiers: dict[str, BaseNotifier] = {}
        self._destinations: dict[str, NotifierDestination] = {}
        self._subscribers: list[tuple[Optional[NoticeKind], Subscriber]] = []
        self._lock = threading.Lock()

        # Initialize notifiers
        self._init_notifiers()

    def _init_notifiers(self) -> None:
        """Initialize notifiers based on configuration."""
        if not self.config.enabled:
            return

        for destination in self.config.destinations:
            if not destination.enabled:
                continue

            if destination.kind == NotifierKind.FILE:
                notifier: BaseNotifier = FileNotifier(destination.name, destination.config)
            elif destination.kind == NotifierKind.LOG:
                notifier = LogNotifier(destination.name, destination.config)
            else:
                self.logger.warning("Unsupported notifier kind", kind=str(destination.kind))
                continue

            self.notifiers[destination.name] = notifier
            self._destinations[destination.name] = destination
            self.logger.info("Initialized notifier", notifier=destination.name, kind=destination.kind.value)

    def subscribe(self, callback: Subscriber, kind: Optional[NoticeKind] = None) -> Callable[[], None]:
        """
        Register an in-process subscriber.

        Args:
            callback: Called with each matching notice after commit
            kind: Only receive this kind; all kinds when None

        Returns:
            Function that removes the subscription
        """
        entry = (kind, callback)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, notices: Iterable[JournalNotice]) -> None:
        """Deliver committed notices to every matching destination and subscriber."""
        notices = list(notices)
        if not notices:
            return

        if self.config.enabled:
            for name, notifier in self.notifiers.items():
                selected = self._filter_notices(self._destinations[name], notices)
                if selected:
                    self._deliver(name, notifier, selected)

        with self._lock:
            subscribers = list(self._subscribers)

        for notice in notices:
            for kind, callback in subscribers:
                if kind is not None and kind != notice.kind:
                    continue
                try:
                    callback(notice)
                except Exception as e:
                    self.logger.error(
                        "Notice subscriber failed",
                        kind=notice.kind.value,
                        plan_id=notice.plan_id,
                        error=str(e),
                        exc_info=True
                    )

    def _deliver(self, name: str, notifier: BaseNotifier, notices: list[JournalNotice]) -> None:
        try:
            results = notifier.notify_timed(notices)
        except Exception as e:
            self.logger.error("Unexpected notifier error", notifier=name, error=str(e), exc_info=True)
            return

        for notice, result in zip(notices, results):
            if not result.ok:
                self.logger.error(
                    "Notice delivery failed",
                    notifier=name,
                    kind=notice.kind.value,
                    plan_id=notice.plan_id,
                    message=result.message
                )

    def _filter_notices(self, destination: NotifierDestination,
                        notices: list[JournalNotice]) -> list[JournalNotice]:
        """Apply the destination's kind and plan filters."""
        selected = []
        for notice in notices:
            if destination.kinds_filter and notice.kind.value not in destination.kinds_filter:
                continue
            if destination.plans_filter and notice.plan_id not in destination.plans_filter:
                continue
            selected.append(notice)
        return selected

    def get_stats(self) -> dict[str, Any]:
        """Per-notifier delivery statistics."""
        return {name: notifier.get_stats() for name, notifier in self.notifiers.items()}
