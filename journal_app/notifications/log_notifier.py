"""Structured-log notification destination."""

from ..config.notifications import LogNotifierConfig
from .base import BaseNotifier, JournalNotice, NotificationError, NotificationResult, NotificationStatus

LOG_LEVELS = ("debug", "info", "warning", "error")


class LogNotifier(BaseNotifier):
    """Writes each notice as a structlog record."""

    def __init__(self, name: str, config: LogNotifierConfig):
        super().__init__(name, config)
        self.config: LogNotifierConfig = config
        level = config.level.lower()
        if level not in LOG_LEVELS:
            raise NotificationError(f"Unsupported log level for notifier {name}: {config.level}")
        self._emit = getattr(self.logger, level)

    def notify(self, notices: list[JournalNotice]) -> list[NotificationResult]:
        results = []
        for notice in notices:
            record = notice.to_dict()
            self._emit(
                "Journal notice",
                notifier=self.name,
                kind=record["kind"],
                plan_id=record["plan_id"],
                notice_time=record["timestamp"],
                payload=record["payload"]
            )
            results.append(NotificationResult(status=NotificationStatus.SUCCESS, message="Logged"))
        return results

    def health_check(self) -> bool:
        return True
