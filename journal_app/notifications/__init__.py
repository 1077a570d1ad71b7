"""
Post-commit notifications.

Journal operations announce what they committed as JournalNotice records.
The dispatcher fans them out to configured notifiers (structured log,
JSON-lines file) and to in-process subscribers such as a post-close review
trigger.
"""

from .base import (
    BaseNotifier,
    JournalNotice,
    NoticeKind,
    NotificationError,
    NotificationResult,
    NotificationStatus,
)
from .dispatcher import NotificationDispatcher
from .file_notifier import FileNotifier
from .log_notifier import LogNotifier

__all__ = [
    "BaseNotifier",
    "JournalNotice",
    "NoticeKind",
    "NotificationError",
    "NotificationResult",
    "NotificationStatus",
    "NotificationDispatcher",
    "FileNotifier",
    "LogNotifier",
]
