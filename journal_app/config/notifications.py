"""Configuration for post-commit journal notifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class NotifierKind(Enum):
    """Supported notifier types."""
    LOG = "log"
    FILE = "file"


@dataclass(frozen=True)
class FileNotifierConfig:
    """Configuration for JSON-lines file notifications."""
    output_path: str
    create_dirs: bool = True
    max_file_size_mb: Optional[int] = None


@dataclass(frozen=True)
class LogNotifierConfig:
    """Configuration for structured-log notifications."""
    level: str = "info"


@dataclass(frozen=True)
class NotifierDestination:
    """Single notification destination."""
    name: str
    kind: NotifierKind
    config: Any  # FileNotifierConfig | LogNotifierConfig
    enabled: bool = True

    # Filtering options
    kinds_filter: Optional[list[str]] = None   # Only notify specific notice kinds
    plans_filter: Optional[list[str]] = None   # Only notify specific plan IDs


@dataclass(frozen=True)
class NotificationConfig:
    """Complete notification configuration."""
    destinations: list[NotifierDestination]
    enabled: bool = True


def get_default_notification_config() -> NotificationConfig:
    """Get default notification configuration."""
    return NotificationConfig(
        destinations=[
            NotifierDestination(
                name="log",
                kind=NotifierKind.LOG,
                config=LogNotifierConfig(level="info"),
                enabled=True
            )
        ],
        enabled=True
    )


def create_file_destination(
    name: str,
    output_path: str,
    enabled: bool = True,
    **kwargs
) -> NotifierDestination:
    """Create file notification destination."""
    return NotifierDestination(
        name=name,
        kind=NotifierKind.FILE,
        config=FileNotifierConfig(
            output_path=output_path,
            **kwargs
        ),
        enabled=enabled
    )
