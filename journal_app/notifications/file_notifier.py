"""JSON-lines file notification destination."""

import fcntl
from pathlib import Path

import orjson

from ..config.notifications import FileNotifierConfig
from .base import BaseNotifier, JournalNotice, NotificationResult, NotificationStatus


class FileNotifier(BaseNotifier):
    """Appends each notice as one JSON line."""

    def __init__(self, name: str, config: FileNotifierConfig):
        super().__init__(name, config)
        self.config: FileNotifierConfig = config

        # Validate and prepare output path
        self.output_path = Path(config.output_path)

        # Create parent directories if needed
        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, notices: list[JournalNotice]) -> list[NotificationResult]:
        """Append notices to the output file."""
        if self.config.max_file_size_mb and self._check_file_size_limit():
            error_msg = f"File size limit exceeded: {self.config.max_file_size_mb}MB"
            self.logger.error(error_msg, notifier=self.name)
            return [NotificationResult(status=NotificationStatus.FAILED, message=error_msg)
                    for _ in notices]

        try:
            lines = [orjson.dumps(notice.to_dict(), option=orjson.OPT_APPEND_NEWLINE)
                     for notice in notices]
            with open(self.output_path, "ab") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                for line in lines:
                    f.write(line)

        except OSError as e:
            self.logger.warning(
                "Notice file write failed",
                notifier=self.name,
                output_path=str(self.output_path),
                error=str(e)
            )
            return [NotificationResult(status=NotificationStatus.FAILED,
                                       message=f"File system error: {e}", error=e)
                    for _ in notices]

        except orjson.JSONEncodeError as e:
            self.logger.error("Notice encoding failed", notifier=self.name, error=str(e))
            return [NotificationResult(status=NotificationStatus.FAILED,
                                       message=f"JSON encoding error: {e}", error=e)
                    for _ in notices]

        for notice in notices:
            self.logger.debug(
                "Notice written to file",
                notifier=self.name,
                plan_id=notice.plan_id,
                kind=notice.kind.value,
                output_path=str(self.output_path)
            )
        return [NotificationResult(status=NotificationStatus.SUCCESS,
                                   message=f"Written to {self.output_path}")
                for _ in notices]

    def _check_file_size_limit(self) -> bool:
        """Check if file size exceeds the configured limit."""
        if not self.output_path.exists():
            return False

        file_size_mb = self.output_path.stat().st_size / (1024 * 1024)
        return file_size_mb > self.config.max_file_size_mb

    def health_check(self) -> bool:
        """Check if the output directory is writable."""
        try:
            test_file = self.output_path.parent / ".health_check_test"
            test_file.write_text("test")
            test_file.unlink()
            return True

        except OSError as e:
            self.logger.warning("Health check failed", notifier=self.name, error=str(e))
            return False
