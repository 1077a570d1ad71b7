"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

MIN_TOTAL_CAPITAL = 1000
MAX_TOTAL_CAPITAL = 999999999999.99
MIN_RISK_PERCENT = 0.001
MAX_RISK_PERCENT = 0.1

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
STORAGE_BACKENDS = ("memory", "sqlite")


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation issue."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_ledger_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate ledger parameters."""
        issues = []

        if "lot_size" in params:
            value = params["lot_size"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                issues.append(ConfigIssue(
                    field="ledger.lot_size",
                    message="Must be a positive integer",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_risk_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate risk guard thresholds."""
        issues = []

        critical = params.get("critical_risk_reward")
        warning = params.get("warning_risk_reward")

        if "critical_risk_reward" in params:
            if not _is_number(critical) or critical < 0:
                issues.append(ConfigIssue(
                    field="risk.critical_risk_reward",
                    message="Must be a non-negative number",
                    value=critical
                ))

        if "warning_risk_reward" in params:
            if not _is_number(warning) or warning < 0:
                issues.append(ConfigIssue(
                    field="risk.warning_risk_reward",
                    message="Must be a non-negative number",
                    value=warning
                ))

        # Warning band sits above the rejection threshold
        if _is_number(critical) and _is_number(warning) and warning < critical:
            issues.append(ConfigIssue(
                field="risk.warning_risk_reward",
                message="Must not be lower than critical_risk_reward",
                value=warning
            ))

        return issues

    @staticmethod
    def validate_dashboard_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate dashboard parameters."""
        issues = []

        if "danger_band_pct" in params:
            value = params["danger_band_pct"]
            if not _is_number(value) or value < 0 or value > 1:
                issues.append(ConfigIssue(
                    field="dashboard.danger_band_pct",
                    message="Must be a number between 0 and 1",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_settings_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate account settings."""
        issues = []

        if "total_capital" in params:
            value = params["total_capital"]
            if not _is_number(value) or value < MIN_TOTAL_CAPITAL or value > MAX_TOTAL_CAPITAL:
                issues.append(ConfigIssue(
                    field="settings.total_capital",
                    message=f"Must be between {MIN_TOTAL_CAPITAL} and {MAX_TOTAL_CAPITAL}",
                    value=value
                ))

        if "risk_percent" in params:
            value = params["risk_percent"]
            if not _is_number(value) or value < MIN_RISK_PERCENT or value > MAX_RISK_PERCENT:
                issues.append(ConfigIssue(
                    field="settings.risk_percent",
                    message=f"Must be between {MIN_RISK_PERCENT} and {MAX_RISK_PERCENT}",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate logging parameters."""
        issues = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                issues.append(ConfigIssue(
                    field="logging.level",
                    message=f"Must be one of {', '.join(LOG_LEVELS)}",
                    value=value
                ))

        for flag in ("format_json", "include_timestamp"):
            if flag in params and not isinstance(params[flag], bool):
                issues.append(ConfigIssue(
                    field=f"logging.{flag}",
                    message="Must be a boolean",
                    value=params[flag]
                ))

        return issues

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate storage parameters."""
        issues = []

        backend = params.get("backend", "memory")
        if backend not in STORAGE_BACKENDS:
            issues.append(ConfigIssue(
                field="storage.backend",
                message=f"Must be one of {', '.join(STORAGE_BACKENDS)}",
                value=backend
            ))

        if backend == "sqlite" and not params.get("db_path"):
            issues.append(ConfigIssue(
                field="storage.db_path",
                message="Required when backend is sqlite",
                value=params.get("db_path")
            ))

        return issues

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate complete configuration."""
        issues = []

        if "ledger" in config:
            issues.extend(ConfigValidator.validate_ledger_params(config["ledger"]))

        if "risk" in config:
            issues.extend(ConfigValidator.validate_risk_params(config["risk"]))

        if "dashboard" in config:
            issues.extend(ConfigValidator.validate_dashboard_params(config["dashboard"]))

        if "settings" in config:
            issues.extend(ConfigValidator.validate_settings_params(config["settings"]))

        if "logging" in config:
            issues.extend(ConfigValidator.validate_logging_params(config["logging"]))

        if "storage" in config:
            issues.extend(ConfigValidator.validate_storage_params(config["storage"]))

        return issues
