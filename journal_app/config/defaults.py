"""Default configuration parameters for the trade journal."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LedgerParams:
    """Ledger quantity rules."""
    lot_size: int = 100                              # Board lot; every quantity is a multiple


@dataclass(frozen=True)
class RiskParams:
    """Pre-trade discipline thresholds."""
    critical_risk_reward: float = 1.0                # Below this the plan is rejected
    warning_risk_reward: float = 1.5                 # Below this the plan carries a warning


@dataclass(frozen=True)
class DashboardParams:
    """Dashboard projection parameters."""
    danger_band_pct: float = 0.15                    # Fraction of the stop-to-target span


@dataclass(frozen=True)
class SettingsParams:
    """Account settings used for position sizing."""
    total_capital: float = 1000000.0
    risk_percent: float = 0.01                       # Fraction of capital risked per trade
    settings_file: str = "settings.yaml"


@dataclass(frozen=True)
class LoggingParams:
    """Structured logging parameters."""
    level: str = "INFO"
    format_json: bool = True
    include_timestamp: bool = True


@dataclass(frozen=True)
class StorageParams:
    """Journal store parameters."""
    backend: str = "memory"                          # "memory" or "sqlite"
    db_path: Optional[str] = None                    # Required for sqlite


@dataclass(frozen=True)
class JournalConfig:
    """Complete journal configuration."""
    ledger: LedgerParams
    risk: RiskParams
    dashboard: DashboardParams
    settings: SettingsParams
    logging: LoggingParams
    storage: StorageParams


def get_default_config() -> JournalConfig:
    """Get the default configuration instance."""
    return JournalConfig(
        ledger=LedgerParams(),
        risk=RiskParams(),
        dashboard=DashboardParams(),
        settings=SettingsParams(),
        logging=LoggingParams(),
        storage=StorageParams(),
    )
