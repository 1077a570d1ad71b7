"""
Configuration package.

Typed defaults, YAML loading with layered precedence, validation, account
settings and notification destinations.
"""

from .defaults import (
    DashboardParams,
    JournalConfig,
    LedgerParams,
    LoggingParams,
    RiskParams,
    SettingsParams,
    StorageParams,
    get_default_config,
)
from .loader import ConfigLoader, load_config
from .validation import ConfigIssue, ConfigValidator

__all__ = [
    "DashboardParams",
    "JournalConfig",
    "LedgerParams",
    "LoggingParams",
    "RiskParams",
    "SettingsParams",
    "StorageParams",
    "get_default_config",
    "ConfigLoader",
    "load_config",
    "ConfigIssue",
    "ConfigValidator",
]
