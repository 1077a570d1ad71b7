"""
Account settings store.

Holds the capital and per-trade risk percentage used to suggest position
sizes. Values live in memory and are optionally persisted to a YAML file so
they survive restarts.
"""

import threading
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..data.models import AccountSettings
from ..errors import ConfigurationError, ValidationError
from ..logging.config import get_logger
from ..utils.numeric import to_decimal
from .defaults import SettingsParams
from .validation import MAX_RISK_PERCENT, MAX_TOTAL_CAPITAL, MIN_RISK_PERCENT, MIN_TOTAL_CAPITAL

logger = get_logger(__name__)


def _validated(total_capital: Any, risk_percent: Any) -> AccountSettings:
    try:
        capital = to_decimal(total_capital, "total_capital")
        risk = to_decimal(risk_percent, "risk_percent")
    except ValidationError as e:
        raise ConfigurationError(e.message, field=e.field, value=e.value) from e

    if not Decimal(str(MIN_TOTAL_CAPITAL)) <= capital <= Decimal(str(MAX_TOTAL_CAPITAL)):
        raise ConfigurationError(
            f"total_capital must be between {MIN_TOTAL_CAPITAL} and {MAX_TOTAL_CAPITAL}",
            field="total_capital",
            value=total_capital
        )
    if not Decimal(str(MIN_RISK_PERCENT)) <= risk <= Decimal(str(MAX_RISK_PERCENT)):
        raise ConfigurationError(
            f"risk_percent must be between {MIN_RISK_PERCENT} and {MAX_RISK_PERCENT}",
            field="risk_percent",
            value=risk_percent
        )
    return AccountSettings(total_capital=capital, risk_percent=risk)


class SettingsStore:
    """Thread-safe holder for account settings with optional YAML persistence."""

    def __init__(self, params: Optional[SettingsParams] = None,
                 path: Optional[Union[str, Path]] = None):
        params = params or SettingsParams()
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._settings = _validated(params.total_capital, params.risk_percent)

        if self.path is not None and self.path.exists():
            self._settings = self._load()

    def _load(self) -> AccountSettings:
        if self.path is None:
            raise ConfigurationError("No settings file configured", field="path")
        try:
            with open(self.path) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {self.path}: {e}", field=str(self.path)) from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{self.path} must contain a mapping", field=str(self.path), value=raw)

        settings = _validated(
            raw.get("total_capital", self._settings.total_capital),
            raw.get("risk_percent", self._settings.risk_percent),
        )
        logger.info("Loaded account settings", path=str(self.path),
                    total_capital=str(settings.total_capital),
                    risk_percent=str(settings.risk_percent))
        return settings

    def _save(self, settings: AccountSettings) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump({
                "total_capital": str(settings.total_capital),
                "risk_percent": str(settings.risk_percent),
            }, f)

    def get(self) -> AccountSettings:
        """Current settings."""
        with self._lock:
            return self._settings

    def update(self, total_capital: Any = None, risk_percent: Any = None) -> AccountSettings:
        """
        Replace one or both settings.

        Raises:
            ConfigurationError: If a value is out of range; nothing is changed
        """
        with self._lock:
            settings = _validated(
                total_capital if total_capital is not None else self._settings.total_capital,
                risk_percent if risk_percent is not None else self._settings.risk_percent,
            )
            self._save(settings)
            self._settings = settings

        logger.info("Updated account settings",
                    total_capital=str(settings.total_capital),
                    risk_percent=str(settings.risk_percent))
        return settings
