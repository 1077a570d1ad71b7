"""Pytest configuration and shared fixtures."""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest

from journal_app.config.defaults import get_default_config
from journal_app.config.notifications import NotificationConfig
from journal_app.config.settings import SettingsStore
from journal_app.journal import TradeJournal
from journal_app.market.price_source import StaticPriceSource
from journal_app.notifications.dispatcher import NotificationDispatcher
from journal_app.persistence.memory_store import InMemoryJournalStore
from journal_app.persistence.sqlite_store import SqliteJournalStore
from journal_app.state.manager import PlanLifecycleManager


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc),
                 step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class SequentialIds:
    """Deterministic id factory: id-0001, id-0002, ..."""

    def __init__(self):
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"id-{next(self._counter):04d}"


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def config():
    return get_default_config()


@pytest.fixture
def memory_store() -> InMemoryJournalStore:
    return InMemoryJournalStore()


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteJournalStore:
    return SqliteJournalStore(tmp_path / "journal.db")


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    """Each store implementation in turn."""
    if request.param == "sqlite":
        return SqliteJournalStore(tmp_path / "journal.db")
    return InMemoryJournalStore()


@pytest.fixture
def quiet_dispatcher() -> NotificationDispatcher:
    """Dispatcher with no notifiers; subscribers still receive notices."""
    return NotificationDispatcher(NotificationConfig(destinations=[]))


@pytest.fixture
def manager(memory_store, config, clock, ids, quiet_dispatcher) -> PlanLifecycleManager:
    return PlanLifecycleManager(
        memory_store,
        config=config,
        settings=SettingsStore(config.settings),
        dispatcher=quiet_dispatcher,
        clock=clock,
        id_factory=ids,
    )


@pytest.fixture
def prices() -> StaticPriceSource:
    return StaticPriceSource()


@pytest.fixture
def journal(memory_store, clock, ids, quiet_dispatcher, prices) -> TradeJournal:
    return TradeJournal(
        store=memory_store,
        price_source=prices,
        dispatcher=quiet_dispatcher,
        clock=clock,
        id_factory=ids,
    )


@pytest.fixture
def sample_plan_data() -> Dict[str, Any]:
    """Raw plan input with a 3.0 risk/reward ratio."""
    return {
        "symbol": "600519",
        "display_name": "Kweichow Moutai",
        "entry_price": "10.00",
        "stop_loss": "9.00",
        "take_profit": "13.00",
        "entry_logic": "Breakout above 20-day range on rising volume",
        "quantity": 100,
    }


@pytest.fixture
def open_plan(journal):
    """
    Plan with two fills and one trim:
    buy 100 @ 10, buy 100 @ 12 (avg 11), sell 100 @ 15 (realized 400).
    """
    plan = journal.create_plan(
        symbol="600519",
        entry_price="10",
        stop_loss="9",
        take_profit="13",
        entry_logic="Breakout",
        quantity=100,
    )
    journal.execute(plan.id, "10", 100)
    journal.add_position(plan.id, "12", 100, "Pullback held")
    return journal.trim(plan.id, "15", 100, "Take partial profit")
