"""Concurrent mutations of the same plan stay serialized."""

import threading
import time
from decimal import Decimal

import pytest

from journal_app.config.defaults import get_default_config
from journal_app.config.settings import SettingsStore
from journal_app.errors import InvalidState, OverExit
from journal_app.journal import TradeJournal
from journal_app.ledger.transaction_ledger import TransactionLedger
from journal_app.state.manager import PlanLifecycleManager
from journal_app.utils.time import utc_now


@pytest.fixture
def threaded_manager(any_store, quiet_dispatcher):
    config = get_default_config()
    return PlanLifecycleManager(any_store, config=config,
                                settings=SettingsStore(config.settings),
                                dispatcher=quiet_dispatcher)


def run_threads(target, count):
    barrier = threading.Barrier(count)
    results, errors = [], []
    lock = threading.Lock()

    def worker(index):
        barrier.wait()
        try:
            value = target(index)
        except Exception as e:
            with lock:
                errors.append(e)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results, errors


class TestConcurrentMutations:
    """Per-plan serialization under thread contention."""

    def test_concurrent_trims_never_over_exit(self, threaded_manager):
        plan = threaded_manager.create_plan({
            "symbol": "600519", "entry_price": "10", "stop_loss": "9",
            "take_profit": "13", "entry_logic": "Breakout", "quantity": 500,
        })
        threaded_manager.execute(plan.id, "10", 500)

        results, errors = run_threads(
            lambda i: threaded_manager.trim(plan.id, "12", 100, f"Trim {i}"), 8
        )

        # Five trims empty the position; the fifth closes the plan
        assert len(results) == 5
        assert len(errors) == 3
        assert all(isinstance(e, (OverExit, InvalidState)) for e in errors)

        final = threaded_manager.get_plan(plan.id)
        assert final.remaining_quantity == 0
        assert final.realized_pnl == Decimal("1000")
        assert len(threaded_manager.list_executions(plan.id)) == 1
        threaded_manager.verify_plan(plan.id)

    def test_concurrent_adds_all_recorded(self, threaded_manager):
        plan = threaded_manager.create_plan({
            "symbol": "600519", "entry_price": "10", "stop_loss": "9",
            "take_profit": "13", "entry_logic": "Breakout", "quantity": 100,
        })
        threaded_manager.execute(plan.id, "10", 100)

        results, errors = run_threads(
            lambda i: threaded_manager.add_position(plan.id, "12", 100), 6
        )

        assert errors == []
        final = threaded_manager.get_plan(plan.id)
        assert final.total_quantity == 700
        # (1000 + 6 * 1200) / 700
        assert final.avg_entry_price == Decimal("11.7143")
        sequences = [e.sequence for e in threaded_manager.list_transactions(plan.id)]
        assert sequences == list(range(1, 8))

    def test_close_races_trim(self, threaded_manager):
        plan = threaded_manager.create_plan({
            "symbol": "600519", "entry_price": "10", "stop_loss": "9",
            "take_profit": "13", "entry_logic": "Breakout", "quantity": 200,
        })
        threaded_manager.execute(plan.id, "10", 200)

        def act(i):
            if i % 2:
                return threaded_manager.close(plan.id, "11", "Close")
            return threaded_manager.trim(plan.id, "11", 100, "Trim")

        run_threads(act, 4)

        final = threaded_manager.get_plan(plan.id)
        assert final.remaining_quantity == 0
        assert final.realized_pnl == Decimal("200")
        assert len(threaded_manager.list_executions(plan.id)) == 1
        threaded_manager.verify_plan(plan.id)


def slow_clock():
    """Widen the window between reading the history and writing the event."""
    time.sleep(0.05)
    return utc_now()


class TestStoreLevelSerialization:
    """Writers that bypass the manager's plan locks."""

    def test_direct_ledger_appends_never_over_exit(self, threaded_manager, any_store):
        plan = threaded_manager.create_plan({
            "symbol": "600519", "entry_price": "10", "stop_loss": "9",
            "take_profit": "13", "entry_logic": "Breakout", "quantity": 100,
        })
        threaded_manager.execute(plan.id, "10", 100)
        ledger = TransactionLedger(any_store, clock=slow_clock)

        results, errors = run_threads(
            lambda i: ledger.append(plan.id, "PARTIAL_EXIT", "12", 100), 2
        )

        assert len(results) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], OverExit)

        sequences = [e.sequence for e in any_store.list_events(plan.id)]
        assert sequences == [1, 2]
        final = any_store.get_plan(plan.id)
        assert final.remaining_quantity == 0
        assert final.realized_pnl == Decimal("200")
        threaded_manager.verify_plan(plan.id)

    def test_journals_sharing_a_store(self, any_store, quiet_dispatcher):
        journals = [TradeJournal(store=any_store, dispatcher=quiet_dispatcher) for _ in range(2)]
        plan = journals[0].create_plan(
            symbol="600519", entry_price="10", stop_loss="9",
            take_profit="13", entry_logic="Breakout", quantity=300,
        )
        journals[0].execute(plan.id, "10", 300)

        results, errors = run_threads(
            lambda i: journals[i % 2].trim(plan.id, "11", 100, f"Trim {i}"), 6
        )

        assert len(results) == 3
        assert len(errors) == 3
        assert all(isinstance(e, (OverExit, InvalidState)) for e in errors)

        sequences = [e.sequence for e in any_store.list_events(plan.id)]
        assert sequences == [1, 2, 3, 4]
        final = journals[1].get_plan(plan.id)
        assert final.remaining_quantity == 0
        assert final.realized_pnl == Decimal("300")
        assert len(journals[1].list_executions(plan.id)) == 1
        journals[1].verify_plan(plan.id)
