"""Tests for the append-only transaction ledger."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from journal_app.data.models import PlanStatus, TradePlan, TransactionType
from journal_app.errors import (
    InvalidLot,
    InvalidPrice,
    InvalidQuantity,
    OverExit,
    UnknownPlan,
    ValidationError,
)
from journal_app.ledger.transaction_ledger import LedgerHistory, TransactionLedger
from journal_app.persistence.memory_store import InMemoryJournalStore

T0 = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)


def make_plan(plan_id: str = "plan-1") -> TradePlan:
    return TradePlan(
        id=plan_id,
        symbol="600519",
        planned_entry_price=Decimal("10"),
        stop_loss=Decimal("9"),
        take_profit=Decimal("13"),
        planned_quantity=100,
        risk_reward_ratio=Decimal("3"),
        entry_logic="Breakout",
        status=PlanStatus.OPEN,
        created_at=T0,
    )


class TestTransactionLedger:
    """Test ledger appends and history views."""

    def setup_method(self):
        self.store = InMemoryJournalStore()
        with self.store.unit_of_work() as uow:
            uow.save_plan(make_plan())
        self.times = iter(T0 + timedelta(seconds=i) for i in range(1, 100))
        self.ledger = TransactionLedger(self.store, clock=lambda: next(self.times))

    def test_append_updates_aggregates(self):
        self.ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 100)
        event = self.ledger.append("plan-1", "ADD_POSITION", "12", 100, "Add on pullback")

        assert event.sequence == 2
        assert event.type == TransactionType.ADD_POSITION
        assert event.logic_snapshot == "Add on pullback"

        plan = self.store.get_plan("plan-1")
        assert plan.avg_entry_price == Decimal("11")
        assert plan.total_quantity == 200
        assert plan.remaining_quantity == 200

    def test_validation_before_lookup(self):
        """Bad input is rejected even for unknown plans."""
        with pytest.raises(InvalidPrice):
            self.ledger.append("missing", TransactionType.INITIAL_ENTRY, 0, 100)
        with pytest.raises(InvalidLot):
            self.ledger.append("missing", TransactionType.INITIAL_ENTRY, 10, 150)
        with pytest.raises(InvalidQuantity):
            self.ledger.append("missing", TransactionType.INITIAL_ENTRY, 10, -100)

    def test_unknown_plan(self):
        with pytest.raises(UnknownPlan):
            self.ledger.append("missing", TransactionType.INITIAL_ENTRY, 10, 100)

    def test_over_exit_leaves_no_trace(self):
        self.ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 100)
        before = self.store.get_plan("plan-1")

        with pytest.raises(OverExit):
            self.ledger.append("plan-1", TransactionType.PARTIAL_EXIT, "11", 200)

        assert len(self.store.list_events("plan-1")) == 1
        assert self.store.get_plan("plan-1") == before

    def test_full_exit_must_empty_position(self):
        self.ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 200)

        with pytest.raises(ValidationError):
            self.ledger.append("plan-1", TransactionType.FULL_EXIT, "11", 100)

        self.ledger.append("plan-1", TransactionType.FULL_EXIT, "11", 200)
        assert self.store.get_plan("plan-1").remaining_quantity == 0

    def test_timestamps_never_go_backwards(self):
        self.ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 100,
                           timestamp=T0 + timedelta(minutes=5))
        second = self.ledger.append("plan-1", TransactionType.ADD_POSITION, "11", 100,
                                    timestamp=T0)

        assert second.timestamp == T0 + timedelta(minutes=5)
        assert [e.sequence for e in self.ledger.list_by_plan("plan-1")] == [1, 2]

    def test_history_is_restartable_and_fresh(self):
        self.ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 100)
        history = self.ledger.list_by_plan("plan-1")

        assert isinstance(history, LedgerHistory)
        assert len(list(history)) == 1
        assert len(list(history)) == 1

        self.ledger.append("plan-1", TransactionType.ADD_POSITION, "11", 100)
        assert [e.type for e in history] == [TransactionType.INITIAL_ENTRY, TransactionType.ADD_POSITION]

    def test_history_of_unknown_plan(self):
        with pytest.raises(UnknownPlan):
            self.ledger.list_by_plan("missing")

    def test_append_inside_enclosing_unit_of_work_rolls_back(self):
        with pytest.raises(RuntimeError):
            with self.store.unit_of_work() as uow:
                self.ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 100, uow=uow)
                raise RuntimeError("abort")

        assert self.store.list_events("plan-1") == []
        assert self.store.get_plan("plan-1").total_quantity == 0

    def test_custom_lot_size(self):
        ledger = TransactionLedger(self.store, lot_size=10)
        event = ledger.append("plan-1", TransactionType.INITIAL_ENTRY, "10", 30)
        assert event.quantity == 30
