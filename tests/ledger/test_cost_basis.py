"""Tests for the weighted-average cost-basis engine."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from journal_app.data.models import PositionAggregates, TransactionEvent, TransactionType
from journal_app.errors import ConsistencyError, OverExit
from journal_app.ledger.cost_basis import CostBasisEngine

T0 = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)


def event(seq: int, type: TransactionType, price: str, quantity: int,
          offset: int = None) -> TransactionEvent:
    return TransactionEvent(
        id=f"evt-{seq}",
        plan_id="plan-1",
        type=type,
        price=Decimal(price),
        quantity=quantity,
        timestamp=T0 + timedelta(seconds=seq if offset is None else offset),
        sequence=seq,
    )


class TestFold:
    """Test folding ledger events into aggregates."""

    def setup_method(self):
        self.engine = CostBasisEngine()

    def test_empty_history(self):
        assert self.engine.fold([]) == PositionAggregates()

    def test_average_cost_of_two_buys(self):
        """100 @ 10 then 100 @ 12 averages to 11."""
        result = self.engine.fold([
            event(1, TransactionType.INITIAL_ENTRY, "10", 100),
            event(2, TransactionType.ADD_POSITION, "12", 100),
        ])

        assert result.avg_entry_price == Decimal("11.0000")
        assert result.total_quantity == 200
        assert result.remaining_quantity == 200
        assert result.realized_pnl == Decimal("0")

    def test_exit_books_pnl_and_keeps_average(self):
        result = self.engine.fold([
            event(1, TransactionType.INITIAL_ENTRY, "10", 100),
            event(2, TransactionType.ADD_POSITION, "12", 100),
            event(3, TransactionType.PARTIAL_EXIT, "15", 100),
        ])

        assert result.avg_entry_price == Decimal("11")
        assert result.total_quantity == 200
        assert result.remaining_quantity == 100
        assert result.realized_pnl == Decimal("400")

    def test_add_after_exit_reweights_over_all_buys(self):
        """Average is cumulative cost over cumulative quantity bought."""
        result = self.engine.fold([
            event(1, TransactionType.INITIAL_ENTRY, "10", 100),
            event(2, TransactionType.PARTIAL_EXIT, "11", 100),
            event(3, TransactionType.ADD_POSITION, "13", 100),
        ])

        assert result.avg_entry_price == Decimal("11.5")
        assert result.remaining_quantity == 100
        assert result.realized_pnl == Decimal("100")

    def test_average_rounded_half_up(self):
        result = self.engine.fold([
            event(1, TransactionType.INITIAL_ENTRY, "10", 100),
            event(2, TransactionType.ADD_POSITION, "10.0001", 200),
        ])
        # (1000 + 2000.02) / 300 = 10.0000666...
        assert result.avg_entry_price == Decimal("10.0001")

    def test_loss_is_negative(self):
        result = self.engine.fold([
            event(1, TransactionType.INITIAL_ENTRY, "10", 200),
            event(2, TransactionType.FULL_EXIT, "9.5", 200),
        ])

        assert result.realized_pnl == Decimal("-100")
        assert result.remaining_quantity == 0

    def test_fold_orders_by_timestamp_then_sequence(self):
        events = [
            event(3, TransactionType.PARTIAL_EXIT, "15", 100),
            event(1, TransactionType.INITIAL_ENTRY, "10", 100),
            event(2, TransactionType.ADD_POSITION, "12", 100),
        ]
        assert self.engine.fold(events).realized_pnl == Decimal("400")

    def test_over_exit(self):
        with pytest.raises(OverExit) as exc_info:
            self.engine.fold([
                event(1, TransactionType.INITIAL_ENTRY, "10", 100),
                event(2, TransactionType.PARTIAL_EXIT, "11", 200),
            ])
        assert exc_info.value.requested == 200
        assert exc_info.value.remaining == 100

    def test_exit_before_entry_is_corruption(self):
        with pytest.raises(ConsistencyError):
            self.engine.fold([event(1, TransactionType.PARTIAL_EXIT, "11", 100)])

    def test_second_initial_entry_is_corruption(self):
        with pytest.raises(ConsistencyError):
            self.engine.fold([
                event(1, TransactionType.INITIAL_ENTRY, "10", 100),
                event(2, TransactionType.INITIAL_ENTRY, "10", 100),
            ])


class TestVerify:
    """Test stored-versus-replayed comparison."""

    def test_verify_detects_divergence(self, manager):
        plan = manager.create_plan({
            "symbol": "600000", "entry_price": 10, "stop_loss": 9, "take_profit": 13,
            "entry_logic": "Test", "quantity": 100,
        })
        plan = manager.execute(plan.id, 10, 100)

        assert manager.cost_basis.verify(plan).remaining_quantity == 100

        tampered = plan.with_aggregates(PositionAggregates(
            avg_entry_price=Decimal("10"),
            total_quantity=100,
            remaining_quantity=100,
            realized_pnl=Decimal("5"),
        ))
        with pytest.raises(ConsistencyError) as exc_info:
            manager.cost_basis.verify(tampered)

        assert exc_info.value.plan_id == plan.id
        assert exc_info.value.stored["realized_pnl"] == Decimal("5")

    def test_recompute_without_store(self):
        with pytest.raises(ValueError):
            CostBasisEngine().recompute("plan-1")
