"""Tests for plan lifecycle transition rules."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from journal_app.data.models import PlanStatus, TradePlan
from journal_app.errors import InvalidState
from journal_app.state.transitions import (
    ALLOWED_TRANSITIONS,
    can_transition,
    require_status,
    require_transition,
)


def plan_in(status: PlanStatus) -> TradePlan:
    return TradePlan(
        id="plan-1",
        symbol="600519",
        planned_entry_price=Decimal("10"),
        stop_loss=Decimal("9"),
        take_profit=Decimal("13"),
        planned_quantity=100,
        risk_reward_ratio=Decimal("3"),
        entry_logic="Breakout",
        status=status,
        created_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
    )


class TestTransitionTable:
    """Test the lifecycle transition table."""

    @pytest.mark.parametrize("from_status, to_status", [
        (PlanStatus.PENDING, PlanStatus.OPEN),
        (PlanStatus.PENDING, PlanStatus.CANCELLED),
        (PlanStatus.OPEN, PlanStatus.OPEN),
        (PlanStatus.OPEN, PlanStatus.CLOSED),
    ])
    def test_allowed(self, from_status, to_status):
        assert can_transition(from_status, to_status)

    @pytest.mark.parametrize("from_status, to_status", [
        (PlanStatus.PENDING, PlanStatus.CLOSED),
        (PlanStatus.OPEN, PlanStatus.CANCELLED),
        (PlanStatus.OPEN, PlanStatus.PENDING),
        (PlanStatus.CLOSED, PlanStatus.OPEN),
        (PlanStatus.CANCELLED, PlanStatus.PENDING),
    ])
    def test_forbidden(self, from_status, to_status):
        assert not can_transition(from_status, to_status)

    def test_terminal_states_have_no_exits(self):
        assert ALLOWED_TRANSITIONS[PlanStatus.CLOSED] == frozenset()
        assert ALLOWED_TRANSITIONS[PlanStatus.CANCELLED] == frozenset()


class TestRequireStatus:
    """Test operation guards."""

    @pytest.mark.parametrize("operation, status", [
        ("execute", PlanStatus.PENDING),
        ("cancel", PlanStatus.PENDING),
        ("add_position", PlanStatus.OPEN),
        ("trim", PlanStatus.OPEN),
        ("close", PlanStatus.OPEN),
    ])
    def test_permitted(self, operation, status):
        require_status(plan_in(status), operation)

    @pytest.mark.parametrize("status", [PlanStatus.PENDING, PlanStatus.CLOSED, PlanStatus.CANCELLED])
    def test_add_position_requires_open(self, status):
        with pytest.raises(InvalidState) as exc_info:
            require_status(plan_in(status), "add_position")

        assert exc_info.value.current_state == status.value
        assert exc_info.value.attempted_operation == "add_position"
        assert exc_info.value.plan_id == "plan-1"

    def test_require_transition(self):
        require_transition(plan_in(PlanStatus.OPEN), PlanStatus.CLOSED, "close")
        with pytest.raises(InvalidState):
            require_transition(plan_in(PlanStatus.CLOSED), PlanStatus.OPEN, "execute")
