"""End-to-end journal workflows through the TradeJournal facade."""

from decimal import Decimal

import pytest
import yaml

from journal_app.data.models import PlanStatus, RiskLevel, TransactionType
from journal_app.errors import InvalidState, UnknownPlan
from journal_app.journal import TradeJournal
from journal_app.market.price_source import StaticPriceSource
from journal_app.notifications.base import NoticeKind


class TestPlanToReview:
    """A plan from proposal through review."""

    def test_full_workflow(self, journal, prices):
        closed = []
        journal.subscribe(closed.append, NoticeKind.PLAN_CLOSED)

        plan = journal.create_plan("600519", "10", "9", "13", "Breakout", quantity=100,
                                   display_name="Kweichow Moutai")
        assert journal.pending_plans() == [plan]

        journal.execute(plan.id, "10", 100)
        journal.add_position(plan.id, "12", 100, "Pullback held")
        assert journal.active_plans()[0].avg_entry_price == Decimal("11")

        prices.update("600519", "15")
        view = journal.project(plan.id)
        assert view.pnl_amount == Decimal("800")
        assert view.r_multiple == Decimal("2.00")

        journal.trim(plan.id, "15", 100, "Take partial profit", move_stop_to_break_even=True)
        execution = journal.close(plan.id, "14", "Momentum faded", emotional_state="calm")

        assert execution.realized_pnl == Decimal("700")
        assert journal.pending_plans() == []
        assert journal.active_plans() == []
        assert [n.payload["execution_id"] for n in closed] == [execution.id]

        reviewed = journal.record_review(execution.id, 90, "Textbook")
        assert journal.trade_history()[0].review_score == reviewed.review_score == 90

        journal.request_review(execution.id)
        assert [n.payload["execution_id"] for n in closed] == [execution.id, execution.id]
        assert closed[-1].payload["review_requested"] is True

        types = [e.type for e in journal.list_transactions(plan.id)]
        assert types == [
            TransactionType.INITIAL_ENTRY,
            TransactionType.ADD_POSITION,
            TransactionType.PARTIAL_EXIT,
            TransactionType.FULL_EXIT,
        ]

    def test_open_plan_fixture(self, journal, open_plan):
        """buy 100 @ 10, buy 100 @ 12, sell 100 @ 15."""
        assert open_plan.avg_entry_price == Decimal("11")
        assert open_plan.remaining_quantity == 100
        assert open_plan.total_quantity == 200
        assert open_plan.realized_pnl == Decimal("400")

        view = journal.project(open_plan.id, "15")
        assert view.pnl_amount == Decimal("400")
        assert view.r_multiple == Decimal("2.00")

    def test_closed_plan_rejects_additions(self, journal, open_plan):
        journal.close(open_plan.id, "13", "Exit")

        with pytest.raises(InvalidState):
            journal.add_position(open_plan.id, "12", 100)

    def test_cancelled_plan_never_trades(self, journal, sample_plan_data):
        plan = journal.create_plan_from_dict(sample_plan_data)
        journal.cancel(plan.id)

        assert journal.get_plan(plan.id).status == PlanStatus.CANCELLED
        with pytest.raises(InvalidState):
            journal.execute(plan.id, "10", 100)

    def test_clear_symbol(self, journal, open_plan, sample_plan_data):
        pending = journal.create_plan_from_dict(sample_plan_data)
        kept = journal.create_plan("000001", "10", "9", "13", "Range break", quantity=100)

        assert sorted(journal.delete_by_symbol("600519")) == sorted([open_plan.id, pending.id])
        assert journal.pending_plans() == [kept]
        assert journal.active_plans() == []
        with pytest.raises(UnknownPlan):
            journal.delete_by_symbol("600519")


class TestDashboard:
    """Dashboard over every open plan."""

    def test_dashboard_prefers_explicit_prices(self, journal, prices):
        a = journal.create_plan("600000", "10", "9", "13", "A", quantity=100)
        b = journal.create_plan("600036", "20", "18", "26", "B", quantity=100)
        journal.execute(a.id, "10", 100)
        journal.execute(b.id, "20", 100)
        prices.update("600000", "11")
        prices.update("600036", "25")

        views = {v.plan_id: v for v in journal.dashboard({"600036": "18.2"})}

        assert views[a.id].current_price == Decimal("11")
        assert views[a.id].risk_level == RiskLevel.SAFE
        assert views[b.id].current_price == Decimal("18.2")
        assert views[b.id].risk_level == RiskLevel.DANGER

    def test_missing_price_falls_back(self, journal, open_plan):
        view = journal.dashboard()[0]

        assert not view.price_available
        assert view.current_price == Decimal("11")

    def test_projection_does_not_mutate(self, journal, open_plan):
        before = journal.get_plan(open_plan.id)
        journal.project(open_plan.id, "20")
        journal.dashboard({"600519": "5"})

        assert journal.get_plan(open_plan.id) == before


class TestSettingsAndSizing:
    """Account settings drive suggested quantities."""

    def test_update_settings_changes_sizing(self, journal):
        journal.update_settings(total_capital="500000", risk_percent="0.02")

        plan = journal.create_plan("600519", "10", "9.5", "12", "Sized")

        # 500,000 * 2% / 0.5 = 20,000 shares
        assert plan.planned_quantity == 20000
        assert journal.settings.total_capital == Decimal("500000")


class TestFromConfigDir:
    """Building a journal from configuration files."""

    def test_sqlite_journal_from_yaml(self, tmp_path):
        db_path = tmp_path / "journal.db"
        (tmp_path / "journal.yaml").write_text(yaml.safe_dump({
            "storage": {"backend": "sqlite", "db_path": str(db_path)},
            "risk": {"warning_risk_reward": 2.0},
            "logging": {"level": "WARNING", "format_json": True},
        }))

        journal = TradeJournal.from_config_dir(tmp_path, price_source=StaticPriceSource())
        plan = journal.create_plan("600519", "10", "9", "11.5", "Modest target", quantity=100)
        journal.execute(plan.id, "10", 100)

        assert plan.discipline_warning
        assert db_path.exists()

        reopened = TradeJournal.from_config_dir(tmp_path)
        assert reopened.get_plan(plan.id).status == PlanStatus.OPEN
        assert reopened.verify_plan(plan.id).remaining_quantity == 100

    def test_settings_persist_next_to_config(self, tmp_path):
        journal = TradeJournal.from_config_dir(tmp_path)
        journal.update_settings(total_capital="250000")

        saved = yaml.safe_load((tmp_path / "settings.yaml").read_text())
        assert saved["total_capital"] == "250000"
        assert TradeJournal.from_config_dir(tmp_path).settings.total_capital == Decimal("250000")
