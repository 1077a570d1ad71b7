#!/usr/bin/env python3
"""
Basic Usage Example - Trade Journal

This script walks one trade plan through its whole life:
- Create a plan (risk/reward screened, quantity suggested from settings)
- Fill it, add to it and trim it
- Watch the dashboard against live prices
- Close it and attach a post-trade review

Run: python examples/basic_usage.py
"""

from journal_app.errors import CriticalRiskReward, JournalError
from journal_app.journal import TradeJournal
from journal_app.logging.config import configure_logging
from journal_app.market.price_source import StaticPriceSource
from journal_app.notifications.base import JournalNotice


def print_notice(notice: JournalNotice) -> None:
    print(f"  📣 {notice.kind.value} ({notice.plan_id[:8]})")


def print_view(journal: TradeJournal, plan_id: str) -> None:
    view = journal.project(plan_id)
    r = view.r_multiple if view.r_multiple is not None else "n/a"
    print(f"  price={view.current_price} pnl={view.pnl_amount} ({view.pnl_percentage}%) "
          f"R={r} risk={view.risk_level.value}")


def main():
    configure_logging(level="WARNING")

    prices = StaticPriceSource()
    journal = TradeJournal(price_source=prices)
    journal.subscribe(print_notice)

    print("🛡️  Risk guard")
    try:
        journal.create_plan("600519", "100", "98", "101", "Chasing a gap")
    except CriticalRiskReward as e:
        print(f"  ❌ Rejected: {e}")

    print("\n📝 Create plan")
    plan = journal.create_plan(
        symbol="600519",
        display_name="Kweichow Moutai",
        entry_price="10.00",
        stop_loss="9.00",
        take_profit="13.00",
        entry_logic="Breakout above 20-day range on rising volume",
    )
    print(f"  R/R={plan.risk_reward_ratio} suggested quantity={plan.planned_quantity}")

    print("\n📈 Build the position")
    journal.execute(plan.id, "10.00", 1000)
    journal.add_position(plan.id, "12.00", 1000, "Pullback held the breakout level")
    prices.update("600519", "14.50")
    print_view(journal, plan.id)

    print("\n✂️  Trim and protect")
    plan = journal.trim(plan.id, "15.00", 1000, "Take half at resistance",
                        move_stop_to_break_even=True)
    print(f"  remaining={plan.remaining_quantity} realized={plan.realized_pnl} stop={plan.stop_loss}")
    prices.update("600519", "11.20")
    print_view(journal, plan.id)

    print("\n🏁 Close")
    execution = journal.close(plan.id, "13.50", "Momentum faded", emotional_state="calm")
    print(f"  realized={execution.realized_pnl} ({execution.realized_pnl_percent}%)")

    journal.record_review(execution.id, 85, "Followed the plan; second entry was late")

    try:
        journal.add_position(plan.id, "13.00", 100)
    except JournalError as e:
        print(f"  ❌ {type(e).__name__}: {e}")

    summary = journal.history_summary()
    print(f"\n📊 Trades={summary.total_trades} win rate={summary.win_rate}% total PnL={summary.total_pnl}")


if __name__ == "__main__":
    main()
