"""
Trade journal coordinator.

Wires configuration, storage, the lifecycle manager, the dashboard projector
and notifications into one entry point:

    caller -> TradeJournal -> PlanLifecycleManager -> RiskGuard
           -> TransactionLedger -> CostBasisEngine -> store
           -> DashboardProjector (reads) -> NotificationDispatcher (after commit)
"""

from pathlib import Path
from typing import Any, Callable, Optional, Union

from .config.defaults import JournalConfig, get_default_config
from .config.loader import ConfigLoader
from .config.notifications import NotificationConfig
from .config.settings import SettingsStore
from .dashboard.history import (
    ExposureSummary,
    HistoryEntry,
    HistorySummary,
    build_history,
    risk_exposure,
    summarize_history,
)
from .dashboard.projector import DashboardProjector
from .data.models import (
    AccountSettings,
    DashboardView,
    Execution,
    PlanDraft,
    PlanStatus,
    PositionAggregates,
    TradePlan,
)
from .ledger.transaction_ledger import LedgerHistory, new_id
from .logging.config import configure_logging, get_logger
from .market.price_source import PriceSource, StaticPriceSource
from .notifications.base import NoticeKind
from .notifications.dispatcher import NotificationDispatcher, Subscriber
from .persistence import JournalStore, create_store
from .state.manager import PlanLifecycleManager
from .utils.time import Clock, utc_now

logger = get_logger(__name__)


class TradeJournal:
    """
    External interface of the position accounting and risk-guard ledger.

    Mutations delegate to the lifecycle manager; reads return committed
    state, optionally projected against a market price.
    """

    def __init__(self,
                 config: Optional[JournalConfig] = None,
                 store: Optional[JournalStore] = None,
                 settings: Optional[SettingsStore] = None,
                 price_source: Optional[PriceSource] = None,
                 dispatcher: Optional[NotificationDispatcher] = None,
                 notification_config: Optional[NotificationConfig] = None,
                 clock: Clock = utc_now,
                 id_factory: Callable[[], str] = new_id) -> None:
        """Initialize the journal and its components."""
        self.logger = logger
        self.config = config or get_default_config()

        # Initialize components
        self.store = store or create_store(self.config.storage)
        self.settings_store = settings or SettingsStore(self.config.settings)
        self.price_source = price_source or StaticPriceSource()
        self.dispatcher = dispatcher or NotificationDispatcher(notification_config)
        self.projector = DashboardProjector(self.config.dashboard)
        self.manager = PlanLifecycleManager(
            self.store,
            config=self.config,
            settings=self.settings_store,
            dispatcher=self.dispatcher,
            clock=clock,
            id_factory=id_factory,
        )

        self.logger.info(
            "Trade journal initialized",
            storage=self.config.storage.backend,
            lot_size=self.config.ledger.lot_size
        )

    @classmethod
    def from_config_dir(cls, config_dir: Optional[Union[str, Path]] = None,
                        overrides: Optional[dict[str, Any]] = None,
                        **kwargs: Any) -> "TradeJournal":
        """
        Build a journal from journal.yaml (and settings.yaml) in a directory.

        Also configures logging from the loaded configuration.
        """
        loader = ConfigLoader.create(Path(config_dir) if config_dir is not None else None)
        config = loader.load(overrides)

        configure_logging(
            level=config.logging.level,
            format_json=config.logging.format_json,
            include_timestamp=config.logging.include_timestamp,
        )

        if "settings" not in kwargs:
            kwargs["settings"] = SettingsStore(
                config.settings,
                path=loader.config_dir / config.settings.settings_file
            )
        return cls(config=config, **kwargs)

    # ------------------------------------------------------------------
    # Plan lifecycle
    # ------------------------------------------------------------------

    def create_plan(self, symbol: str, entry_price: Any, stop_loss: Any, take_profit: Any,
                    entry_logic: str, quantity: Any = None,
                    display_name: Optional[str] = None) -> TradePlan:
        """Create a PENDING plan; quantity defaults to the capital-at-risk suggestion."""
        return self.manager.create_plan(PlanDraft(
            symbol=symbol,
            entry_price=entry_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            entry_logic=entry_logic,
            quantity=quantity,
            display_name=display_name,
        ))

    def create_plan_from_dict(self, plan_data: dict[str, Any]) -> TradePlan:
        """Create a plan from a raw mapping (form or JSON payload)."""
        return self.manager.create_plan(plan_data)

    def execute(self, plan_id: str, actual_price: Any, quantity: Any,
                logic: Optional[str] = None) -> TradePlan:
        return self.manager.execute(plan_id, actual_price, quantity, logic)

    def add_position(self, plan_id: str, price: Any, quantity: Any,
                     logic: Optional[str] = None) -> TradePlan:
        return self.manager.add_position(plan_id, price, quantity, logic)

    def trim(self, plan_id: str, exit_price: Any, exit_quantity: Any, logic: str,
             new_stop_loss: Any = None, new_take_profit: Any = None,
             move_stop_to_break_even: bool = False,
             emotional_state: Optional[str] = None) -> TradePlan:
        return self.manager.trim(
            plan_id, exit_price, exit_quantity, logic,
            new_stop_loss=new_stop_loss,
            new_take_profit=new_take_profit,
            move_stop_to_break_even=move_stop_to_break_even,
            emotional_state=emotional_state,
        )

    def close(self, plan_id: str, exit_price: Any, exit_logic: str,
              emotional_state: Optional[str] = None) -> Execution:
        return self.manager.close(plan_id, exit_price, exit_logic, emotional_state)

    def cancel(self, plan_id: str) -> TradePlan:
        return self.manager.cancel(plan_id)

    def delete(self, plan_id: str) -> None:
        self.manager.delete(plan_id)

    def delete_by_symbol(self, symbol: str) -> list[str]:
        return self.manager.delete_by_symbol(symbol)

    def record_review(self, execution_id: str, score: int,
                      comment: Optional[str] = None) -> Execution:
        return self.manager.record_review(execution_id, score, comment)

    def request_review(self, execution_id: str) -> Execution:
        """Re-announce a close to subscribers, e.g. to rerun post-close analysis."""
        return self.manager.request_review(execution_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_plan(self, plan_id: str) -> TradePlan:
        return self.manager.get_plan(plan_id)

    def pending_plans(self) -> list[TradePlan]:
        return self.manager.list_plans(PlanStatus.PENDING)

    def active_plans(self) -> list[TradePlan]:
        return self.manager.list_plans(PlanStatus.OPEN)

    def list_transactions(self, plan_id: str) -> LedgerHistory:
        return self.manager.list_transactions(plan_id)

    def list_executions(self, plan_id: Optional[str] = None) -> list[Execution]:
        return self.manager.list_executions(plan_id)

    def verify_plan(self, plan_id: str) -> PositionAggregates:
        return self.manager.verify_plan(plan_id)

    def project(self, plan_id: str, current_price: Any = None) -> DashboardView:
        """
        Live view of a plan.

        The price source is consulted when no price is given; a missing price
        falls back to the plan's cost basis.
        """
        plan = self.manager.get_plan(plan_id)
        if current_price is None:
            current_price = self.price_source.get_price(plan.symbol)
        return self.projector.project(plan, current_price)

    def dashboard(self, prices: Optional[dict[str, Any]] = None) -> list[DashboardView]:
        """Project every OPEN plan, using explicit prices before the price source."""
        prices = prices or {}
        views = []
        for plan in self.active_plans():
            price = prices.get(plan.symbol)
            if price is None:
                price = self.price_source.get_price(plan.symbol)
            views.append(self.projector.project(plan, price))
        return views

    def trade_history(self) -> list[HistoryEntry]:
        return build_history(self.manager.list_executions(), self.manager.list_plans())

    def history_summary(self) -> HistorySummary:
        return summarize_history(self.trade_history())

    def exposure(self) -> ExposureSummary:
        return risk_exposure(self.active_plans(), self.settings.total_capital)

    # ------------------------------------------------------------------
    # Settings and notifications
    # ------------------------------------------------------------------

    @property
    def settings(self) -> AccountSettings:
        return self.settings_store.get()

    def update_settings(self, total_capital: Any = None, risk_percent: Any = None) -> AccountSettings:
        return self.settings_store.update(total_capital, risk_percent)

    def subscribe(self, callback: Subscriber, kind: Optional[NoticeKind] = None) -> Callable[[], None]:
        """Receive committed notices, e.g. to trigger post-close analysis."""
        return self.dispatcher.subscribe(callback, kind)
