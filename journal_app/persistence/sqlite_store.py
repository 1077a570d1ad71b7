"""SQLite-based journal persistence layer."""

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

from ..data.models import (
    Execution,
    PlanStatus,
    TradeDirection,
    TradePlan,
    TransactionEvent,
    TransactionType,
)
from ..errors import ConfigurationError, PersistenceError
from ..logging.config import get_logger
from ..utils.time import format_timestamp, parse_timestamp
from .base import JournalStore, UnitOfWork

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS plans (
        id TEXT PRIMARY KEY,
        symbol TEXT NOT NULL,
        display_name TEXT,
        direction TEXT NOT NULL,
        planned_entry_price TEXT NOT NULL,
        stop_loss TEXT NOT NULL,
        take_profit TEXT NOT NULL,
        planned_quantity INTEGER NOT NULL,
        risk_reward_ratio TEXT NOT NULL,
        discipline_warning INTEGER NOT NULL DEFAULT 0,
        entry_logic TEXT NOT NULL,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL,
        closed_at TEXT,
        avg_entry_price TEXT,
        total_quantity INTEGER NOT NULL DEFAULT 0,
        remaining_quantity INTEGER NOT NULL DEFAULT 0,
        realized_pnl TEXT NOT NULL DEFAULT '0'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT PRIMARY KEY,
        plan_id TEXT NOT NULL,
        type TEXT NOT NULL,
        price TEXT NOT NULL,
        quantity INTEGER NOT NULL,
        timestamp TEXT NOT NULL,
        sequence INTEGER NOT NULL,
        logic_snapshot TEXT,
        UNIQUE(plan_id, sequence)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS executions (
        id TEXT PRIMARY KEY,
        plan_id TEXT NOT NULL,
        exit_price TEXT NOT NULL,
        realized_pnl TEXT NOT NULL,
        realized_pnl_percent TEXT NOT NULL,
        exit_logic TEXT NOT NULL,
        emotional_state TEXT,
        trimmed_to_flat INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        review_score INTEGER,
        review_comment TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_plans_status ON plans(status)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_plan_id ON transactions(plan_id)",
    "CREATE INDEX IF NOT EXISTS idx_executions_plan_id ON executions(plan_id)",
)

PLAN_COLUMNS = (
    "id", "symbol", "display_name", "direction", "planned_entry_price", "stop_loss",
    "take_profit", "planned_quantity", "risk_reward_ratio", "discipline_warning",
    "entry_logic", "status", "created_at", "closed_at", "avg_entry_price",
    "total_quantity", "remaining_quantity", "realized_pnl",
)

EXECUTION_COLUMNS = (
    "id", "plan_id", "exit_price", "realized_pnl", "realized_pnl_percent", "exit_logic",
    "emotional_state", "trimmed_to_flat", "created_at", "review_score", "review_comment",
)


def _dec(value: Optional[str]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def _text(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


def _plan_to_row(plan: TradePlan) -> tuple[Any, ...]:
    return (
        plan.id,
        plan.symbol,
        plan.display_name,
        plan.direction.value,
        _text(plan.planned_entry_price),
        _text(plan.stop_loss),
        _text(plan.take_profit),
        plan.planned_quantity,
        _text(plan.risk_reward_ratio),
        int(plan.discipline_warning),
        plan.entry_logic,
        plan.status.value,
        format_timestamp(plan.created_at),
        format_timestamp(plan.closed_at),
        _text(plan.avg_entry_price),
        plan.total_quantity,
        plan.remaining_quantity,
        _text(plan.realized_pnl),
    )


def _row_to_plan(row: sqlite3.Row) -> TradePlan:
    return TradePlan(
        id=row["id"],
        symbol=row["symbol"],
        display_name=row["display_name"],
        direction=TradeDirection(row["direction"]),
        planned_entry_price=Decimal(row["planned_entry_price"]),
        stop_loss=Decimal(row["stop_loss"]),
        take_profit=Decimal(row["take_profit"]),
        planned_quantity=row["planned_quantity"],
        risk_reward_ratio=Decimal(row["risk_reward_ratio"]),
        discipline_warning=bool(row["discipline_warning"]),
        entry_logic=row["entry_logic"],
        status=PlanStatus(row["status"]),
        created_at=parse_timestamp(row["created_at"]),
        closed_at=parse_timestamp(row["closed_at"]),
        avg_entry_price=_dec(row["avg_entry_price"]),
        total_quantity=row["total_quantity"],
        remaining_quantity=row["remaining_quantity"],
        realized_pnl=Decimal(row["realized_pnl"]),
    )


def _row_to_event(row: sqlite3.Row) -> TransactionEvent:
    return TransactionEvent(
        id=row["id"],
        plan_id=row["plan_id"],
        type=TransactionType(row["type"]),
        price=Decimal(row["price"]),
        quantity=row["quantity"],
        timestamp=parse_timestamp(row["timestamp"]),
        sequence=row["sequence"],
        logic_snapshot=row["logic_snapshot"],
    )


def _execution_to_row(execution: Execution) -> tuple[Any, ...]:
    return (
        execution.id,
        execution.plan_id,
        _text(execution.exit_price),
        _text(execution.realized_pnl),
        _text(execution.realized_pnl_percent),
        execution.exit_logic,
        execution.emotional_state,
        int(execution.trimmed_to_flat),
        format_timestamp(execution.created_at),
        execution.review_score,
        execution.review_comment,
    )


def _row_to_execution(row: sqlite3.Row) -> Execution:
    return Execution(
        id=row["id"],
        plan_id=row["plan_id"],
        exit_price=Decimal(row["exit_price"]),
        realized_pnl=Decimal(row["realized_pnl"]),
        realized_pnl_percent=Decimal(row["realized_pnl_percent"]),
        exit_logic=row["exit_logic"],
        emotional_state=row["emotional_state"],
        trimmed_to_flat=bool(row["trimmed_to_flat"]),
        created_at=parse_timestamp(row["created_at"]),
        review_score=row["review_score"],
        review_comment=row["review_comment"],
    )


_SELECT_EVENTS = "SELECT * FROM transactions WHERE plan_id = ? ORDER BY timestamp, sequence"


class SqliteUnitOfWork(UnitOfWork):
    """Unit of work bound to one open write transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_plan(self, plan_id: str) -> Optional[TradePlan]:
        row = self._conn.execute("SELECT * FROM plans WHERE id = ?", (plan_id,)).fetchone()
        return _row_to_plan(row) if row else None

    def save_plan(self, plan: TradePlan) -> None:
        placeholders = ", ".join("?" for _ in PLAN_COLUMNS)
        self._conn.execute(
            f"INSERT OR REPLACE INTO plans ({', '.join(PLAN_COLUMNS)}) VALUES ({placeholders})",
            _plan_to_row(plan)
        )

    def delete_plan(self, plan_id: str) -> None:
        self._conn.execute("DELETE FROM transactions WHERE plan_id = ?", (plan_id,))
        self._conn.execute("DELETE FROM executions WHERE plan_id = ?", (plan_id,))
        self._conn.execute("DELETE FROM plans WHERE id = ?", (plan_id,))

    def list_events(self, plan_id: str) -> list[TransactionEvent]:
        rows = self._conn.execute(_SELECT_EVENTS, (plan_id,)).fetchall()
        return [_row_to_event(row) for row in rows]

    def append_event(self, event: TransactionEvent) -> None:
        self._conn.execute("""
            INSERT INTO transactions (
                id, plan_id, type, price, quantity, timestamp, sequence, logic_snapshot
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            event.id,
            event.plan_id,
            event.type.value,
            _text(event.price),
            event.quantity,
            format_timestamp(event.timestamp),
            event.sequence,
            event.logic_snapshot,
        ))

    def get_execution(self, execution_id: str) -> Optional[Execution]:
        row = self._conn.execute("SELECT * FROM executions WHERE id = ?", (execution_id,)).fetchone()
        return _row_to_execution(row) if row else None

    def save_execution(self, execution: Execution) -> None:
        placeholders = ", ".join("?" for _ in EXECUTION_COLUMNS)
        self._conn.execute(
            f"INSERT OR REPLACE INTO executions ({', '.join(EXECUTION_COLUMNS)}) VALUES ({placeholders})",
            _execution_to_row(execution)
        )


class SqliteJournalStore(JournalStore):
    """
    SQLite-based journal store.

    Each unit of work runs in its own connection inside a ``BEGIN IMMEDIATE``
    transaction, so concurrent writers are serialized by SQLite and readers
    only observe committed rows. Decimals are stored as TEXT to keep exact
    values.
    """

    def __init__(self, db_path: Union[str, Path] = "journal.db"):
        if str(db_path) == ":memory:":
            raise ConfigurationError(
                "SqliteJournalStore requires a file path; use InMemoryJournalStore instead",
                field="db_path",
                value=db_path
            )
        self.db_path = Path(db_path)
        self.logger = get_logger("journal.store.sqlite")
        self._lock = threading.Lock()

        # Create database and tables
        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._lock, self._get_connection("init_schema") as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    @contextmanager
    def _get_connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Get database connection with proper error handling."""
        conn = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, timeout=30.0, isolation_level=None)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            self.logger.error("Database error", operation=operation, error=str(e), db_path=str(self.db_path))
            raise PersistenceError(
                f"Database error during {operation}: {e}",
                operation=operation,
                target=str(self.db_path)
            ) from e
        finally:
            if conn:
                conn.close()

    @contextmanager
    def unit_of_work(self) -> Iterator[SqliteUnitOfWork]:
        with self._get_connection("unit_of_work") as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield SqliteUnitOfWork(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def get_plan(self, plan_id: str) -> Optional[TradePlan]:
        with self._get_connection("get_plan") as conn:
            row = conn.execute("SELECT * FROM plans WHERE id = ?", (plan_id,)).fetchone()
        return _row_to_plan(row) if row else None

    def list_plans(self, status: Optional[PlanStatus] = None) -> list[TradePlan]:
        with self._get_connection("list_plans") as conn:
            if status is None:
                rows = conn.execute("SELECT * FROM plans ORDER BY created_at, id").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM plans WHERE status = ? ORDER BY created_at, id",
                    (status.value,)
                ).fetchall()
        return [_row_to_plan(row) for row in rows]

    def list_events(self, plan_id: str) -> list[TransactionEvent]:
        with self._get_connection("list_events") as conn:
            rows = conn.execute(_SELECT_EVENTS, (plan_id,)).fetchall()
        return [_row_to_event(row) for row in rows]

    def get_execution(self, execution_id: str) -> Optional[Execution]:
        with self._get_connection("get_execution") as conn:
            row = conn.execute("SELECT * FROM executions WHERE id = ?", (execution_id,)).fetchone()
        return _row_to_execution(row) if row else None

    def list_executions(self, plan_id: Optional[str] = None) -> list[Execution]:
        with self._get_connection("list_executions") as conn:
            if plan_id is None:
                rows = conn.execute("SELECT * FROM executions ORDER BY created_at, id").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM executions WHERE plan_id = ? ORDER BY created_at, id",
                    (plan_id,)
                ).fetchall()
        return [_row_to_execution(row) for row in rows]
