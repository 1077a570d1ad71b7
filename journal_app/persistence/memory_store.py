"""In-process journal store."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from ..data.models import Execution, PlanStatus, TradePlan, TransactionEvent
from ..errors import PersistenceError
from ..logging.config import get_logger
from .base import JournalStore, UnitOfWork, event_order


class InMemoryUnitOfWork(UnitOfWork):
    """Buffers writes until the owning store applies them."""

    def __init__(self, store: "InMemoryJournalStore"):
        self._store = store
        self._plans: dict[str, TradePlan] = {}
        self._deleted: set[str] = set()
        self._events: list[TransactionEvent] = []
        self._executions: dict[str, Execution] = {}

    def get_plan(self, plan_id: str) -> Optional[TradePlan]:
        if plan_id in self._plans:
            return self._plans[plan_id]
        if plan_id in self._deleted:
            return None
        return self._store.get_plan(plan_id)

    def save_plan(self, plan: TradePlan) -> None:
        self._deleted.discard(plan.id)
        self._plans[plan.id] = plan

    def delete_plan(self, plan_id: str) -> None:
        self._plans.pop(plan_id, None)
        self._events = [e for e in self._events if e.plan_id != plan_id]
        self._executions = {k: v for k, v in self._executions.items() if v.plan_id != plan_id}
        self._deleted.add(plan_id)

    def list_events(self, plan_id: str) -> list[TransactionEvent]:
        committed = [] if plan_id in self._deleted else self._store.list_events(plan_id)
        staged = [e for e in self._events if e.plan_id == plan_id]
        return sorted(committed + staged, key=event_order)

    def append_event(self, event: TransactionEvent) -> None:
        self._events.append(event)

    def get_execution(self, execution_id: str) -> Optional[Execution]:
        if execution_id in self._executions:
            return self._executions[execution_id]
        execution = self._store.get_execution(execution_id)
        if execution is not None and execution.plan_id in self._deleted:
            return None
        return execution

    def save_execution(self, execution: Execution) -> None:
        self._executions[execution.id] = execution


class InMemoryJournalStore(JournalStore):
    """
    Dictionary-backed store.

    Units of work run one at a time under a store-wide writer lock, so a
    unit of work reads and writes without interleaving with another writer.
    Staged writes are applied atomically; readers only need the data lock.
    """

    def __init__(self):
        self.logger = get_logger("journal.store.memory")
        self._lock = threading.RLock()
        self._write_lock = threading.RLock()
        self._plans: dict[str, TradePlan] = {}
        self._events: dict[str, tuple[TransactionEvent, ...]] = {}
        self._executions: dict[str, Execution] = {}

    @contextmanager
    def unit_of_work(self) -> Iterator[InMemoryUnitOfWork]:
        with self._write_lock:
            uow = InMemoryUnitOfWork(self)
            yield uow
            self._apply(uow)

    def _check_sequences(self, uow: InMemoryUnitOfWork) -> None:
        """Reject staged events whose (plan_id, sequence) is already taken."""
        seen = set()
        for event in uow._events:
            committed = () if event.plan_id in uow._deleted else self._events.get(event.plan_id, ())
            key = (event.plan_id, event.sequence)
            if key in seen or any(e.sequence == event.sequence for e in committed):
                self.logger.error("Duplicate ledger sequence", plan_id=event.plan_id,
                                  sequence=event.sequence)
                raise PersistenceError(
                    f"Duplicate sequence {event.sequence} for plan {event.plan_id}",
                    operation="unit_of_work",
                    target=event.plan_id
                )
            seen.add(key)

    def _apply(self, uow: InMemoryUnitOfWork) -> None:
        with self._lock:
            self._check_sequences(uow)

            for plan_id in uow._deleted:
                self._plans.pop(plan_id, None)
                self._events.pop(plan_id, None)
                self._executions = {
                    k: v for k, v in self._executions.items() if v.plan_id != plan_id
                }

            for plan in uow._plans.values():
                self._plans[plan.id] = plan

            for event in uow._events:
                self._events[event.plan_id] = self._events.get(event.plan_id, ()) + (event,)

            self._executions.update(uow._executions)

        self.logger.debug(
            "Unit of work committed",
            plans=len(uow._plans),
            events=len(uow._events),
            executions=len(uow._executions),
            deleted=len(uow._deleted)
        )

    def get_plan(self, plan_id: str) -> Optional[TradePlan]:
        with self._lock:
            return self._plans.get(plan_id)

    def list_plans(self, status: Optional[PlanStatus] = None) -> list[TradePlan]:
        with self._lock:
            plans = list(self._plans.values())
        if status is not None:
            plans = [p for p in plans if p.status == status]
        return sorted(plans, key=lambda p: (p.created_at, p.id))

    def list_events(self, plan_id: str) -> list[TransactionEvent]:
        with self._lock:
            events = self._events.get(plan_id, ())
        return sorted(events, key=event_order)

    def get_execution(self, execution_id: str) -> Optional[Execution]:
        with self._lock:
            return self._executions.get(execution_id)

    def list_executions(self, plan_id: Optional[str] = None) -> list[Execution]:
        with self._lock:
            executions = list(self._executions.values())
        if plan_id is not None:
            executions = [e for e in executions if e.plan_id == plan_id]
        return sorted(executions, key=lambda e: (e.created_at, e.id))
