"""
Journal store interface.

A store holds plans, their append-only ledger events and their close
records. All mutations go through a unit of work: the writes staged inside
one ``with store.unit_of_work() as uow:`` block become visible together when
the block exits normally and are discarded when it raises. Units of work on
one store are serialized: a unit of work that reads a plan's ledger and
appends to it cannot interleave with another writer. Reads on the store
itself only ever see committed state.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional

from ..data.models import Execution, PlanStatus, TradePlan, TransactionEvent


class UnitOfWork(ABC):
    """Staged view over the store; reads see committed state plus own writes."""

    @abstractmethod
    def get_plan(self, plan_id: str) -> Optional[TradePlan]:
        pass

    @abstractmethod
    def save_plan(self, plan: TradePlan) -> None:
        pass

    @abstractmethod
    def delete_plan(self, plan_id: str) -> None:
        """Remove the plan together with its events and executions."""
        pass

    @abstractmethod
    def list_events(self, plan_id: str) -> list[TransactionEvent]:
        """Events for a plan ordered by (timestamp, sequence)."""
        pass

    @abstractmethod
    def append_event(self, event: TransactionEvent) -> None:
        pass

    @abstractmethod
    def get_execution(self, execution_id: str) -> Optional[Execution]:
        pass

    @abstractmethod
    def save_execution(self, execution: Execution) -> None:
        pass


class JournalStore(ABC):
    """Persistent home of the journal."""

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[UnitOfWork]:
        """
        Open an atomic unit of work.

        Raises:
            PersistenceError: If the underlying storage fails
        """
        pass

    @abstractmethod
    def get_plan(self, plan_id: str) -> Optional[TradePlan]:
        pass

    @abstractmethod
    def list_plans(self, status: Optional[PlanStatus] = None) -> list[TradePlan]:
        """Committed plans ordered by creation time, optionally filtered by status."""
        pass

    @abstractmethod
    def list_events(self, plan_id: str) -> list[TransactionEvent]:
        """Committed events for a plan ordered by (timestamp, sequence)."""
        pass

    @abstractmethod
    def get_execution(self, execution_id: str) -> Optional[Execution]:
        pass

    @abstractmethod
    def list_executions(self, plan_id: Optional[str] = None) -> list[Execution]:
        """Committed close records ordered by creation time."""
        pass


def event_order(event: TransactionEvent) -> tuple:
    """Sort key for ledger replay."""
    return (event.timestamp, event.sequence)
