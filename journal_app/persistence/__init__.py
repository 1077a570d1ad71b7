"""
Journal persistence.

Stores implement the JournalStore interface: atomic units of work for
mutations and committed-state reads for everything else.
"""

from ..config.defaults import StorageParams
from .base import JournalStore, UnitOfWork
from .memory_store import InMemoryJournalStore
from .sqlite_store import SqliteJournalStore


def create_store(params: StorageParams) -> JournalStore:
    """Build the store selected by the storage configuration."""
    if params.backend == "sqlite":
        return SqliteJournalStore(params.db_path or "journal.db")
    return InMemoryJournalStore()


__all__ = [
    "JournalStore",
    "UnitOfWork",
    "InMemoryJournalStore",
    "SqliteJournalStore",
    "create_store",
]
