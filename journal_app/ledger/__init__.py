"""
Position ledger.

The transaction ledger records immutable position events; the cost-basis
engine folds them into average cost, quantities and realized PnL.
"""

from .cost_basis import CostBasisEngine
from .transaction_ledger import LedgerHistory, TransactionLedger, new_id

__all__ = ["CostBasisEngine", "LedgerHistory", "TransactionLedger", "new_id"]
