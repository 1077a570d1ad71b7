"""
Journal App - Position Accounting & Risk-Guard Ledger

A trading-discipline journal core. Tracks trade plans from proposal to close,
keeps a weighted-average cost basis over an append-only transaction ledger,
computes realized/unrealized PnL and R-multiples, and enforces pre-trade risk
discipline (risk/reward ratio, lot size, capital-at-risk sizing).
"""

__version__ = "0.1.0"
__author__ = "Journal Team"
