"""
Utility functions module.

Decimal quantity/price primitives and UTC time helpers shared across the
journal.

Numeric Semantics:
- All prices and money amounts are Decimal, never binary floats
- Quantities are whole shares in multiples of the configured lot size
- Invalid quantities are rejected, never silently rounded
"""
