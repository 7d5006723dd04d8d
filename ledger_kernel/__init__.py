"""
Trade Ledger Kernel

Persistence, domain values and write services for an electronics-trading
ledger:
- Exact fixed-point money (3-decimal KWD, per-currency scale for foreign amounts)
- Materialized account balances that always equal their replayed ledger
- Typed exceptions and structured JSON logging
"""

__version__ = "0.1.0"
