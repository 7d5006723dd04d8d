"""Selectors for the trade ledger (read side)."""

from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.selectors.stock_selector import MovementRow, PurchaseRow, StockSelector

__all__ = [
    "LedgerSelector",
    "MovementRow",
    "PurchaseRow",
    "StockSelector",
]
