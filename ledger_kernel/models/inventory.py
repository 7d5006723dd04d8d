"""
Module: ledger_kernel.models.inventory
Responsibility: Opening stock carried in at go-live, the starting point for
    weighted-average stock valuation.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import Amount, Quantity


class OpeningStock(TrackedBase):
    """Quantity on hand of one item at ``stock_date`` and its unit cost."""

    __tablename__ = "opening_stock"

    __table_args__ = (Index("idx_opening_stock_item", "item_name"),)

    item_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Quantity,
        nullable=False,
    )

    unit_cost: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    stock_date: Mapped[date] = mapped_column(
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<OpeningStock {self.item_name}: {self.quantity} @ {self.unit_cost}>"
