"""
Module: ledger_kernel.models.discount
Responsibility: ORM persistence for discounts granted to a customer, either
    against one sales invoice or on the account as a whole.
Architecture position: Kernel > Models.  May import from db/ only.

A discount is a credit on the customer's ledger: it lowers what they owe
exactly like a payment received, but no money moves and no account is
touched.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import Amount, LongText


class Discount(TrackedBase):
    """Amount knocked off a customer's receivable."""

    __tablename__ = "discounts"

    __table_args__ = (
        Index("idx_discount_party", "party_id"),
        Index("idx_discount_sales_order", "sales_order_id"),
    )

    discount_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    party_id: Mapped[int] = mapped_column(
        ForeignKey("parties.id"),
        nullable=False,
    )

    # Invoice the discount was given on; NULL for an account-level discount
    sales_order_id: Mapped[int | None] = mapped_column(
        ForeignKey("sales_orders.id"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        LongText,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Discount {self.id}: party {self.party_id} {self.amount}>"
