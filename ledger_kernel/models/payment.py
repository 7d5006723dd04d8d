"""
Module: ledger_kernel.models.payment
Responsibility: ORM persistence for money received or paid (optionally
    against a party) and for operating expenses paid out of an account.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Payment.direction in (IN, OUT); amount > 0, the direction carries the sign.
    - A payment or expense with an account_id moved that account's balance
      when it was recorded (TransactionService does both in one flush).
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import Amount, LongText, ShortCode


class Payment(TrackedBase):
    """Money in from a customer / salesman, or out to a supplier."""

    __tablename__ = "payments"

    __table_args__ = (
        CheckConstraint("direction IN ('IN', 'OUT')", name="ck_payment_direction"),
        Index("idx_payment_party", "party_id"),
        Index("idx_payment_account", "account_id"),
        Index("idx_payment_date", "payment_date"),
    )

    payment_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    direction: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    party_id: Mapped[int | None] = mapped_column(
        ForeignKey("parties.id"),
        nullable=True,
    )

    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(
        ShortCode,
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        LongText,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Payment {self.id}: {self.direction} {self.amount}>"


class Expense(TrackedBase):
    """Operating expense (rent, salaries, utilities) paid from an account."""

    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_account", "account_id"),
        Index("idx_expense_date", "expense_date"),
    )

    expense_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
    )

    category: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        LongText,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Expense {self.id}: {self.category} {self.amount}>"
