"""
Module: ledger_kernel.models.opening_balance
Responsibility: Opening balances carried in from before the system went live,
    for either an account or a party (never both).
Architecture position: Kernel > Models.

An opening balance is an ordinary, dated ledger record: it is folded into
the running balance like any other entry, so several opening balances on
the same account simply add up.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import Amount, LongText


class OpeningBalance(TrackedBase):
    """Baseline amount for an account (cash on hand) or a party (amount owed)."""

    __tablename__ = "opening_balances"

    __table_args__ = (
        CheckConstraint(
            "(account_id IS NULL) <> (party_id IS NULL)",
            name="ck_opening_balance_single_target",
        ),
        Index("idx_opening_balance_account", "account_id"),
        Index("idx_opening_balance_party", "party_id"),
    )

    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
    )

    party_id: Mapped[int | None] = mapped_column(
        ForeignKey("parties.id"),
        nullable=True,
    )

    # Signed: a negative party opening balance is a credit carried forward
    amount: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    balance_date: Mapped[date] = mapped_column(
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        LongText,
        nullable=True,
    )

    def __repr__(self) -> str:
        target = f"account {self.account_id}" if self.account_id else f"party {self.party_id}"
        return f"<OpeningBalance {self.id}: {target} {self.amount}>"
