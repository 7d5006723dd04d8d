"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for cash/bank accounts and the three record
    families that move money between them without a counterparty: transfers,
    manual adjustments and (in models/opening_balance.py) opening balances.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Account.name is unique.
    - AccountTransfer: from_account_id != to_account_id and amount > 0
      (CHECK constraints, also validated in TransferService before any write).
    - AccountAdjustment: amount > 0 and direction in (IN, OUT).
    - Transfers and adjustments are immutable once written; corrections are
      new records.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import Amount, LongText


class AccountKind(str, Enum):
    """Cash drawer vs. bank / payment-network account."""

    CASH = "cash"
    BANK = "bank"


class Account(TrackedBase):
    """
    A cash drawer or bank account holding book-currency money.

    Contract:
        ``balance`` is the materialized running balance.  It changes only
        through AccountService / TransferService / TransactionService writes
        and always equals the replay of the account's ledger.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("name", name="uq_account_name"),
        Index("idx_account_kind", "kind"),
    )

    # Display name, e.g. "Cash", "NBK Bank"
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Cash counts toward cash-in-hand, everything else toward bank balances
    kind: Mapped[AccountKind] = mapped_column(
        String(10),
        nullable=False,
        default=AccountKind.BANK,
    )

    # Materialized balance, KWD
    balance: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
        default=Decimal("0"),
    )

    @property
    def is_cash(self) -> bool:
        return self.kind == AccountKind.CASH

    def __repr__(self) -> str:
        return f"<Account {self.id}: {self.name} ({self.kind})>"


class AccountTransfer(TrackedBase):
    """Movement of money between two of the business's own accounts."""

    __tablename__ = "account_transfers"

    __table_args__ = (
        CheckConstraint("from_account_id <> to_account_id", name="ck_transfer_distinct_accounts"),
        Index("idx_transfer_from", "from_account_id"),
        Index("idx_transfer_to", "to_account_id"),
        Index("idx_transfer_date", "transfer_date"),
    )

    transfer_date: Mapped[date] = mapped_column(
        nullable=False,
    )

    from_account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
    )

    to_account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
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
        return (
            f"<AccountTransfer {self.id}: {self.from_account_id} -> "
            f"{self.to_account_id} {self.amount}>"
        )


class AccountAdjustment(TrackedBase):
    """Manual correction of an account balance, always with a stated reason."""

    __tablename__ = "account_adjustments"

    __table_args__ = (
        CheckConstraint("direction IN ('IN', 'OUT')", name="ck_adjustment_direction"),
        Index("idx_adjustment_account", "account_id"),
    )

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
    )

    adjustment_date: Mapped[date] = mapped_column(
        nullable=False,
    )

    # Always positive; direction carries the sign
    amount: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    direction: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    reason: Mapped[str] = mapped_column(
        LongText,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AccountAdjustment {self.id}: account {self.account_id} {self.direction} {self.amount}>"
