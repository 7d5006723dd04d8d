"""
Module: ledger_kernel.models.party
Responsibility: ORM persistence for the customers, suppliers and salesmen the
    business transacts with.
Architecture position: Kernel > Models.  May import from db/ only.

A party's balance is never stored.  It is always derived by replaying the
party's sales, purchases, payments, returns, discounts and opening balances.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import Amount


class PartyType(str, Enum):
    """Classification of party types."""

    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    SALESMAN = "salesman"


class Party(TrackedBase):
    """External entity the business sells to, buys from, or sells through."""

    __tablename__ = "parties"

    __table_args__ = (
        Index("idx_party_type", "party_type"),
        Index("idx_party_name", "name"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    party_type: Mapped[PartyType] = mapped_column(
        String(20),
        nullable=False,
    )

    phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # Cap on a customer's receivable checked when a sale is recorded; 0 means none
    credit_limit: Mapped[Decimal | None] = mapped_column(
        Amount,
        nullable=True,
        default=Decimal("0"),
    )

    def __repr__(self) -> str:
        return f"<Party {self.id}: {self.name} ({self.party_type})>"
