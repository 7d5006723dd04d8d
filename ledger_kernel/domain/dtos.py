"""
Data transfer objects shared by selectors, engines and services.

Raw ``SourceRecord`` values are what selectors hand to the normalizer;
``LedgerEntry`` values are what the normalizer hands to the running
balance calculator and the aging classifier. Both are frozen so a
statement can be replayed from the same inputs any number of times.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class Direction(str, Enum):
    """Cash direction of a payment or adjustment, seen from the business."""

    IN = "IN"
    OUT = "OUT"


class Perspective(str, Enum):
    """Whose ledger a statement is built for."""

    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    SALESMAN = "salesman"
    ACCOUNT = "account"


class SourceKind(str, Enum):
    """Persisted record family an entry was derived from."""

    OPENING_BALANCE = "opening_balance"
    SALE = "sale"
    PURCHASE = "purchase"
    SALE_RETURN = "sale_return"
    PURCHASE_RETURN = "purchase_return"
    PAYMENT = "payment"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    EXPENSE = "expense"
    DISCOUNT = "discount"


# Same-day ordering between record families. Opening balances always come
# first; invoices precede the returns, discounts and payments that settle them.
SOURCE_KIND_RANK: dict[SourceKind, int] = {
    SourceKind.OPENING_BALANCE: 0,
    SourceKind.SALE: 1,
    SourceKind.PURCHASE: 1,
    SourceKind.SALE_RETURN: 2,
    SourceKind.PURCHASE_RETURN: 2,
    SourceKind.DISCOUNT: 2,
    SourceKind.PAYMENT: 3,
    SourceKind.ADJUSTMENT: 4,
    SourceKind.TRANSFER: 5,
    SourceKind.EXPENSE: 6,
}


class EntryType(str, Enum):
    """Statement line label."""

    OPENING_BALANCE = "OPENING_BALANCE"
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    SALE_RETURN = "SALE_RETURN"
    PURCHASE_RETURN = "PURCHASE_RETURN"
    PAYMENT_IN = "PAYMENT_IN"
    PAYMENT_OUT = "PAYMENT_OUT"
    ADJUSTMENT_IN = "ADJUSTMENT_IN"
    ADJUSTMENT_OUT = "ADJUSTMENT_OUT"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    EXPENSE = "EXPENSE"
    DISCOUNT = "DISCOUNT"


@dataclass(frozen=True)
class SourceRecord:
    """
    One persisted ledger-affecting record, flattened for normalization.

    ``record_date`` may be None for legacy rows; the normalizer skips those.
    ``direction`` is set for payments and adjustments; the account ids are
    set for transfers.
    """

    kind: SourceKind
    source_id: int
    record_date: date | None
    amount: Decimal
    reference: str = ""
    description: str = ""
    direction: Direction | None = None
    from_account_id: int | None = None
    to_account_id: int | None = None


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A normalized statement line. Exactly one of debit / credit is nonzero."""

    entry_date: date
    entry_type: EntryType
    reference: str
    description: str
    debit: Decimal
    credit: Decimal
    source_kind: SourceKind
    source_id: int

    @property
    def sort_key(self) -> tuple[date, int, int]:
        return (self.entry_date, SOURCE_KIND_RANK[self.source_kind], self.source_id)


@dataclass(frozen=True)
class SkippedRecord:
    """A source record excluded from a statement, with the reason."""

    kind: SourceKind
    source_id: int
    reason: str


@dataclass(frozen=True)
class NormalizedLedger:
    """Normalizer output: ordered entries plus anything that was excluded."""

    perspective: Perspective
    entity_id: int
    entries: tuple[LedgerEntry, ...]
    skipped: tuple[SkippedRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AccountInfo:
    """Read model of an account row."""

    id: int
    name: str
    kind: str
    balance: Decimal


@dataclass(frozen=True)
class PartyInfo:
    """Read model of a party row."""

    id: int
    name: str
    party_type: str
    phone: str | None = None


@dataclass(frozen=True)
class TransferInfo:
    """Read model of an account transfer row."""

    id: int
    transfer_date: date
    from_account_id: int
    to_account_id: int
    amount: Decimal
    notes: str | None = None
    created_by: str | None = None
