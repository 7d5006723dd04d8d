"""
Module: ledger_engines.aging
Responsibility:
    Classify each customer's outstanding receivable into aging buckets
    (0-30, 31-60, 61-90, 91+ days by invoice date) after settling
    payments and returns against the open invoices.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The as-of date is a
    parameter; the engine never reads the clock.

Invariants enforced:
    - For every customer: sum(bucket amounts) == total_balance exactly,
      where total_balance == sum(debits) - sum(credits) as of the date.
    - Only customers with a nonzero balance are reported.
    - Credits not absorbed by any open item (overpayment) are reported in
      the first bucket as a negative amount.
    - Invoices dated after the as-of date are ignored; an invoice dated on
      the as-of date has age 0.

Allocation policies:
    fifo          credits settle the oldest open debits first (default)
    proportional  credits reduce every open debit pro-rata; rounding
                  residue goes to the newest debit

Failure modes:
    - ValueError on a bucket set that does not start at day 0.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.decimal_math import (
    KWD_SCALE,
    LEDGER_CONTEXT,
    ZERO,
    add_decimals,
    divide_decimals,
    multiply_decimals,
)
from ledger_kernel.domain.dtos import LedgerEntry
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.aging")


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an aging bucket.

    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded (91+)

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days


STANDARD_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("current", 0, 30),
    AgeBucket("days30", 31, 60),
    AgeBucket("days60", 61, 90),
    AgeBucket("days90_plus", 91, None),
)


class AllocationPolicy(str, Enum):
    FIFO = "fifo"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class OpenItem:
    """The unpaid part of one debit entry and the bucket it ages into."""

    entry_date: date
    reference: str
    source_id: int
    original_amount: Decimal
    outstanding: Decimal
    age_days: int
    bucket: str


@dataclass(frozen=True)
class CustomerAging:
    """One row of the customer aging report."""

    customer_id: int
    customer_name: str
    buckets: dict[str, Decimal]
    total_balance: Decimal
    items: tuple[OpenItem, ...] = ()
    unapplied_credit: Decimal = ZERO

    @property
    def current(self) -> Decimal:
        return self.buckets.get("current", ZERO)

    @property
    def days30(self) -> Decimal:
        return self.buckets.get("days30", ZERO)

    @property
    def days60(self) -> Decimal:
        return self.buckets.get("days60", ZERO)

    @property
    def days90_plus(self) -> Decimal:
        return self.buckets.get("days90_plus", ZERO)


@dataclass(frozen=True)
class AgingReport:
    """Customer aging as of one date, largest balance first."""

    as_of_date: date
    bucket_names: tuple[str, ...]
    rows: tuple[CustomerAging, ...] = field(default_factory=tuple)

    def total_by_bucket(self) -> dict[str, Decimal]:
        return {
            name: add_decimals(*(row.buckets[name] for row in self.rows))
            for name in self.bucket_names
        }

    @property
    def total_balance(self) -> Decimal:
        return add_decimals(*(row.total_balance for row in self.rows))


@dataclass(frozen=True)
class CustomerLedger:
    """Input bundle: one customer's normalized entries."""

    customer_id: int
    customer_name: str
    entries: tuple[LedgerEntry, ...]


class AgingClassifier:
    """
    Allocate credits to open debits and bucket what remains.

    Contract:
        Pure functions -- no I/O, no database access, no clock.
    """

    def __init__(
        self,
        buckets: Sequence[AgeBucket] = STANDARD_BUCKETS,
        policy: AllocationPolicy | str = AllocationPolicy.FIFO,
    ):
        if not buckets or buckets[0].min_days != 0:
            raise ValueError("aging buckets must start at day 0")
        self.buckets = tuple(buckets)
        self.policy = AllocationPolicy(policy)

    def calculate_age(self, document_date: date, as_of_date: date) -> int:
        return (as_of_date - document_date).days

    def classify(self, age_days: int) -> AgeBucket:
        """Bucket for an age; negative ages (future-dated) count as current."""
        if age_days < 0:
            return self.buckets[0]
        for bucket in self.buckets:
            if bucket.contains(age_days):
                return bucket
        logger.warning("age_classification_no_bucket", extra={
            "age_days": age_days,
            "bucket_count": len(self.buckets),
        })
        raise ValueError(f"Age {age_days} does not fit any bucket")

    def allocate(self, entries: Sequence[LedgerEntry]) -> tuple[list[tuple[LedgerEntry, Decimal]], Decimal]:
        """
        Settle credits against debits.

        Returns:
            (open debits with their outstanding amount, unapplied credit)
        """
        debits = [e for e in sorted(entries, key=lambda e: e.sort_key) if e.debit > ZERO]
        total_credit = add_decimals(*(e.credit for e in entries))
        total_debit = add_decimals(*(e.debit for e in debits))

        if total_credit >= total_debit:
            return [], total_credit - total_debit

        if self.policy == AllocationPolicy.PROPORTIONAL:
            return self._allocate_proportional(debits, total_debit, total_credit), ZERO
        return self._allocate_fifo(debits, total_credit), ZERO

    def _allocate_fifo(
        self, debits: list[LedgerEntry], credit: Decimal
    ) -> list[tuple[LedgerEntry, Decimal]]:
        remaining = credit
        open_items: list[tuple[LedgerEntry, Decimal]] = []
        for entry in debits:
            applied = min(entry.debit, remaining)
            remaining -= applied
            outstanding = entry.debit - applied
            if outstanding > ZERO:
                open_items.append((entry, outstanding))
        return open_items

    def _allocate_proportional(
        self, debits: list[LedgerEntry], total_debit: Decimal, credit: Decimal
    ) -> list[tuple[LedgerEntry, Decimal]]:
        remaining_total = total_debit - credit
        ratio = divide_decimals(remaining_total, total_debit)
        quantum = Decimal(1).scaleb(-KWD_SCALE)
        open_items: list[tuple[LedgerEntry, Decimal]] = []
        assigned = ZERO
        for entry in debits[:-1]:
            share = multiply_decimals(entry.debit, ratio).quantize(
                quantum, rounding=ROUND_HALF_UP, context=LEDGER_CONTEXT
            )
            assigned += share
            open_items.append((entry, share))
        # Newest debit absorbs the rounding residue so the total stays exact
        open_items.append((debits[-1], remaining_total - assigned))
        return [(entry, amount) for entry, amount in open_items if amount != ZERO]

    @traced_engine(
        "aging", "1.0", fingerprint_fields=("customer_id", "entries", "as_of_date")
    )
    def classify_customer(
        self,
        *,
        customer_id: int,
        customer_name: str,
        entries: Sequence[LedgerEntry],
        as_of_date: date,
    ) -> CustomerAging:
        in_scope = [e for e in entries if e.entry_date <= as_of_date]
        open_debits, unapplied = self.allocate(in_scope)

        buckets: dict[str, Decimal] = {b.name: ZERO for b in self.buckets}
        items: list[OpenItem] = []
        for entry, outstanding in open_debits:
            age = self.calculate_age(entry.entry_date, as_of_date)
            bucket = self.classify(age)
            buckets[bucket.name] = add_decimals(buckets[bucket.name], outstanding)
            items.append(
                OpenItem(
                    entry_date=entry.entry_date,
                    reference=entry.reference,
                    source_id=entry.source_id,
                    original_amount=entry.debit,
                    outstanding=outstanding,
                    age_days=age,
                    bucket=bucket.name,
                )
            )
        first = self.buckets[0].name
        buckets[first] = add_decimals(buckets[first], -unapplied)

        total = add_decimals(*(e.debit for e in in_scope), *(-e.credit for e in in_scope))
        return CustomerAging(
            customer_id=customer_id,
            customer_name=customer_name,
            buckets=buckets,
            total_balance=total,
            items=tuple(items),
            unapplied_credit=unapplied,
        )

    def build_report(
        self,
        ledgers: Sequence[CustomerLedger],
        as_of_date: date,
    ) -> AgingReport:
        """Aging for every customer with a nonzero balance, largest first."""
        t0 = time.monotonic()
        rows = []
        for ledger in ledgers:
            row = self.classify_customer(
                customer_id=ledger.customer_id,
                customer_name=ledger.customer_name,
                entries=ledger.entries,
                as_of_date=as_of_date,
            )
            if row.total_balance != ZERO:
                rows.append(row)
        rows.sort(key=lambda r: (-r.total_balance, r.customer_id))

        logger.info("aging_report_generated", extra={
            "as_of_date": as_of_date.isoformat(),
            "customer_count": len(ledgers),
            "reported_count": len(rows),
            "allocation_policy": self.policy.value,
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        })
        return AgingReport(
            as_of_date=as_of_date,
            bucket_names=tuple(b.name for b in self.buckets),
            rows=tuple(rows),
        )
