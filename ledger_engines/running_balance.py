"""
Module: ledger_engines.running_balance
Responsibility:
    Fold an ordered sequence of ledger entries into per-row running
    balances, with an optional inclusive date window.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One path: the opening balance of a window and the rows inside it are
      both produced by ``fold``/``apply``.  There is no second formula that
      could disagree, so for A <= B <= C:
        closing([A, C]) == closing([B, C])
        opening([B, C]) == closing(everything before B)
        fold(s, x + y)  == fold(fold(s, x), y)
    - closing - opening == sum(increasing column) - sum(decreasing column)
      over the window, exactly.
    - Decimal only; nothing is rounded here.

Failure modes:
    - InvalidDateRangeError when start_date > end_date.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.decimal_math import ZERO, add_decimals
from ledger_kernel.domain.dtos import LedgerEntry, Perspective
from ledger_kernel.exceptions import InvalidDateRangeError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.running_balance")


class BalanceSide(str, Enum):
    """Which column increases the balance."""

    DEBIT_NORMAL = "debit_normal"  # receivables / payables
    CREDIT_NORMAL = "credit_normal"  # cash and bank accounts

    @classmethod
    def for_perspective(cls, perspective: Perspective) -> BalanceSide:
        if Perspective(perspective) == Perspective.ACCOUNT:
            return cls.CREDIT_NORMAL
        return cls.DEBIT_NORMAL


@dataclass(frozen=True)
class StatementRow:
    """A ledger entry with the balance immediately after it."""

    entry: LedgerEntry
    balance: Decimal


@dataclass(frozen=True)
class Statement:
    """
    Windowed running-balance statement.

    Guarantees:
        - rows are in ledger order; rows[-1].balance == closing_balance
          when rows is non-empty, else closing_balance == opening_balance.
    """

    opening_balance: Decimal
    closing_balance: Decimal
    rows: tuple[StatementRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    side: BalanceSide
    start_date: date | None = None
    end_date: date | None = None

    @property
    def movement(self) -> Decimal:
        return self.closing_balance - self.opening_balance


class RunningBalanceCalculator:
    """
    Running balance fold.

    Contract:
        Pure.  ``side`` fixes the orientation once; every method on the
        instance uses it.
    """

    def __init__(self, side: BalanceSide = BalanceSide.DEBIT_NORMAL):
        self.side = BalanceSide(side)

    def apply(self, balance: Decimal, entry: LedgerEntry) -> Decimal:
        """Balance after one entry."""
        if self.side == BalanceSide.CREDIT_NORMAL:
            return add_decimals(balance, entry.credit, -entry.debit)
        return add_decimals(balance, entry.debit, -entry.credit)

    def fold(self, seed: Decimal, entries: Iterable[LedgerEntry]) -> Decimal:
        balance = seed
        for entry in entries:
            balance = self.apply(balance, entry)
        return balance

    @traced_engine(
        "running_balance", "1.0", fingerprint_fields=("entries", "start_date", "end_date")
    )
    def statement(
        self,
        *,
        entries: Sequence[LedgerEntry],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Statement:
        """
        Build a statement over the inclusive window [start_date, end_date].

        Entries dated before start_date are folded into the opening
        balance; entries after end_date are ignored.  Without a start date
        the opening balance is zero and the full history up to end_date is
        listed.
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

        ordered = sorted(entries, key=lambda e: e.sort_key)

        before = [e for e in ordered if start_date is not None and e.entry_date < start_date]
        window = [
            e
            for e in ordered
            if (start_date is None or e.entry_date >= start_date)
            and (end_date is None or e.entry_date <= end_date)
        ]

        opening = self.fold(ZERO, before)
        balance = opening
        rows: list[StatementRow] = []
        total_debit = ZERO
        total_credit = ZERO
        for entry in window:
            balance = self.apply(balance, entry)
            total_debit = add_decimals(total_debit, entry.debit)
            total_credit = add_decimals(total_credit, entry.credit)
            rows.append(StatementRow(entry=entry, balance=balance))

        logger.debug(
            "statement_built",
            extra={
                "entry_count": len(ordered),
                "row_count": len(rows),
                "opening_balance": str(opening),
                "closing_balance": str(balance),
            },
        )

        return Statement(
            opening_balance=opening,
            closing_balance=balance,
            rows=tuple(rows),
            total_debit=total_debit,
            total_credit=total_credit,
            side=self.side,
            start_date=start_date,
            end_date=end_date,
        )

    def balance_as_of(self, entries: Iterable[LedgerEntry], as_of: date) -> Decimal:
        """Closing balance including every entry dated on or before ``as_of``."""
        ordered = sorted(entries, key=lambda e: e.sort_key)
        return self.fold(ZERO, (e for e in ordered if e.entry_date <= as_of))
