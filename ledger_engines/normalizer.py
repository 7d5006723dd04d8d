"""
Module: ledger_engines.normalizer
Responsibility:
    Turn heterogeneous source records (sales, purchases, payments, returns,
    discounts, transfers, adjustments, opening balances, expenses) into a
    single, chronologically ordered sequence of ``LedgerEntry`` values for one
    account or party.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Exactly one of debit / credit is nonzero on every entry.
    - Ordering is (date, source-kind rank, source id): identical inputs
      always produce identical output.
    - Sign convention per perspective (the "increasing" column):

        customer / salesman  debit = more receivable
        supplier             debit = more payable
        account              credit = more money in the account

      A negative amount (e.g. a credit opening balance) lands in the
      opposite column as its absolute value.

Failure modes:
    None raised.  Records without a date, with a zero amount, or that do
    not belong to the perspective are excluded and returned in
    ``NormalizedLedger.skipped``; missing dates are logged as warnings.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Callable

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.decimal_math import ZERO, to_decimal
from ledger_kernel.domain.dtos import (
    Direction,
    EntryType,
    LedgerEntry,
    NormalizedLedger,
    Perspective,
    SkippedRecord,
    SourceKind,
    SourceRecord,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.normalizer")

DEBIT = "debit"
CREDIT = "credit"

# A rule maps (record, entity_id) to (entry_type, increasing column) or None
Rule = Callable[[SourceRecord, int], "tuple[EntryType, str] | None"]


def _fixed(entry_type: EntryType, side: str) -> Rule:
    return lambda record, entity_id: (entry_type, side)


def _by_direction(in_rule: tuple[EntryType, str], out_rule: tuple[EntryType, str]) -> Rule:
    def rule(record: SourceRecord, entity_id: int):
        if record.direction == Direction.IN:
            return in_rule
        if record.direction == Direction.OUT:
            return out_rule
        return None

    return rule


def _transfer_side(record: SourceRecord, entity_id: int):
    if record.to_account_id == entity_id:
        return (EntryType.TRANSFER_IN, CREDIT)
    if record.from_account_id == entity_id:
        return (EntryType.TRANSFER_OUT, DEBIT)
    return None


_RULES: dict[Perspective, dict[SourceKind, Rule]] = {
    Perspective.CUSTOMER: {
        SourceKind.OPENING_BALANCE: _fixed(EntryType.OPENING_BALANCE, DEBIT),
        SourceKind.SALE: _fixed(EntryType.SALE, DEBIT),
        SourceKind.SALE_RETURN: _fixed(EntryType.SALE_RETURN, CREDIT),
        SourceKind.DISCOUNT: _fixed(EntryType.DISCOUNT, CREDIT),
        # Money received settles the receivable; a refund paid out re-opens it
        SourceKind.PAYMENT: _by_direction(
            (EntryType.PAYMENT_IN, CREDIT), (EntryType.PAYMENT_OUT, DEBIT)
        ),
    },
    Perspective.SUPPLIER: {
        SourceKind.OPENING_BALANCE: _fixed(EntryType.OPENING_BALANCE, DEBIT),
        SourceKind.PURCHASE: _fixed(EntryType.PURCHASE, DEBIT),
        SourceKind.PURCHASE_RETURN: _fixed(EntryType.PURCHASE_RETURN, CREDIT),
        SourceKind.PAYMENT: _by_direction(
            (EntryType.PAYMENT_IN, DEBIT), (EntryType.PAYMENT_OUT, CREDIT)
        ),
    },
    Perspective.SALESMAN: {
        SourceKind.OPENING_BALANCE: _fixed(EntryType.OPENING_BALANCE, DEBIT),
        SourceKind.SALE: _fixed(EntryType.SALE, DEBIT),
        SourceKind.PAYMENT: _by_direction(
            (EntryType.PAYMENT_IN, CREDIT), (EntryType.PAYMENT_OUT, DEBIT)
        ),
    },
    Perspective.ACCOUNT: {
        SourceKind.OPENING_BALANCE: _fixed(EntryType.OPENING_BALANCE, CREDIT),
        SourceKind.PAYMENT: _by_direction(
            (EntryType.PAYMENT_IN, CREDIT), (EntryType.PAYMENT_OUT, DEBIT)
        ),
        SourceKind.ADJUSTMENT: _by_direction(
            (EntryType.ADJUSTMENT_IN, CREDIT), (EntryType.ADJUSTMENT_OUT, DEBIT)
        ),
        SourceKind.TRANSFER: _transfer_side,
        SourceKind.EXPENSE: _fixed(EntryType.EXPENSE, DEBIT),
    },
}

_DEFAULT_DESCRIPTIONS: dict[EntryType, str] = {
    EntryType.OPENING_BALANCE: "Opening balance",
    EntryType.SALE: "Sales invoice",
    EntryType.PURCHASE: "Purchase invoice",
    EntryType.SALE_RETURN: "Sale return",
    EntryType.PURCHASE_RETURN: "Purchase return",
    EntryType.PAYMENT_IN: "Payment received",
    EntryType.PAYMENT_OUT: "Payment made",
    EntryType.ADJUSTMENT_IN: "Adjustment (in)",
    EntryType.ADJUSTMENT_OUT: "Adjustment (out)",
    EntryType.TRANSFER_IN: "Transfer in",
    EntryType.TRANSFER_OUT: "Transfer out",
    EntryType.EXPENSE: "Expense",
    EntryType.DISCOUNT: "Discount applied",
}


class TransactionNormalizer:
    """
    Normalize source records into ordered ledger entries.

    Contract:
        Pure -- no I/O, no clock.  The same (perspective, entity_id,
        records) always yields an equal ``NormalizedLedger``.
    """

    @traced_engine(
        "normalizer", "1.0", fingerprint_fields=("perspective", "entity_id", "records")
    )
    def normalize(
        self,
        *,
        perspective: Perspective,
        entity_id: int,
        records: Iterable[SourceRecord],
    ) -> NormalizedLedger:
        rules = _RULES[Perspective(perspective)]
        entries: list[LedgerEntry] = []
        skipped: list[SkippedRecord] = []

        for record in records:
            reason = self._rejection_reason(record, rules, entity_id)
            if reason is not None:
                skipped.append(SkippedRecord(record.kind, record.source_id, reason))
                continue
            entries.append(self._to_entry(record, rules[record.kind], entity_id))

        entries.sort(key=lambda e: e.sort_key)

        if skipped:
            logger.info(
                "normalizer_records_skipped",
                extra={
                    "perspective": str(Perspective(perspective).value),
                    "entity_id": entity_id,
                    "skipped_count": len(skipped),
                },
            )

        return NormalizedLedger(
            perspective=Perspective(perspective),
            entity_id=entity_id,
            entries=tuple(entries),
            skipped=tuple(skipped),
        )

    def _rejection_reason(
        self,
        record: SourceRecord,
        rules: dict[SourceKind, Rule],
        entity_id: int,
    ) -> str | None:
        if record.record_date is None:
            logger.warning(
                "ledger_record_missing_date",
                extra={
                    "source_kind": record.kind.value,
                    "source_id": record.source_id,
                    "entity_id": entity_id,
                },
            )
            return "missing date"
        rule = rules.get(record.kind)
        if rule is None:
            return f"{record.kind.value} does not affect this ledger"
        if rule(record, entity_id) is None:
            return "record does not reference this ledger"
        if to_decimal(record.amount).is_zero():
            return "zero amount"
        return None

    def _to_entry(self, record: SourceRecord, rule: Rule, entity_id: int) -> LedgerEntry:
        entry_type, side = rule(record, entity_id)
        amount = to_decimal(record.amount)
        if amount < ZERO:
            side = CREDIT if side == DEBIT else DEBIT
            amount = -amount

        return LedgerEntry(
            entry_date=record.record_date,
            entry_type=entry_type,
            reference=record.reference or "",
            description=record.description or _DEFAULT_DESCRIPTIONS[entry_type],
            debit=amount if side == DEBIT else ZERO,
            credit=amount if side == CREDIT else ZERO,
            source_kind=record.kind,
            source_id=record.source_id,
        )
