"""
Pure domain layer.

Value objects, DTOs, the clock abstraction and exact decimal arithmetic,
with NO dependencies on the ORM, the database or I/O.
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ledger_kernel.domain.dtos import (
    SOURCE_KIND_RANK,
    AccountInfo,
    Direction,
    EntryType,
    LedgerEntry,
    NormalizedLedger,
    PartyInfo,
    Perspective,
    SkippedRecord,
    SourceKind,
    SourceRecord,
    TransferInfo,
)
from ledger_kernel.domain.values import Money

__all__ = [
    "SOURCE_KIND_RANK",
    "AccountInfo",
    "Clock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Direction",
    "EntryType",
    "LedgerEntry",
    "Money",
    "NormalizedLedger",
    "PartyInfo",
    "Perspective",
    "SkippedRecord",
    "SourceKind",
    "SourceRecord",
    "SystemClock",
    "TransferInfo",
]
