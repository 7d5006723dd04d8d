"""
Module: ledger_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for ledger_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel/domain and ledger_kernel/logging_config.
    MUST NOT import ledger_services or ledger_api.

Invariants enforced:
    - Purity: engines never read the clock.  "Today" is always a parameter.
    - Decimal-only arithmetic: floats never touch a money value.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine entry point is wrapped in ``@traced_engine`` and emits a
    LEDGER_ENGINE_TRACE record with the engine name, version, input
    fingerprint and duration.

Usage:
    from ledger_engines.normalizer import TransactionNormalizer
    from ledger_engines.running_balance import RunningBalanceCalculator
    from ledger_engines.aging import AgingClassifier
    from ledger_engines.financial_standing import FinancialStandingAggregator
"""

from ledger_engines.aging import (
    STANDARD_BUCKETS,
    AgeBucket,
    AgingClassifier,
    AgingReport,
    AllocationPolicy,
    CustomerAging,
    CustomerLedger,
    OpenItem,
)
from ledger_engines.financial_standing import (
    INVERSE_METRICS,
    FinancialMetrics,
    FinancialStanding,
    FinancialStandingAggregator,
    PurchaseDocument,
    StandingInputs,
    Trend,
    compute_trend,
    month_windows,
)
from ledger_engines.normalizer import TransactionNormalizer
from ledger_engines.running_balance import (
    BalanceSide,
    RunningBalanceCalculator,
    Statement,
    StatementRow,
)
from ledger_engines.stock_valuation import (
    ItemValuation,
    MovementType,
    StockMovement,
    StockValuation,
    StockValuationEngine,
)
from ledger_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "INVERSE_METRICS",
    "STANDARD_BUCKETS",
    "AgeBucket",
    "AgingClassifier",
    "AgingReport",
    "AllocationPolicy",
    "BalanceSide",
    "CustomerAging",
    "CustomerLedger",
    "FinancialMetrics",
    "FinancialStanding",
    "FinancialStandingAggregator",
    "ItemValuation",
    "MovementType",
    "OpenItem",
    "PurchaseDocument",
    "RunningBalanceCalculator",
    "StandingInputs",
    "Statement",
    "StatementRow",
    "StockMovement",
    "StockValuation",
    "StockValuationEngine",
    "TransactionNormalizer",
    "Trend",
    "compute_input_fingerprint",
    "compute_trend",
    "month_windows",
    "traced_engine",
]
