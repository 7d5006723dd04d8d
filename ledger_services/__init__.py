"""
ledger_services -- Package init and public API.

Responsibility:
    Orchestration that composes the pure engines (ledger_engines/) with
    database sessions and the clock.  This is the only layer that combines
    selectors, engines and configuration.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

        ledger_services/ -> ledger_engines/  (allowed)
        ledger_services/ -> ledger_kernel/   (allowed)
        ledger_engines/  -> ledger_services/ (FORBIDDEN)
        ledger_kernel/   -> ledger_services/ (FORBIDDEN)
"""

from ledger_services.export import export_party_statement_xlsx
from ledger_services.orchestrator import LedgerOrchestrator
from ledger_services.reporting_service import ReportingService
from ledger_services.statement_service import (
    AccountStatement,
    PartyStatement,
    Reconciliation,
    StatementService,
)

__all__ = [
    "AccountStatement",
    "LedgerOrchestrator",
    "PartyStatement",
    "Reconciliation",
    "ReportingService",
    "StatementService",
    "export_party_statement_xlsx",
]
