"""
ledger_services.reporting_service -- Customer aging and financial standing.

Responsibility:
    Gather every party and account ledger through the statement service,
    hand them to the pure aging and financial-standing engines, and supply
    the one impure input those engines refuse to read themselves: today's
    date, from the injected clock.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy.orm import Session

from ledger_engines.aging import (
    STANDARD_BUCKETS,
    AgeBucket,
    AgingClassifier,
    AgingReport,
    AllocationPolicy,
    CustomerLedger,
)
from ledger_engines.financial_standing import (
    FinancialStanding,
    FinancialStandingAggregator,
    PurchaseDocument,
    StandingInputs,
)
from ledger_engines.stock_valuation import MovementType, StockMovement
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import AccountKind
from ledger_kernel.models.party import PartyType
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.selectors.stock_selector import StockSelector
from ledger_services.statement_service import StatementService

logger = get_logger("services.reporting")


class ReportingService:
    """Read-only reports over the whole ledger."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        aging_buckets: Sequence[AgeBucket] = STANDARD_BUCKETS,
        allocation_policy: AllocationPolicy | str = AllocationPolicy.FIFO,
        statements: StatementService | None = None,
    ):
        self._clock = clock or SystemClock()
        self._selector = LedgerSelector(session)
        self._stock = StockSelector(session)
        self._statements = statements or StatementService(session)
        self._classifier = AgingClassifier(aging_buckets, allocation_policy)
        self._aggregator = FinancialStandingAggregator()

    def customer_aging(self, as_of_date: date | None = None) -> AgingReport:
        """Aging of every customer with a nonzero balance, as of today by default."""
        as_of = as_of_date or self._clock.today()
        ledgers = []
        for party in self._selector.list_parties(PartyType.CUSTOMER):
            ledger = self._statements.party_ledger(party, as_of)
            ledgers.append(
                CustomerLedger(
                    customer_id=party.id,
                    customer_name=party.name,
                    entries=ledger.entries,
                )
            )
        return self._classifier.build_report(ledgers, as_of)

    def standing_inputs(self, as_of_date: date) -> StandingInputs:
        customers = tuple(
            self._statements.party_ledger(p, as_of_date).entries
            for p in self._selector.list_parties(PartyType.CUSTOMER)
        )
        suppliers = tuple(
            self._statements.party_ledger(p, as_of_date).entries
            for p in self._selector.list_parties(PartyType.SUPPLIER)
        )
        cash, bank = [], []
        for account in self._selector.list_accounts():
            entries = self._statements.account_ledger(account.id, as_of_date).entries
            (cash if account.kind == AccountKind.CASH.value else bank).append(entries)

        purchases = tuple(
            PurchaseDocument(
                purchase_date=row.purchase_date,
                grn_date=row.grn_date,
                total_kwd=row.total_kwd,
            )
            for row in self._stock.purchases()
        )
        movements = tuple(
            StockMovement(
                item_name=row.item_name,
                movement_type=MovementType(row.movement_type),
                movement_date=row.movement_date,
                quantity=row.quantity,
                cost_amount=row.cost_amount,
            )
            for row in self._stock.movements()
        )
        return StandingInputs(
            customer_ledgers=customers,
            supplier_ledgers=suppliers,
            cash_ledgers=tuple(cash),
            bank_ledgers=tuple(bank),
            purchases=purchases,
            stock_movements=movements,
        )

    def financial_standing(self, as_of_date: date | None = None) -> FinancialStanding:
        """This month to date against the whole of last month."""
        as_of = as_of_date or self._clock.today()
        return self._aggregator.compare(inputs=self.standing_inputs(as_of), as_of_date=as_of)
