"""
ledger_services.statement_service -- Account and party statements.

Responsibility:
    Compose the read side: selector (records) -> TransactionNormalizer
    (ordered entries) -> RunningBalanceCalculator (statement).  Also owns
    the stored-vs-replayed balance reconciliation that every
    balance-mutating write runs before its transaction is committed.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Holds the
    session; never writes.

Invariants enforced:
    - One replay path: statements, dashboards and reconciliation all fold
      the same normalized entries, so an account's closing balance on a
      statement equals its reconciled balance.
    - A party statement's perspective is the party's type.

Failure modes:
    - AccountNotFoundError / PartyNotFoundError for unknown ids.
    - InvalidDateRangeError when start_date > end_date.
    - BalanceDriftError from ``verify_account`` on a mismatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_engines.normalizer import TransactionNormalizer
from ledger_engines.running_balance import BalanceSide, RunningBalanceCalculator, Statement
from ledger_kernel.domain.dtos import (
    AccountInfo,
    NormalizedLedger,
    PartyInfo,
    Perspective,
    SkippedRecord,
)
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    BalanceDriftError,
    InvalidDateRangeError,
    PartyNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.statement")


@dataclass(frozen=True)
class AccountStatement:
    account: AccountInfo
    statement: Statement
    skipped: tuple[SkippedRecord, ...] = ()


@dataclass(frozen=True)
class PartyStatement:
    party: PartyInfo
    perspective: Perspective
    statement: Statement
    skipped: tuple[SkippedRecord, ...] = ()


@dataclass(frozen=True)
class Reconciliation:
    """Stored materialized balance next to the balance replayed from history."""

    account_id: int
    stored_balance: Decimal
    replayed_balance: Decimal

    @property
    def matches(self) -> bool:
        return self.stored_balance == self.replayed_balance

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.replayed_balance


class StatementService:
    """Statements for accounts and parties, plus balance reconciliation."""

    def __init__(self, session: Session, normalizer: TransactionNormalizer | None = None):
        self._session = session
        self._selector = LedgerSelector(session)
        self._normalizer = normalizer or TransactionNormalizer()

    # -- Ledgers ---------------------------------------------------------------

    def account_ledger(self, account_id: int, end_date: date | None = None) -> NormalizedLedger:
        return self._normalizer.normalize(
            perspective=Perspective.ACCOUNT,
            entity_id=account_id,
            records=self._selector.account_records(account_id, end_date),
        )

    def party_ledger(
        self,
        party: PartyInfo,
        end_date: date | None = None,
    ) -> NormalizedLedger:
        perspective = Perspective(party.party_type)
        return self._normalizer.normalize(
            perspective=perspective,
            entity_id=party.id,
            records=self._selector.party_records(party.id, perspective, end_date),
        )

    # -- Statements --------------------------------------------------------

    @staticmethod
    def _check_window(start_date: date | None, end_date: date | None) -> None:
        if start_date is not None and end_date is not None and start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

    def account_statement(
        self,
        account_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AccountStatement:
        self._check_window(start_date, end_date)
        account = self._selector.find_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        ledger = self.account_ledger(account_id, end_date)
        statement = RunningBalanceCalculator(BalanceSide.CREDIT_NORMAL).statement(
            entries=ledger.entries, start_date=start_date, end_date=end_date
        )
        return AccountStatement(account=account, statement=statement, skipped=ledger.skipped)

    def party_statement(
        self,
        party_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PartyStatement:
        self._check_window(start_date, end_date)
        party = self._selector.find_party(party_id)
        if party is None:
            raise PartyNotFoundError(party_id)

        ledger = self.party_ledger(party, end_date)
        calculator = RunningBalanceCalculator(BalanceSide.for_perspective(ledger.perspective))
        statement = calculator.statement(
            entries=ledger.entries, start_date=start_date, end_date=end_date
        )
        return PartyStatement(
            party=party,
            perspective=ledger.perspective,
            statement=statement,
            skipped=ledger.skipped,
        )

    def party_balance(self, party_id: int) -> Decimal:
        """Current balance owed by (or to) the party, from a full replay."""
        return self.party_statement(party_id).statement.closing_balance

    # -- Reconciliation ----------------------------------------------------

    def reconcile_account(self, account_id: int) -> Reconciliation:
        """Compare the stored balance with a full replay of the account's ledger."""
        account = self._selector.find_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        ledger = self.account_ledger(account_id)
        replayed = RunningBalanceCalculator(BalanceSide.CREDIT_NORMAL).fold(
            Decimal("0"), sorted(ledger.entries, key=lambda e: e.sort_key)
        )
        return Reconciliation(
            account_id=account_id,
            stored_balance=account.balance,
            replayed_balance=replayed,
        )

    def verify_account(self, account_id: int) -> Reconciliation:
        """
        Reconcile and raise on mismatch.

        Used as the post-write verifier of the kernel write services.
        """
        result = self.reconcile_account(account_id)
        if not result.matches:
            logger.error(
                "account_balance_drift",
                extra={
                    "account_id": account_id,
                    "stored_balance": str(result.stored_balance),
                    "replayed_balance": str(result.replayed_balance),
                },
            )
            raise BalanceDriftError(account_id, result.stored_balance, result.replayed_balance)
        return result
