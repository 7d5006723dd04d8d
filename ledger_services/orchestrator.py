"""
ledger_services.orchestrator -- Central DI container for ledger services.

Responsibility:
    Creates every kernel write service and read-side service exactly once
    per session and wires configuration into them: the negative-balance
    policy, post-write verification, aging buckets and allocation policy.

Architecture position:
    Services -- the only place where ``ledger_config`` settings meet kernel
    services.  The kernel itself never reads configuration.

Usage:
    with session_scope() as session:
        ledger = LedgerOrchestrator(session, settings=get_active_config())
        ledger.transfers.transfer(1, 2, "30.000", date(2024, 1, 10))
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from ledger_config.schema import AgingSettings, LedgerSettings
from ledger_engines.aging import STANDARD_BUCKETS, AgeBucket
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.party_service import PartyService
from ledger_kernel.services.transaction_service import TransactionService
from ledger_kernel.services.transfer_service import TransferService
from ledger_services.reporting_service import ReportingService
from ledger_services.statement_service import StatementService


def aging_buckets_from_settings(aging: AgingSettings) -> tuple[AgeBucket, ...]:
    if not aging.buckets:
        return STANDARD_BUCKETS
    return tuple(AgeBucket(b.name, b.min_days, b.max_days) for b in aging.buckets)


class LedgerOrchestrator:
    """
    Central factory for ledger services.

    Guarantees:
        - All services share the same Session and Clock.
        - Every balance-mutating service gets the same verifier, so
          verify_on_write applies uniformly.
        - Sales check credit limits against the same replayed party
          balance the statements show.

    Non-goals:
        - Does NOT manage transaction boundaries (caller's responsibility).
    """

    def __init__(
        self,
        session: Session,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self.settings = settings or LedgerSettings()
        self.clock = clock or SystemClock()

        self.selector = LedgerSelector(session)

        policy = self.settings.accounts
        self.statements = StatementService(session)
        verifier = self.statements.verify_account if policy.verify_on_write else None

        self.accounts = AccountService(
            session, self.clock,
            allow_negative_balance=policy.allow_negative_balance,
            verifier=verifier,
        )
        self.transfers = TransferService(
            session, self.clock,
            allow_negative_balance=policy.allow_negative_balance,
            verifier=verifier,
        )
        self.transactions = TransactionService(
            session, self.clock,
            allow_negative_balance=policy.allow_negative_balance,
            verifier=verifier,
            receivable_lookup=self.statements.party_balance,
        )
        self.parties = PartyService(session, self.clock)
        self.reporting = ReportingService(
            session,
            self.clock,
            aging_buckets=aging_buckets_from_settings(self.settings.aging),
            allocation_policy=self.settings.aging.allocation_policy,
            statements=self.statements,
        )

    def seed_default_accounts(self, actor_id: str | None = None) -> list[AccountInfo]:
        """Create the configured default accounts that do not exist yet."""
        return self.accounts.ensure_default_accounts(
            ((d.name, d.kind) for d in self.settings.accounts.defaults),
            actor_id=actor_id,
        )
