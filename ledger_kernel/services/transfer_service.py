"""
TransferService -- move money between two of the business's own accounts.

Responsibility:
    Validate a transfer request, lock both account rows, move the balance
    and record one immutable ``AccountTransfer`` -- all inside the caller's
    transaction.

Architecture position:
    Kernel > Services -- imperative shell, owns no transaction.

Invariants enforced:
    - amount > 0, from != to, transfer date present.  All checked before
      any row is locked or written.
    - Funds are conserved: from.balance decreases and to.balance increases
      by exactly ``amount``.
    - Both rows are locked in ascending id order (see AccountBalanceWriter).
    - One transfer row per successful call; nothing on failure.

Failure modes:
    - InvalidAmountError / MissingFieldError / SelfTransferError: bad input.
    - AccountNotFoundError: either id unknown.
    - InsufficientFundsError: negative balances disabled and the source
      cannot cover the amount.
    - BalanceDriftError (from the verifier): a stored balance no longer
      matches its replayed ledger.  The caller must roll back.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock
from ledger_kernel.exceptions import SelfTransferError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import AccountTransfer
from ledger_kernel.services.account_balances import AccountBalanceWriter, BalanceVerifier
from ledger_kernel.services.base import BaseService

logger = get_logger("services.transfer")


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a committed-to-session transfer."""

    transfer_id: int
    transfer_date: date
    from_account_id: int
    to_account_id: int
    amount: Decimal
    from_balance: Decimal
    to_balance: Decimal


class TransferService(BaseService[AccountTransfer]):
    """Account-to-account transfers."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        allow_negative_balance: bool = True,
        verifier: BalanceVerifier | None = None,
    ):
        super().__init__(session, clock)
        self._balances = AccountBalanceWriter(
            session,
            allow_negative_balance=allow_negative_balance,
            verifier=verifier,
        )

    def transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: object,
        transfer_date: date | None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> TransferResult:
        """
        Move ``amount`` from one account to another.

        Returns:
            TransferResult with the new balances of both accounts.
        """
        value = self._require_positive(amount)
        when = self._require_date(transfer_date, "transfer_date")
        if from_account_id == to_account_id:
            raise SelfTransferError(from_account_id)

        with LogContext.bind(actor_id=actor_id, operation="account_transfer"):
            logger.info(
                "transfer_started",
                extra={
                    "from_account_id": from_account_id,
                    "to_account_id": to_account_id,
                    "amount": str(value),
                    "transfer_date": when.isoformat(),
                },
            )

            accounts = self._balances.lock(from_account_id, to_account_id)
            source = accounts[from_account_id]
            destination = accounts[to_account_id]

            self._balances.debit(source, value)
            self._balances.credit(destination, value)

            record = AccountTransfer(
                transfer_date=when,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=value,
                notes=notes or None,
                created_by=actor_id,
            )
            self.session.add(record)
            self.session.flush()

            self._balances.verify(from_account_id, to_account_id)

            logger.info(
                "transfer_completed",
                extra={
                    "transfer_id": record.id,
                    "from_balance": str(source.balance),
                    "to_balance": str(destination.balance),
                },
            )

        return TransferResult(
            transfer_id=record.id,
            transfer_date=when,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=value,
            from_balance=source.balance,
            to_balance=destination.balance,
        )
