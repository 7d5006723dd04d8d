"""
Materialized account balance mutation.

Every write that moves money in or out of an account goes through
``AccountBalanceWriter``: it locks the account rows, applies the signed
change, and (when a verifier is configured) asks the read side to confirm
that the stored balance still equals the replayed ledger.

Lock ordering:
    Rows are always locked in ascending id order, so two concurrent
    transfers A->B and B->A cannot deadlock.  ``SELECT ... FOR UPDATE`` is
    issued on PostgreSQL; SQLite ignores the clause and serializes writers
    itself.
"""

from collections.abc import Callable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.decimal_math import ZERO, add_decimals
from ledger_kernel.exceptions import AccountNotFoundError, InsufficientFundsError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account

logger = get_logger("services.account_balances")

# Called with an account id after a flush; raises BalanceDriftError on mismatch
BalanceVerifier = Callable[[int], object]


class AccountBalanceWriter:
    """Locks accounts and applies balance changes inside the caller's transaction."""

    def __init__(
        self,
        session: Session,
        allow_negative_balance: bool = True,
        verifier: BalanceVerifier | None = None,
    ):
        self.session = session
        self.allow_negative_balance = allow_negative_balance
        self.verifier = verifier

    def lock(self, *account_ids: int) -> dict[int, Account]:
        """
        Lock and load the given accounts in ascending id order.

        Raises:
            AccountNotFoundError: for the first id (in lock order) that does
                not exist.
        """
        ordered = sorted(set(account_ids))
        stmt = (
            select(Account)
            .where(Account.id.in_(ordered))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        found = {a.id: a for a in self.session.execute(stmt).scalars()}
        for account_id in ordered:
            if account_id not in found:
                raise AccountNotFoundError(account_id)
        return found

    def credit(self, account: Account, amount: Decimal) -> None:
        account.balance = add_decimals(account.balance, amount)

    def debit(self, account: Account, amount: Decimal) -> None:
        new_balance = add_decimals(account.balance, -amount)
        if not self.allow_negative_balance and new_balance < ZERO:
            logger.warning(
                "account_insufficient_funds",
                extra={
                    "account_id": account.id,
                    "balance": str(account.balance),
                    "amount": str(amount),
                },
            )
            raise InsufficientFundsError(account.id, account.balance, amount)
        account.balance = new_balance

    def verify(self, *account_ids: int) -> None:
        """Flush, then replay each account through the configured verifier."""
        if self.verifier is None:
            return
        self.session.flush()
        for account_id in sorted(set(account_ids)):
            self.verifier(account_id)
