"""
Service layer for Account operations.

Creates and renames accounts, seeds the default set, guards deletion, and
records the two balance-setting writes that have no counterparty: opening
balances and manual adjustments.

Returns AccountInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import AccountInfo, Direction
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    AdjustmentReasonRequiredError,
    DuplicateAccountNameError,
    InvalidDirectionError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account, AccountAdjustment, AccountKind, AccountTransfer
from ledger_kernel.models.opening_balance import OpeningBalance
from ledger_kernel.models.payment import Expense, Payment
from ledger_kernel.services.account_balances import AccountBalanceWriter, BalanceVerifier
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")


class AccountService(BaseService[Account]):
    """
    Service for managing cash and bank accounts.

    All public methods return AccountInfo DTOs, not ORM Account entities.
    """

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

    def _to_dto(self, account: Account) -> AccountInfo:
        """Convert ORM Account to AccountInfo DTO."""
        return AccountInfo(
            id=account.id,
            name=account.name,
            kind=AccountKind(account.kind).value,
            balance=account.balance,
        )

    def _get_by_id(self, account_id: int) -> Account:
        """Get account by ID, raising if not found."""
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(Account.id).where(func.lower(Account.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Account.id != exclude_id)
        return self.session.execute(stmt).first() is not None

    def get_by_id(self, account_id: int) -> AccountInfo:
        """
        Get account by ID.

        Raises:
            AccountNotFoundError: If account doesn't exist.
        """
        return self._to_dto(self._get_by_id(account_id))

    # -- Admin ----------------------------------------------------------------

    def create_account(
        self,
        name: str,
        kind: AccountKind | str = AccountKind.BANK,
        actor_id: str | None = None,
    ) -> AccountInfo:
        """
        Create an account with a zero balance.

        Raises:
            MissingFieldError: blank name.
            InvalidChoiceError: kind is not cash / bank.
            DuplicateAccountNameError: name already used (case-insensitive).
        """
        clean_name = self._require_text(name, "name")
        account_kind = self._require_choice(kind, AccountKind, "kind")
        if self._name_taken(clean_name):
            raise DuplicateAccountNameError(clean_name)

        account = Account(name=clean_name, kind=account_kind.value, created_by=actor_id)
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={"account_id": account.id, "account_name": clean_name, "kind": account_kind.value},
        )
        return self._to_dto(account)

    def rename_account(self, account_id: int, name: str) -> AccountInfo:
        clean_name = self._require_text(name, "name")
        account = self._get_by_id(account_id)
        if self._name_taken(clean_name, exclude_id=account_id):
            raise DuplicateAccountNameError(clean_name)
        account.name = clean_name
        self.session.flush()
        return self._to_dto(account)

    def ensure_default_accounts(
        self,
        defaults: Iterable[tuple[str, str]],
        actor_id: str | None = None,
    ) -> list[AccountInfo]:
        """
        Create any of the ``(name, kind)`` defaults that do not exist yet.

        Returns:
            DTOs of the accounts that were created (empty when all existed).
        """
        created = []
        for name, kind in defaults:
            if not self._name_taken(name):
                created.append(self.create_account(name, kind, actor_id=actor_id))
        if created:
            logger.info("default_accounts_seeded", extra={"count": len(created)})
        return created

    def reference_counts(self, account_id: int) -> dict[str, int]:
        """Number of ledger records of each family that reference the account."""
        checks = {
            "transfers": select(func.count(AccountTransfer.id)).where(
                or_(AccountTransfer.from_account_id == account_id,
                    AccountTransfer.to_account_id == account_id)
            ),
            "payments": select(func.count(Payment.id)).where(Payment.account_id == account_id),
            "adjustments": select(func.count(AccountAdjustment.id)).where(
                AccountAdjustment.account_id == account_id
            ),
            "opening_balances": select(func.count(OpeningBalance.id)).where(
                OpeningBalance.account_id == account_id
            ),
            "expenses": select(func.count(Expense.id)).where(Expense.account_id == account_id),
        }
        counts = {name: self.session.execute(stmt).scalar_one() for name, stmt in checks.items()}
        return {name: n for name, n in counts.items() if n}

    def delete_account(self, account_id: int) -> None:
        """
        Delete an account that no ledger record references.

        Raises:
            AccountNotFoundError: unknown id.
            AccountReferencedError: the account has history.
        """
        account = self._get_by_id(account_id)
        references = self.reference_counts(account_id)
        if references:
            raise AccountReferencedError(account_id, references)
        self.session.delete(account)
        self.session.flush()
        logger.info("account_deleted", extra={"account_id": account_id})

    # -- Balance-setting writes -------------------------------------------

    def add_opening_balance(
        self,
        account_id: int,
        amount: object,
        balance_date: date | None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> AccountInfo:
        """
        Record an opening balance and add it to the account balance.

        ``amount`` is signed: a negative opening balance records an
        overdrawn account.  Several opening balances simply add up.
        """
        value = self._require_nonzero(amount)
        when = self._require_date(balance_date, "date")

        with LogContext.bind(actor_id=actor_id, account_id=account_id, operation="opening_balance"):
            account = self._balances.lock(account_id)[account_id]
            self._balances.credit(account, value)
            self.session.add(OpeningBalance(
                account_id=account_id,
                amount=value,
                balance_date=when,
                notes=notes or None,
                created_by=actor_id,
            ))
            self.session.flush()
            self._balances.verify(account_id)

            logger.info(
                "opening_balance_recorded",
                extra={"amount": str(value), "balance_date": when.isoformat(),
                       "balance": str(account.balance)},
            )
        return self._to_dto(account)

    def add_adjustment(
        self,
        account_id: int,
        amount: object,
        direction: Direction | str | None,
        adjustment_date: date | None,
        reason: str | None,
        actor_id: str | None = None,
    ) -> AccountInfo:
        """
        Manually correct an account balance.

        Raises:
            InvalidAmountError: amount not strictly positive.
            InvalidDirectionError: direction not IN / OUT.
            AdjustmentReasonRequiredError: blank reason.
        """
        value = self._require_positive(amount)
        try:
            flow = Direction(str(direction).upper()) if direction is not None else None
        except ValueError:
            flow = None
        if flow is None:
            raise InvalidDirectionError(direction)
        when = self._require_date(adjustment_date, "date")
        if reason is None or not reason.strip():
            raise AdjustmentReasonRequiredError(account_id)

        with LogContext.bind(actor_id=actor_id, account_id=account_id, operation="account_adjustment"):
            account = self._balances.lock(account_id)[account_id]
            if flow == Direction.IN:
                self._balances.credit(account, value)
            else:
                self._balances.debit(account, value)

            self.session.add(AccountAdjustment(
                account_id=account_id,
                adjustment_date=when,
                amount=value,
                direction=flow.value,
                reason=reason.strip(),
                created_by=actor_id,
            ))
            self.session.flush()
            self._balances.verify(account_id)

            logger.info(
                "adjustment_recorded",
                extra={"direction": flow.value, "amount": str(value),
                       "balance": str(account.balance)},
            )
        return self._to_dto(account)
