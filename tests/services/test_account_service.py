"""
Tests for AccountService.

Covers:
- Account creation, naming rules and default seeding
- Opening balances and manual adjustments
- Deletion guarded by ledger history
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    AdjustmentReasonRequiredError,
    DuplicateAccountNameError,
    ExcessPrecisionError,
    InvalidAmountError,
    InvalidChoiceError,
    InvalidDirectionError,
    MissingFieldError,
)
from ledger_kernel.models.account import AccountAdjustment
from ledger_kernel.models.opening_balance import OpeningBalance


class TestCreateAccount:
    def test_starts_at_zero(self, ledger):
        account = ledger.accounts.create_account("Knet", "bank")

        assert account.balance == Decimal("0")
        assert account.kind == "bank"

    def test_name_trimmed(self, ledger):
        assert ledger.accounts.create_account("  Wamd ").name == "Wamd"

    def test_duplicate_name_case_insensitive(self, ledger):
        ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(DuplicateAccountNameError):
            ledger.accounts.create_account("CASH", "cash")

    def test_blank_name(self, ledger):
        with pytest.raises(MissingFieldError):
            ledger.accounts.create_account("   ")

    def test_unknown_kind(self, ledger):
        with pytest.raises(InvalidChoiceError) as exc_info:
            ledger.accounts.create_account("Vault", "gold")

        assert exc_info.value.allowed == ("cash", "bank")

    def test_rename(self, ledger):
        account = ledger.accounts.create_account("Old")

        assert ledger.accounts.rename_account(account.id, "New").name == "New"

    def test_rename_to_taken_name(self, ledger):
        ledger.accounts.create_account("A")
        b = ledger.accounts.create_account("B")

        with pytest.raises(DuplicateAccountNameError):
            ledger.accounts.rename_account(b.id, "a")

    def test_get_unknown(self, ledger):
        with pytest.raises(AccountNotFoundError):
            ledger.accounts.get_by_id(42)


class TestDefaultAccounts:
    def test_seeding_is_idempotent(self, ledger):
        defaults = [("Cash", "cash"), ("NBK Bank", "bank")]

        first = ledger.accounts.ensure_default_accounts(defaults)
        second = ledger.accounts.ensure_default_accounts(defaults)

        assert [a.name for a in first] == ["Cash", "NBK Bank"]
        assert second == []

    def test_existing_account_kept(self, ledger):
        ledger.accounts.create_account("cash", "cash")

        created = ledger.accounts.ensure_default_accounts([("Cash", "cash"), ("Knet", "bank")])

        assert [a.name for a in created] == ["Knet"]

    def test_orchestrator_seeds_configured_defaults(self, strict_ledger):
        created = strict_ledger.seed_default_accounts()

        assert [(a.name, a.kind) for a in created] == [("Cash", "cash")]


class TestOpeningBalance:
    def test_adds_to_balance(self, ledger, session):
        account = ledger.accounts.create_account("Cash", "cash")

        result = ledger.accounts.add_opening_balance(
            account.id, "100", date(2024, 1, 1), notes="carried in", actor_id="tester"
        )

        assert result.balance == Decimal("100.000")
        row = session.scalars(select(OpeningBalance)).one()
        assert row.account_id == account.id
        assert row.party_id is None
        assert row.created_by == "tester"

    def test_several_opening_balances_add_up(self, ledger):
        account = ledger.accounts.create_account("Cash", "cash")

        ledger.accounts.add_opening_balance(account.id, "100", date(2024, 1, 1))
        result = ledger.accounts.add_opening_balance(account.id, "-25.5", date(2024, 1, 1))

        assert result.balance == Decimal("74.500")

    def test_zero_rejected(self, ledger):
        account = ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(InvalidAmountError):
            ledger.accounts.add_opening_balance(account.id, "0", date(2024, 1, 1))

    def test_signed_amount_beyond_book_scale_rejected(self, ledger, session):
        account = ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(ExcessPrecisionError):
            ledger.accounts.add_opening_balance(account.id, "-10.0005", date(2024, 1, 1))

        assert session.scalars(select(OpeningBalance)).all() == []
        assert ledger.accounts.get_by_id(account.id).balance == Decimal("0.000")

    def test_unknown_account(self, ledger):
        with pytest.raises(AccountNotFoundError):
            ledger.accounts.add_opening_balance(7, "10", date(2024, 1, 1))


class TestAdjustment:
    def test_opening_adjustment_transfer_scenario(self, ledger):
        """Opening 100 + adjustment IN 50 - transfer OUT 30 leaves 120.000."""
        cash = ledger.accounts.create_account("Cash", "cash")
        bank = ledger.accounts.create_account("NBK Bank")
        ledger.accounts.add_opening_balance(cash.id, "100", date(2024, 1, 1))
        ledger.accounts.add_adjustment(cash.id, "50", "IN", date(2024, 1, 5), "count correction")
        ledger.transfers.transfer(cash.id, bank.id, "30", date(2024, 1, 10))

        assert ledger.accounts.get_by_id(cash.id).balance == Decimal("120.000")
        statement = ledger.statements.account_statement(cash.id).statement
        assert statement.closing_balance == Decimal("120.000")
        assert ledger.statements.reconcile_account(cash.id).matches

    def test_out_reduces_balance(self, ledger):
        account = ledger.accounts.create_account("Cash", "cash")

        result = ledger.accounts.add_adjustment(account.id, "12.345", "OUT", date(2024, 1, 5), "bank fee")

        assert result.balance == Decimal("-12.345")

    def test_direction_case_insensitive(self, ledger):
        account = ledger.accounts.create_account("Cash", "cash")

        result = ledger.accounts.add_adjustment(account.id, "5", "in", date(2024, 1, 5), "found")

        assert result.balance == Decimal("5.000")

    def test_reason_required(self, ledger, session):
        account = ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(AdjustmentReasonRequiredError):
            ledger.accounts.add_adjustment(account.id, "5", "IN", date(2024, 1, 5), "  ")

        assert session.scalar(select(func.count(AccountAdjustment.id))) == 0
        assert ledger.accounts.get_by_id(account.id).balance == Decimal("0")

    @pytest.mark.parametrize("direction", ["SIDEWAYS", "", None])
    def test_invalid_direction(self, ledger, direction):
        account = ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(InvalidDirectionError):
            ledger.accounts.add_adjustment(account.id, "5", direction, date(2024, 1, 5), "x")

    def test_amount_must_be_positive(self, ledger):
        account = ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(InvalidAmountError):
            ledger.accounts.add_adjustment(account.id, "-5", "OUT", date(2024, 1, 5), "x")

    def test_missing_date(self, ledger):
        account = ledger.accounts.create_account("Cash", "cash")

        with pytest.raises(MissingFieldError):
            ledger.accounts.add_adjustment(account.id, "5", "IN", None, "x")

    def test_logged(self, ledger, captured_logs):
        account = ledger.accounts.create_account("Cash", "cash")

        ledger.accounts.add_adjustment(account.id, "5", "IN", date(2024, 1, 5), "found", actor_id="tester")

        record = next(r for r in captured_logs() if r["message"] == "adjustment_recorded")
        assert record["direction"] == "IN"
        assert record["account_id"] == str(account.id)


class TestDeleteAccount:
    def test_unused_account_deleted(self, ledger):
        account = ledger.accounts.create_account("Spare")

        ledger.accounts.delete_account(account.id)

        with pytest.raises(AccountNotFoundError):
            ledger.accounts.get_by_id(account.id)

    def test_referenced_account_kept(self, ledger):
        a = ledger.accounts.create_account("A")
        b = ledger.accounts.create_account("B")
        ledger.accounts.add_opening_balance(a.id, "10", date(2024, 1, 1))
        ledger.transfers.transfer(a.id, b.id, "5", date(2024, 1, 2))

        with pytest.raises(AccountReferencedError) as exc_info:
            ledger.accounts.delete_account(a.id)

        assert exc_info.value.references == {"opening_balances": 1, "transfers": 1}
        assert ledger.accounts.get_by_id(a.id).balance == Decimal("5.000")

    def test_unknown(self, ledger):
        with pytest.raises(AccountNotFoundError):
            ledger.accounts.delete_account(123)
