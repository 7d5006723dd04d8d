"""
Tests for StatementService.

Covers:
- Party statements from each perspective (customer, supplier, salesman)
- Customer discounts credited on the statement
- Account statements and date windows
- Records excluded from the ledger
- Stored vs replayed balance reconciliation
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.dtos import EntryType, Perspective, SourceKind
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    BalanceDriftError,
    InvalidDateRangeError,
    PartyNotFoundError,
)
from ledger_kernel.models.account import Account
from ledger_kernel.models.trade import SalesOrder


def sale(ledger, customer_id, on, amount, salesman_id=None):
    return ledger.transactions.record_sale(
        customer_id, on,
        [{"item_name": "Laptop", "quantity": "1", "unit_price": amount}],
        salesman_id=salesman_id,
    )


class TestCustomerStatement:
    @pytest.fixture
    def customer(self, ledger, make_party):
        customer = make_party("Al Noor Trading")
        ledger.parties.add_opening_balance(customer.id, "50", date(2024, 1, 1))
        sale(ledger, customer.id, date(2024, 2, 1), "200")
        ledger.transactions.record_payment("IN", "100", date(2024, 2, 10), party_id=customer.id)
        ledger.transactions.record_return(customer.id, "sale_return", date(2024, 2, 15), "20")
        return customer

    def test_full_history(self, ledger, customer):
        result = ledger.statements.party_statement(customer.id)
        statement = result.statement

        assert result.perspective == Perspective.CUSTOMER
        assert [row.entry.entry_type for row in statement.rows] == [
            EntryType.OPENING_BALANCE,
            EntryType.SALE,
            EntryType.PAYMENT_IN,
            EntryType.SALE_RETURN,
        ]
        assert [row.balance for row in statement.rows] == [
            Decimal("50.000"), Decimal("250.000"), Decimal("150.000"), Decimal("130.000"),
        ]
        assert statement.opening_balance == Decimal("0")
        assert statement.closing_balance == Decimal("130.000")

    def test_window_opening_carries_earlier_entries(self, ledger, customer):
        statement = ledger.statements.party_statement(
            customer.id, start_date=date(2024, 2, 5), end_date=date(2024, 2, 28)
        ).statement

        assert statement.opening_balance == Decimal("250.000")
        assert len(statement.rows) == 2
        assert statement.closing_balance == Decimal("130.000")
        assert (
            statement.closing_balance - statement.opening_balance
            == statement.total_debit - statement.total_credit
        )

    def test_end_date_excludes_later_entries(self, ledger, customer):
        statement = ledger.statements.party_statement(customer.id, end_date=date(2024, 2, 1)).statement

        assert statement.closing_balance == Decimal("250.000")

    def test_discount_lowers_balance(self, ledger, customer):
        ledger.transactions.record_discount(customer.id, "30", date(2024, 2, 20), notes="Loyalty")

        statement = ledger.statements.party_statement(customer.id).statement

        last = statement.rows[-1]
        assert last.entry.entry_type == EntryType.DISCOUNT
        assert last.entry.source_kind == SourceKind.DISCOUNT
        assert last.entry.credit == Decimal("30.000")
        assert last.entry.description == "Loyalty"
        assert statement.closing_balance == Decimal("100.000")

    def test_discount_after_end_date_excluded(self, ledger, customer):
        ledger.transactions.record_discount(customer.id, "30", date(2024, 3, 5))

        statement = ledger.statements.party_statement(customer.id, end_date=date(2024, 2, 28)).statement

        assert statement.closing_balance == Decimal("130.000")

    def test_undated_sale_reported_as_skipped(self, ledger, session, customer):
        undated = SalesOrder(sale_date=None, customer_id=customer.id, total_kwd=Decimal("999"))
        session.add(undated)
        session.flush()

        result = ledger.statements.party_statement(customer.id)

        assert result.statement.closing_balance == Decimal("130.000")
        assert [(s.kind, s.source_id, s.reason) for s in result.skipped] == [
            (SourceKind.SALE, undated.id, "missing date"),
        ]

    def test_invalid_range(self, ledger, customer):
        with pytest.raises(InvalidDateRangeError):
            ledger.statements.party_statement(
                customer.id, start_date=date(2024, 3, 1), end_date=date(2024, 2, 1)
            )

    def test_unknown_party(self, ledger):
        with pytest.raises(PartyNotFoundError):
            ledger.statements.party_statement(31337)


class TestOtherPerspectives:
    def test_supplier(self, ledger, make_party):
        supplier = make_party("Gulf Components", "supplier")
        ledger.parties.add_opening_balance(supplier.id, "-10", date(2024, 1, 1))
        ledger.transactions.record_purchase(
            supplier.id, date(2024, 2, 1),
            [{"item_name": "SSD", "quantity": "4", "unit_price": "18.250"}],
        )
        ledger.transactions.record_payment("OUT", "30", date(2024, 2, 5), party_id=supplier.id)
        ledger.transactions.record_return(supplier.id, "purchase_return", date(2024, 2, 6), "13")

        result = ledger.statements.party_statement(supplier.id)

        assert result.perspective == Perspective.SUPPLIER
        assert result.statement.rows[0].entry.credit == Decimal("10.000")
        assert result.statement.closing_balance == Decimal("20.000")

    def test_salesman(self, ledger, make_party):
        customer = make_party("Customer")
        salesman = make_party("Yousef", "salesman")
        sale(ledger, customer.id, date(2024, 2, 1), "200", salesman_id=salesman.id)
        ledger.transactions.record_payment("IN", "150", date(2024, 2, 3), party_id=salesman.id)

        result = ledger.statements.party_statement(salesman.id)

        assert result.perspective == Perspective.SALESMAN
        assert result.statement.closing_balance == Decimal("50.000")
        # The customer still owes the full invoice
        customer_statement = ledger.statements.party_statement(customer.id).statement
        assert customer_statement.closing_balance == Decimal("200.000")


class TestAccountStatement:
    def test_window(self, ledger, make_account):
        bank = make_account("NBK Bank", opening="100", on=date(2024, 1, 1))
        other = make_account("Knet")
        ledger.transactions.record_payment("IN", "40", date(2024, 2, 1), account_id=bank.id)
        ledger.transfers.transfer(bank.id, other.id, "15", date(2024, 2, 20))
        ledger.transactions.record_expense("Fuel", "5", date(2024, 3, 5), account_id=bank.id)

        result = ledger.statements.account_statement(
            bank.id, start_date=date(2024, 1, 15), end_date=date(2024, 3, 1)
        )
        statement = result.statement

        assert result.account.name == "NBK Bank"
        assert statement.opening_balance == Decimal("100.000")
        assert [row.entry.entry_type for row in statement.rows] == [
            EntryType.PAYMENT_IN, EntryType.TRANSFER_OUT,
        ]
        assert statement.closing_balance == Decimal("125.000")
        assert (
            statement.closing_balance - statement.opening_balance
            == statement.total_credit - statement.total_debit
        )

    def test_unknown_account(self, ledger):
        with pytest.raises(AccountNotFoundError):
            ledger.statements.account_statement(5)


class TestReconciliation:
    def test_matches_after_writes(self, ledger, make_account):
        cash = make_account("Cash", "cash", opening="100")
        ledger.transactions.record_expense("Tea", "1.250", date(2024, 2, 1), account_id=cash.id)

        result = ledger.statements.reconcile_account(cash.id)

        assert result.matches
        assert result.replayed_balance == Decimal("98.750")

    def test_drift_detected(self, ledger, session, make_account, captured_logs):
        cash = make_account("Cash", "cash", opening="100")
        session.get(Account, cash.id).balance = Decimal("101")
        session.flush()

        result = ledger.statements.reconcile_account(cash.id)
        assert not result.matches
        assert result.difference == Decimal("1")

        with pytest.raises(BalanceDriftError):
            ledger.statements.verify_account(cash.id)

        drift = next(r for r in captured_logs() if r["message"] == "account_balance_drift")
        assert drift["level"] == "ERROR"
