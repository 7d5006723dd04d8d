"""
Tests for TransactionService.

Covers:
- Sales and purchase totals computed exactly from their lines
- Foreign-currency purchases converted to KWD
- Payments and expenses moving account balances
- Purchase line totals that add up to the order total
- Returns, opening stock and goods receipt
- Amounts beyond book scale refused
- Credit limits enforced on sales
- Customer discounts
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from ledger_kernel.exceptions import (
    CreditLimitExceededError,
    DocumentNotFoundError,
    ExcessPrecisionError,
    GoodsReceivedBeforePurchaseError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidChoiceError,
    InvalidCurrencyError,
    InvalidDirectionError,
    MissingFieldError,
    PartyNotFoundError,
)
from ledger_kernel.models.discount import Discount
from ledger_kernel.models.inventory import OpeningStock
from ledger_kernel.models.payment import Payment
from ledger_kernel.models.trade import PurchaseOrder, Return, SalesOrder

SALE_DATE = date(2024, 3, 1)


class TestRecordSale:
    def test_total_is_exact_sum_of_lines(self, ledger, session, make_party):
        customer = make_party("Al Noor Trading")

        doc = ledger.transactions.record_sale(
            customer.id,
            SALE_DATE,
            [
                {"item_name": "HDMI cable", "quantity": "3", "unit_price": "1.005"},
                {"item_name": "USB hub", "quantity": "2", "unit_price": "2.007"},
            ],
            invoice_number="INV-001",
            actor_id="tester",
        )

        assert doc.kind == "sale"
        assert doc.total_kwd == Decimal("7.029")
        order = session.get(SalesOrder, doc.id)
        assert order.total_kwd == Decimal("7.029")
        assert [line.item_name for line in order.lines] == ["HDMI cable", "USB hub"]

    def test_salesman_recorded(self, ledger, session, make_party):
        customer = make_party("Customer")
        salesman = make_party("Yousef", "salesman")

        doc = ledger.transactions.record_sale(
            customer.id, SALE_DATE,
            [{"item_name": "Router", "quantity": "1", "unit_price": "25"}],
            salesman_id=salesman.id,
        )

        assert session.get(SalesOrder, doc.id).salesman_id == salesman.id

    def test_requires_lines(self, ledger, make_party):
        customer = make_party("Customer")

        with pytest.raises(MissingFieldError) as exc_info:
            ledger.transactions.record_sale(customer.id, SALE_DATE, [])

        assert exc_info.value.field == "lines"

    def test_rejects_zero_price(self, ledger, make_party):
        customer = make_party("Customer")

        with pytest.raises(InvalidAmountError) as exc_info:
            ledger.transactions.record_sale(
                customer.id, SALE_DATE,
                [{"item_name": "Router", "quantity": "1", "unit_price": "0"}],
            )

        assert exc_info.value.field == "unit_price"

    def test_rejects_price_beyond_book_scale(self, ledger, session, make_party):
        customer = make_party("Customer")

        with pytest.raises(ExcessPrecisionError) as exc_info:
            ledger.transactions.record_sale(
                customer.id, SALE_DATE,
                [{"item_name": "Router", "quantity": "1", "unit_price": "10.0005"}],
            )

        assert exc_info.value.field == "unit_price"
        assert session.scalars(select(SalesOrder)).all() == []

    def test_unknown_customer(self, ledger):
        with pytest.raises(PartyNotFoundError):
            ledger.transactions.record_sale(
                404, SALE_DATE, [{"item_name": "Router", "quantity": "1", "unit_price": "1"}]
            )

    def test_missing_date(self, ledger, make_party):
        customer = make_party("Customer")

        with pytest.raises(MissingFieldError) as exc_info:
            ledger.transactions.record_sale(
                customer.id, None, [{"item_name": "Router", "quantity": "1", "unit_price": "1"}]
            )

        assert exc_info.value.field == "sale_date"


def router_sale(amount):
    return [{"item_name": "Router", "quantity": "1", "unit_price": amount}]


class TestCreditLimit:
    def test_sale_past_limit_rejected(self, ledger, session):
        customer = ledger.parties.create_party("Gulf Computers", "customer", credit_limit="100")
        ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("60"))

        with pytest.raises(CreditLimitExceededError) as exc_info:
            ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("50"))

        error = exc_info.value
        assert error.code == "CREDIT_LIMIT_EXCEEDED"
        assert error.credit_limit == Decimal("100.000")
        assert error.current_balance == Decimal("60.000")
        assert error.sale_amount == Decimal("50.000")
        assert error.new_balance == Decimal("110.000")
        assert len(session.scalars(select(SalesOrder)).all()) == 1

    def test_payments_and_opening_balance_count(self, ledger):
        customer = ledger.parties.create_party("Gulf Computers", "customer", credit_limit="100")
        ledger.parties.add_opening_balance(customer.id, "20", date(2024, 1, 1))
        ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("60"))
        ledger.transactions.record_payment("IN", "30", SALE_DATE, party_id=customer.id)

        # 20 + 60 - 30 + 50 lands exactly on the limit
        ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("50"))

        with pytest.raises(CreditLimitExceededError) as exc_info:
            ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("0.001"))
        assert exc_info.value.current_balance == Decimal("100.000")

    def test_zero_limit_means_unlimited(self, ledger, make_party):
        customer = make_party("Customer")

        doc = ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("250000"))

        assert doc.total_kwd == Decimal("250000.000")

    def test_rejection_logged(self, ledger, captured_logs):
        customer = ledger.parties.create_party("Gulf Computers", "customer", credit_limit="10")

        with pytest.raises(CreditLimitExceededError):
            ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("11"))

        record = next(r for r in captured_logs() if r["message"] == "credit_limit_exceeded")
        assert record["credit_limit"] == "10.000"
        assert record["sale_amount"] == "11.000"

    def test_negative_limit_rejected(self, ledger):
        with pytest.raises(InvalidAmountError) as exc_info:
            ledger.parties.create_party("Gulf Computers", "customer", credit_limit="-5")

        assert exc_info.value.field == "credit_limit"


class TestRecordPurchase:
    def test_kwd_purchase(self, ledger, session, make_party):
        supplier = make_party("Gulf Components", "supplier")

        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE,
            [{"item_name": "SSD 1TB", "quantity": "4", "unit_price": "18.250"}],
        )

        order = session.get(PurchaseOrder, doc.id)
        assert doc.total_kwd == Decimal("73.000")
        assert order.fx_currency is None
        assert order.total_fx is None

    def test_foreign_currency_purchase(self, ledger, session, make_party):
        supplier = make_party("Shenzhen Parts", "supplier")

        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE,
            [{"item_name": "Keyboard", "quantity": "2", "unit_price": "50.00"}],
            fx_currency="usd",
            fx_rate="0.3075",
        )

        order = session.get(PurchaseOrder, doc.id)
        assert order.fx_currency == "USD"
        assert order.fx_rate == Decimal("0.3075")
        assert order.total_fx == Decimal("100.00")
        assert doc.total_kwd == Decimal("30.750")
        assert order.lines[0].unit_price == Decimal("15.375")

    def test_kwd_line_totals_sum_to_order_total(self, ledger, session, make_party):
        supplier = make_party("Gulf Components", "supplier")

        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE,
            [
                {"item_name": "Cable", "quantity": "2.5", "unit_price": "1.333"},
                {"item_name": "Cable", "quantity": "1.5", "unit_price": "0.667"},
            ],
        )

        lines = session.get(PurchaseOrder, doc.id).lines
        assert [line.line_total for line in lines] == [Decimal("3.333"), Decimal("1.001")]
        assert doc.total_kwd == Decimal("4.334")

    def test_foreign_currency_rounding_residue_on_largest_line(self, ledger, session, make_party):
        supplier = make_party("Shenzhen Parts", "supplier")

        # Each line converts to 0.3075 -> 0.308, but the invoice converts to 0.615
        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE,
            [
                {"item_name": "Mouse", "quantity": "1", "unit_price": "1.00"},
                {"item_name": "Mouse pad", "quantity": "1", "unit_price": "1.00"},
            ],
            fx_currency="USD",
            fx_rate="0.3075",
        )

        order = session.get(PurchaseOrder, doc.id)
        assert order.total_kwd == Decimal("0.615")
        assert [line.line_total for line in order.lines] == [Decimal("0.307"), Decimal("0.308")]
        assert sum(line.line_total for line in order.lines) == order.total_kwd

    def test_received_foreign_purchase_moves_exact_value_into_stock(self, ledger, make_party):
        supplier = make_party("Shenzhen Parts", "supplier")
        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE,
            [{"item_name": "USB hub", "quantity": "3", "unit_price": "1.00"}],
            fx_currency="USD",
            fx_rate="0.3075",
        )
        ledger.transactions.receive_purchase(doc.id, date(2024, 3, 20))

        in_transit = ledger.reporting.financial_standing(date(2024, 3, 10)).current
        received = ledger.reporting.financial_standing(date(2024, 3, 25)).current

        assert in_transit.po_in_transit == Decimal("0.923")
        assert received.po_in_transit == Decimal("0")
        assert received.stock_value == in_transit.po_in_transit
        assert received.total_payables == in_transit.total_payables == Decimal("0.923")

    def test_unknown_currency(self, ledger, make_party):
        supplier = make_party("Supplier", "supplier")

        with pytest.raises(InvalidCurrencyError):
            ledger.transactions.record_purchase(
                supplier.id, SALE_DATE,
                [{"item_name": "Mouse", "quantity": "1", "unit_price": "5"}],
                fx_currency="XYZ", fx_rate="1",
            )

    @pytest.mark.parametrize("rate", [None, "0", "-0.3", "abc"])
    def test_bad_rate(self, ledger, make_party, rate):
        supplier = make_party("Supplier", "supplier")

        with pytest.raises(InvalidAmountError) as exc_info:
            ledger.transactions.record_purchase(
                supplier.id, SALE_DATE,
                [{"item_name": "Mouse", "quantity": "1", "unit_price": "5"}],
                fx_currency="USD", fx_rate=rate,
            )

        assert exc_info.value.field == "fx_rate"

    def test_receive_marks_goods_received(self, ledger, session, make_party):
        supplier = make_party("Supplier", "supplier")
        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE, [{"item_name": "Mouse", "quantity": "1", "unit_price": "5"}]
        )
        assert session.get(PurchaseOrder, doc.id).grn_date is None

        ledger.transactions.receive_purchase(doc.id, date(2024, 3, 20))

        assert session.get(PurchaseOrder, doc.id).grn_date == date(2024, 3, 20)

    def test_receive_before_purchase_date_rejected(self, ledger, session, make_party):
        supplier = make_party("Supplier", "supplier")
        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE, [{"item_name": "Mouse", "quantity": "1", "unit_price": "5"}]
        )

        with pytest.raises(GoodsReceivedBeforePurchaseError) as exc_info:
            ledger.transactions.receive_purchase(doc.id, date(2024, 2, 28))

        assert exc_info.value.code == "GRN_BEFORE_PURCHASE"
        assert session.get(PurchaseOrder, doc.id).grn_date is None

    def test_received_on_purchase_date_accepted(self, ledger, session, make_party):
        supplier = make_party("Supplier", "supplier")
        doc = ledger.transactions.record_purchase(
            supplier.id, SALE_DATE, [{"item_name": "Mouse", "quantity": "1", "unit_price": "5"}]
        )

        ledger.transactions.receive_purchase(doc.id, SALE_DATE)

        assert session.get(PurchaseOrder, doc.id).grn_date == SALE_DATE

    def test_purchase_with_earlier_grn_date_rejected(self, ledger, session, make_party):
        supplier = make_party("Supplier", "supplier")

        with pytest.raises(GoodsReceivedBeforePurchaseError):
            ledger.transactions.record_purchase(
                supplier.id, SALE_DATE,
                [{"item_name": "Mouse", "quantity": "1", "unit_price": "5"}],
                grn_date=date(2024, 2, 1),
            )

        assert session.scalars(select(PurchaseOrder)).all() == []

    def test_receive_unknown_purchase(self, ledger):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            ledger.transactions.receive_purchase(77, date(2024, 3, 20))

        assert exc_info.value.kind == "purchase"
        assert exc_info.value.document_id == 77


class TestRecordDiscount:
    def test_against_invoice(self, ledger, session, make_party):
        customer = make_party("Al Noor Trading")
        sale = ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("120"))

        doc = ledger.transactions.record_discount(
            customer.id, "12.500", date(2024, 3, 5), sales_order_id=sale.id,
            notes="Bulk order", actor_id="tester",
        )

        discount = session.get(Discount, doc.id)
        assert doc.kind == "discount"
        assert discount.amount == Decimal("12.500")
        assert discount.sales_order_id == sale.id
        assert discount.created_by == "tester"

    def test_supplier_cannot_be_discounted(self, ledger, session, make_party):
        supplier = make_party("Gulf Components", "supplier")

        with pytest.raises(InvalidChoiceError) as exc_info:
            ledger.transactions.record_discount(supplier.id, "5", SALE_DATE)

        assert exc_info.value.field == "party_type"
        assert session.scalars(select(Discount)).all() == []

    def test_invoice_of_another_customer(self, ledger, make_party):
        customer = make_party("Customer")
        other = make_party("Other")
        sale = ledger.transactions.record_sale(other.id, SALE_DATE, router_sale("10"))

        with pytest.raises(DocumentNotFoundError) as exc_info:
            ledger.transactions.record_discount(customer.id, "5", SALE_DATE, sales_order_id=sale.id)

        assert exc_info.value.kind == "sale"

    def test_zero_amount_rejected(self, ledger, make_party):
        customer = make_party("Customer")

        with pytest.raises(InvalidAmountError):
            ledger.transactions.record_discount(customer.id, "0", SALE_DATE)

    def test_discount_frees_credit(self, ledger):
        customer = ledger.parties.create_party("Gulf Computers", "customer", credit_limit="100")
        ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("100"))
        ledger.transactions.record_discount(customer.id, "20", SALE_DATE)

        doc = ledger.transactions.record_sale(customer.id, SALE_DATE, router_sale("20"))

        assert doc.total_kwd == Decimal("20.000")


class TestRecordPayment:
    def test_payment_in_credits_account(self, ledger, make_account, make_party):
        bank = make_account("NBK Bank", opening="10")
        customer = make_party("Customer")

        ledger.transactions.record_payment("IN", "40", SALE_DATE, party_id=customer.id, account_id=bank.id)

        assert ledger.accounts.get_by_id(bank.id).balance == Decimal("50.000")

    def test_payment_out_debits_account(self, ledger, make_account, make_party):
        bank = make_account("NBK Bank", opening="100")
        supplier = make_party("Supplier", "supplier")

        ledger.transactions.record_payment("out", "60.5", SALE_DATE, party_id=supplier.id, account_id=bank.id)

        assert ledger.accounts.get_by_id(bank.id).balance == Decimal("39.500")
        assert ledger.statements.reconcile_account(bank.id).matches

    def test_payment_without_account(self, ledger, session, make_party):
        customer = make_party("Customer")

        doc = ledger.transactions.record_payment("IN", "5", SALE_DATE, party_id=customer.id)

        assert session.get(Payment, doc.id).account_id is None

    def test_invalid_direction(self, ledger):
        with pytest.raises(InvalidDirectionError):
            ledger.transactions.record_payment("BOTH", "5", SALE_DATE)

    def test_unknown_party(self, ledger, session):
        with pytest.raises(PartyNotFoundError):
            ledger.transactions.record_payment("IN", "5", SALE_DATE, party_id=9)

        assert session.scalars(select(Payment)).all() == []

    def test_strict_policy_blocks_overdraw(self, strict_ledger, session):
        cash = strict_ledger.accounts.create_account("Cash", "cash")
        strict_ledger.accounts.add_opening_balance(cash.id, "5", date(2024, 1, 1))

        with pytest.raises(InsufficientFundsError):
            strict_ledger.transactions.record_payment("OUT", "6", SALE_DATE, account_id=cash.id)

        assert session.scalars(select(Payment)).all() == []


class TestRecordExpense:
    def test_debits_account(self, ledger, make_account):
        cash = make_account("Cash", "cash", opening="20")

        doc = ledger.transactions.record_expense("Rent", "12.500", SALE_DATE, account_id=cash.id)

        assert doc.kind == "expense"
        assert ledger.accounts.get_by_id(cash.id).balance == Decimal("7.500")

    def test_category_required(self, ledger):
        with pytest.raises(MissingFieldError) as exc_info:
            ledger.transactions.record_expense(" ", "1", SALE_DATE)

        assert exc_info.value.field == "category"


class TestRecordReturn:
    def test_sale_return(self, ledger, session, make_party):
        customer = make_party("Customer")

        doc = ledger.transactions.record_return(
            customer.id, "SALE_RETURN", SALE_DATE, "20",
            lines=[{"item_name": "Router", "quantity": "1"}],
        )

        record = session.get(Return, doc.id)
        assert doc.kind == "sale_return"
        assert record.total_kwd == Decimal("20.000")
        assert len(record.lines) == 1

    def test_unknown_return_type(self, ledger, make_party):
        customer = make_party("Customer")

        with pytest.raises(InvalidChoiceError) as exc_info:
            ledger.transactions.record_return(customer.id, "exchange", SALE_DATE, "20")

        assert exc_info.value.field == "return_type"


class TestOpeningStock:
    def test_recorded(self, ledger, session):
        stock_id = ledger.transactions.record_opening_stock("Monitor 27in", "3", "45.500", date(2024, 1, 1))

        stock = session.get(OpeningStock, stock_id)
        assert stock.quantity == Decimal("3.000")
        assert stock.unit_cost == Decimal("45.500")

    def test_zero_quantity_rejected(self, ledger):
        with pytest.raises(InvalidAmountError):
            ledger.transactions.record_opening_stock("Monitor", "0", "45", date(2024, 1, 1))
