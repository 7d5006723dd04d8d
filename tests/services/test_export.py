"""Tests for the .xlsx party statement export."""

from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from ledger_services.export import AMOUNT_FORMAT, COLUMNS, export_party_statement_xlsx, statement_filename


class TestPartyStatementExport:
    def setup_method(self):
        self.start = date(2024, 2, 5)
        self.end = date(2024, 2, 28)

    def _statement(self, ledger, make_party, name="Al Noor Trading"):
        customer = make_party(name)
        ledger.parties.add_opening_balance(customer.id, "50", date(2024, 1, 1))
        ledger.transactions.record_sale(
            customer.id, date(2024, 2, 10),
            [{"item_name": "Laptop", "quantity": "1", "unit_price": "200"}],
            invoice_number="INV-7",
        )
        ledger.transactions.record_payment("IN", "75.5", date(2024, 2, 20), party_id=customer.id)
        return ledger.statements.party_statement(customer.id, self.start, self.end)

    def test_layout(self, ledger, make_party):
        statement = self._statement(ledger, make_party)

        ws = load_workbook(BytesIO(export_party_statement_xlsx(statement))).active

        assert ws.title == "Statement"
        assert ws["B1"].value == "Al Noor Trading"
        assert ws["B2"].value == "customer"
        assert ws["B3"].value == "2024-02-05"
        assert ws["B4"].value == "2024-02-28"
        assert ws["A6"].value == "Opening balance"
        assert Decimal(str(ws["G6"].value)) == Decimal("50")
        assert tuple(c.value for c in ws[7]) == COLUMNS

    def test_rows_and_totals(self, ledger, make_party):
        statement = self._statement(ledger, make_party)

        ws = load_workbook(BytesIO(export_party_statement_xlsx(statement))).active

        # openpyxl reads dates back as datetimes
        assert ws["A8"].value == datetime(2024, 2, 10)
        assert ws["B8"].value == "SALE"
        assert ws["C8"].value == "INV-7"
        assert Decimal(str(ws["E8"].value)) == Decimal("200")
        assert Decimal(str(ws["G8"].value)) == Decimal("250")
        assert ws["B9"].value == "PAYMENT_IN"
        assert Decimal(str(ws["F9"].value)) == Decimal("75.5")
        assert ws["A10"].value == "Totals"
        assert ws["A11"].value == "Closing balance"
        assert Decimal(str(ws["G11"].value)) == Decimal("174.5")
        assert ws["G8"].number_format == AMOUNT_FORMAT

    def test_filename_is_safe(self, ledger, make_party):
        statement = self._statement(ledger, make_party, name="Al/Noor: Trading")

        assert statement_filename(statement) == f"statement_Al_Noor__Trading_{statement.party.id}.xlsx"
